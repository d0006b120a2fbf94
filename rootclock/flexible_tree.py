from enum import Enum
from io import StringIO
import numpy as np
from Bio import Phylo
from Bio.Phylo.BaseTree import Clade, Tree
from . import config as rcconf
from . import MissingDataError, TopologyError

NO_PARENT = rcconf.NO_PARENT


class Representation(Enum):
    """
    Which of the two descriptions of the branch geometry is current.
    Reading the stale one recomputes it from the authoritative one.
    """
    LENGTHS = "lengths"   # branch lengths authoritative, heights stale
    HEIGHTS = "heights"   # node heights authoritative, branch lengths stale
    BOTH = "both"         # both derived from each other and consistent


class FlexibleTree(object):
    """
    Binary tree that can be re-rooted in place.

    Nodes live in an arena and are addressed by their integer index `nr`.
    Leaves are numbered 0..n-1 in the order they appear in the input tree,
    internal nodes n..2n-2 in post-order, so the input root is the last node.
    Indices are stable: re-rooting rewires parent and child indices but
    never renumbers nodes.

    Branch lengths are stored per node (length to the parent, the slot of the
    root is 0). Heights are distances back from the tallest tip, which sits at
    height 0, so the root has the largest height. Only one of the two is
    authoritative at a time, see :py:class:`Representation`.
    """

    def __init__(self, tree):
        """
        Parameters
        ----------
        tree : str, Bio.Phylo.BaseTree.Tree
            Phylogenetic tree. A string is interpreted as the name of a file with
            a tree in newick (or nexus) format that can be parsed by Bio.Phylo.
        """
        if isinstance(tree, Tree):
            in_tree = tree
        elif isinstance(tree, str):
            from os.path import isfile
            if not isfile(tree):
                raise MissingDataError("FlexibleTree: could not load tree! input was "+str(tree))
            try:
                in_tree = Phylo.read(tree, 'newick')
            except Exception:
                fmt = tree.split('.')[-1]
                if fmt in ['nexus', 'nex']:
                    in_tree = Phylo.read(tree, 'nexus')
                else:
                    raise ValueError('FlexibleTree: could not load tree, format needs to be nexus or newick! input was '+str(tree))
        else:
            raise TypeError("FlexibleTree requires a Bio.Phylo tree or a file name!")

        if in_tree.count_terminals()<3:
            raise MissingDataError('FlexibleTree: tree has only %d tips. Please check your tree!'%in_tree.count_terminals())

        self._from_phylo(in_tree)


    @classmethod
    def from_newick(cls, newick):
        """Build the tree from a newick string such as '((A:1,B:1):1,C:2);'"""
        return cls(Phylo.read(StringIO(newick), 'newick'))

    @classmethod
    def from_phylo(cls, tree):
        return cls(tree)


    def _from_phylo(self, tree):
        terminals = tree.get_terminals()
        nonterminals = tree.get_nonterminals(order='postorder')
        clades = terminals + nonterminals
        index = {id(c):nr for nr, c in enumerate(clades)}

        n_nodes = len(clades)
        self._n_leaves = len(terminals)
        self._names = [c.name for c in clades]
        self._parent = [NO_PARENT]*n_nodes
        self._children = [[] for c in clades]
        for c in nonterminals:
            nr = index[id(c)]
            for child in c.clades:
                self._children[nr].append(index[id(child)])
                self._parent[index[id(child)]] = nr

        self._root = index[id(tree.root)]
        self._lengths = np.array([c.branch_length if c.branch_length else 0.0 for c in clades], dtype=float)
        self._lengths[self._root] = 0.0
        self._heights = np.zeros(n_nodes, dtype=float)
        self._state = Representation.LENGTHS


    def copy(self):
        """
        Deep copy: the new tree shares no mutable state with this one.
        """
        other = self.__class__.__new__(self.__class__)
        other._n_leaves = self._n_leaves
        other._names = list(self._names)
        other._parent = list(self._parent)
        other._children = [list(c) for c in self._children]
        other._root = self._root
        other._lengths = self._lengths.copy()
        other._heights = self._heights.copy()
        other._state = self._state
        return other


####################################################################
## NAVIGATION
####################################################################
    @property
    def root(self):
        """index of the root node"""
        return self._root

    @property
    def node_count(self):
        return len(self._parent)

    @property
    def leaf_count(self):
        return self._n_leaves

    @property
    def state(self):
        """the current :py:class:`Representation` of the branch geometry"""
        return self._state

    def parent(self, nr):
        """index of the parent of node `nr`, `None` for the root"""
        p = self._parent[nr]
        return None if p==NO_PARENT else p

    def children(self, nr):
        return list(self._children[nr])

    def name(self, nr):
        return self._names[nr]

    def is_terminal(self, nr):
        return len(self._children[nr])==0

    def is_root(self, nr):
        return nr==self._root

    def find_node(self, name):
        """index of the node labelled `name`"""
        for nr, n in enumerate(self._names):
            if n==name:
                return nr
        raise MissingDataError("FlexibleTree.find_node: no node named %s"%name)


    def find_clades(self, order='preorder', start=None):
        """
        Iterate over node indices below `start` (default: the root).

        Parameters
        ----------
        order : str
            'preorder' (parents before children) or 'postorder'
            (children before parents). Children are visited left to right.
        """
        start = self._root if start is None else start
        if order=='preorder':
            out, stack = [], [start]
            while stack:
                nr = stack.pop()
                out.append(nr)
                stack.extend(reversed(self._children[nr]))
        elif order=='postorder':
            # right-first preorder reversed is the left-first postorder
            out, stack = [], [start]
            while stack:
                nr = stack.pop()
                out.append(nr)
                stack.extend(self._children[nr])
            out.reverse()
        else:
            raise ValueError("FlexibleTree.find_clades: unknown order '%s'"%order)
        return iter(out)


    def get_terminals(self):
        """leaf indices in stable (index) order"""
        return [nr for nr in range(self.node_count) if self.is_terminal(nr)]

    def get_nonterminals(self, order='preorder'):
        return [nr for nr in self.find_clades(order=order) if not self.is_terminal(nr)]

    def get_leaves(self, nr):
        """leaves below node `nr`, left to right"""
        return [c for c in self.find_clades(start=nr) if self.is_terminal(c)]

    def clade(self, nr):
        """the set of tip labels descended from node `nr`"""
        return frozenset(self._names[c] for c in self.get_leaves(nr))

    def is_binary(self):
        return all(len(c) in (0,2) for c in self._children)

    def require_binary(self, caller="FlexibleTree"):
        """raise a TopologyError naming the first node that does not have 0 or 2 children"""
        for nr, c in enumerate(self._children):
            if len(c) not in (0,2):
                raise TopologyError("%s requires a strictly bifurcating tree, node %s has %d children"
                                    %(caller, self._names[nr] or nr, len(c)))


####################################################################
## BRANCH LENGTHS AND HEIGHTS
####################################################################
    def branch_length(self, nr):
        """length of the branch between node `nr` and its parent (0 for the root)"""
        if self._state==Representation.HEIGHTS:
            self._heights_to_lengths()
        return float(self._lengths[nr])

    def branch_lengths(self, nodes):
        return np.array([self.branch_length(nr) for nr in nodes], dtype=float)

    def set_branch_length(self, nr, length):
        if self._state==Representation.HEIGHTS:
            self._heights_to_lengths()
        self._lengths[nr] = length
        self._state = Representation.LENGTHS

    def height(self, nr):
        if self._state==Representation.LENGTHS:
            self._lengths_to_heights()
        return float(self._heights[nr])

    def set_height(self, nr, height):
        if self._state==Representation.LENGTHS:
            self._lengths_to_heights()
        self._heights[nr] = height
        self._state = Representation.HEIGHTS

    def total_branch_length(self):
        return sum(self.branch_length(nr) for nr in range(self.node_count) if nr!=self._root)


    def _lengths_to_heights(self):
        """
        Accumulate the distance from the root along every path and reverse it,
        such that the tallest tip is at height 0. Negative lengths are ignored.
        """
        dist = np.zeros(self.node_count, dtype=float)
        for nr in self.find_clades(order='preorder'):
            p = self._parent[nr]
            d = 0.0 if p==NO_PARENT else dist[p]
            if self._lengths[nr]>0:
                d += self._lengths[nr]
            dist[nr] = d

        max_height = max(0.0, max(dist[nr] for nr in self.get_terminals()))
        self._heights = max_height - dist
        self._state = Representation.BOTH


    def _heights_to_lengths(self):
        for nr in range(self.node_count):
            p = self._parent[nr]
            self._lengths[nr] = 0.0 if p==NO_PARENT else self._heights[p] - self._heights[nr]
        self._state = Representation.BOTH


####################################################################
## RE-ROOTING
####################################################################
    def reroot(self, nr, proportion=rcconf.DEFAULT_SPLIT):
        """
        Re-root the tree on the branch above node `nr`. The new root is placed at
        `proportion` of the branch length from `nr` (0 at `nr`, 1 at the old parent).
        Nothing happens if `nr` is the root or a child of the root.

        The old root node is reused as the new root. Its remaining child absorbs
        the length of the branch it is merged into; ancestry along the path from
        the parent of `nr` to the old root is reversed.

        Parameters
        ----------
        nr : int
            index of the node below the new root
        proportion : float
            split point of the branch above `nr`
        """
        self.require_binary("FlexibleTree.reroot")

        parent = self._parent[nr]
        if parent==NO_PARENT or parent==self._root:
            return

        if self._state==Representation.HEIGHTS:
            self._heights_to_lengths()

        path = [parent]
        while self._parent[path[-1]]!=NO_PARENT:
            path.append(self._parent[path[-1]])
        root = path[-1]

        # free the old root: its other child merges into the node below it
        below = path[-2]
        self._remove_child(root, below)
        remaining = list(self._children[root])
        assert len(remaining)==1, "old root has %d remaining children"%len(remaining)
        for c in remaining:
            self._remove_child(root, c)
            self._add_child(below, c)
            self._lengths[c] += self._lengths[below]

        # rotate the ancestry from the old root down to the parent of nr
        for i in range(len(path)-2, 0, -1):
            node, child = path[i], path[i-1]
            self._remove_child(node, child)
            self._add_child(child, node)
            self._lengths[node] = self._lengths[child]

        length = self._lengths[nr]
        self._remove_child(parent, nr)
        self._add_child(root, nr)
        self._add_child(root, parent)
        self._lengths[nr] = length*proportion
        self._lengths[parent] = length*(1-proportion)
        self._lengths[root] = 0.0
        self._state = Representation.LENGTHS


    def _remove_child(self, nr, child):
        self._children[nr].remove(child)
        self._parent[child] = NO_PARENT

    def _add_child(self, nr, child):
        self._children[nr].append(child)
        self._parent[child] = nr


####################################################################
## OUTPUT
####################################################################
    def to_newick(self):
        """
        Newick string with the current branch lengths, for example
        '(C:1.0,(A:1.0,B:1.0):1.0):0.0;'. Unlabelled leaves are written
        as their index.
        """
        strings = {}
        for nr in self.find_clades(order='postorder'):
            if self.is_terminal(nr):
                label = self._names[nr] if self._names[nr] is not None else str(nr)
            else:
                label = "(" + ",".join(strings.pop(c) for c in self._children[nr]) + ")"
                if self._names[nr] is not None:
                    label += self._names[nr]
            strings[nr] = label + ":" + str(self.branch_length(nr))
        return strings[self._root] + ";"


    def to_phylo(self):
        """convert to a Bio.Phylo tree, e.g. for writing with Phylo.write"""
        clades = {}
        for nr in self.find_clades(order='preorder'):
            clades[nr] = Clade(branch_length=self.branch_length(nr), name=self._names[nr])
            if nr!=self._root:
                clades[self._parent[nr]].clades.append(clades[nr])
        return Tree(root=clades[self._root], rooted=True)


    def __str__(self):
        return self.to_newick()

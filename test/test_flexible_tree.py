from io import StringIO
import numpy as np
import pytest

NWK = "((((A:1,B:1):1,C:2):2,D:3):3,E:5);"


def splits(tree):
    """non-trivial bipartitions of the tips, independent of the root position"""
    tips = frozenset(tree.name(t) for t in tree.get_terminals())
    out = set()
    for nr in tree.get_nonterminals():
        clade = tree.clade(nr)
        if 1<len(clade)<len(tips)-1:
            out.add(frozenset([clade, tips - clade]))
    return out


def test_import_short():
    from rootclock import FlexibleTree
    from rootclock import TipDates
    from rootclock import TemporalRooting, RootingFunction
    from rootclock import LinearDating


def test_numbering():
    from rootclock import FlexibleTree
    tree = FlexibleTree.from_newick(NWK)
    assert tree.node_count==9
    assert tree.leaf_count==5
    assert tree.root==8
    assert [tree.name(t) for t in tree.get_terminals()]==['A', 'B', 'C', 'D', 'E']
    assert tree.get_nonterminals(order='postorder')==[5, 6, 7, 8]
    assert tree.children(5)==[0, 1]
    assert tree.parent(8) is None
    assert tree.branch_length(8)==0.0
    assert tree.find_node('C')==2


def test_from_phylo_and_file(tmp_path):
    from Bio import Phylo
    from rootclock import FlexibleTree, MissingDataError
    tree = FlexibleTree.from_phylo(Phylo.read(StringIO(NWK), 'newick'))
    assert tree.to_newick()==FlexibleTree.from_newick(NWK).to_newick()

    fname = tmp_path/"tree.nwk"
    fname.write_text(NWK)
    assert FlexibleTree(str(fname)).total_branch_length()==18.0

    with pytest.raises(MissingDataError):
        FlexibleTree(str(tmp_path/"missing.nwk"))
    with pytest.raises(MissingDataError):
        FlexibleTree.from_newick("(A:1,B:1);")


def test_newick_output():
    from rootclock import FlexibleTree
    tree = FlexibleTree.from_newick(NWK)
    assert tree.to_newick()=="((((A:1.0,B:1.0):1.0,C:2.0):2.0,D:3.0):3.0,E:5.0):0.0;"
    assert str(tree)==tree.to_newick()

    from Bio import Phylo
    phylo_tree = Phylo.read(StringIO("((A:1,B:1):1,C:2);"), 'newick')
    for c in phylo_tree.find_clades():
        c.name = None
    unlabelled = FlexibleTree(phylo_tree)
    assert unlabelled.to_newick()=="((0:1.0,1:1.0):1.0,2:2.0):0.0;"


def test_reroot():
    from rootclock import FlexibleTree
    tree = FlexibleTree.from_newick(NWK)
    tree.reroot(2, 0.5)
    assert tree.to_newick()=="(C:1.0,((A:1.0,B:1.0):1.0,(D:3.0,E:8.0):2.0):1.0):0.0;"
    assert tree.root==8
    assert tree.parent(2)==8


def test_reroot_round_trip():
    from rootclock import FlexibleTree
    from rootclock.objectives import root_to_tip_distances
    tree = FlexibleTree.from_newick(NWK)
    original_splits = splits(tree)
    tree.reroot(2, 0.5)
    # the old root sat 5 units above E on the merged 8 unit branch
    tree.reroot(tree.find_node('E'), 5.0/8.0)
    assert tree.to_newick()=="(E:5.0,(D:3.0,((A:1.0,B:1.0):1.0,C:2.0):2.0):3.0):0.0;"
    assert splits(tree)==original_splits
    assert np.allclose(root_to_tip_distances(tree), [7, 7, 7, 6, 5])


def test_reroot_conserves_length():
    from rootclock import FlexibleTree
    source = FlexibleTree.from_newick(NWK)
    for nr in range(source.node_count):
        for p in [0.0, 0.3, 0.5, 1.0]:
            tree = source.copy()
            tree.reroot(nr, p)
            assert abs(tree.total_branch_length() - 18.0)<1e-12
            assert splits(tree)==splits(source)
            assert tree.is_binary()


def test_reroot_next_to_root_is_noop():
    from rootclock import FlexibleTree
    tree = FlexibleTree.from_newick(NWK)
    before = tree.to_newick()
    tree.reroot(tree.find_node('E'))
    tree.reroot(tree.root)
    assert tree.to_newick()==before


def test_reroot_non_binary():
    from rootclock import FlexibleTree, TopologyError
    tree = FlexibleTree.from_newick("(((A:1,B:1,C:1):1,D:2):1,E:1);")
    before = tree.to_newick()
    with pytest.raises(TopologyError):
        tree.reroot(0)
    assert tree.to_newick()==before


def test_copy_is_independent():
    from rootclock import FlexibleTree
    tree = FlexibleTree.from_newick(NWK)
    other = tree.copy()
    other.reroot(2)
    other.set_branch_length(0, 10.0)
    assert tree.to_newick()=="((((A:1.0,B:1.0):1.0,C:2.0):2.0,D:3.0):3.0,E:5.0):0.0;"


def test_heights():
    from rootclock import FlexibleTree
    from rootclock.flexible_tree import Representation
    tree = FlexibleTree.from_newick(NWK)
    assert tree.state==Representation.LENGTHS
    assert [tree.height(nr) for nr in range(tree.node_count)]==[0, 0, 0, 1, 2, 1, 2, 4, 7]
    assert tree.state==Representation.BOTH

    tree.set_height(5, 1.5)
    assert tree.state==Representation.HEIGHTS
    assert tree.branch_length(0)==1.5
    assert tree.branch_length(5)==0.5
    assert tree.state==Representation.BOTH


def test_traversals():
    from rootclock import FlexibleTree
    tree = FlexibleTree.from_newick(NWK)
    assert list(tree.find_clades())==[8, 7, 6, 5, 0, 1, 2, 3, 4]
    assert list(tree.find_clades(order='postorder'))==[0, 1, 5, 2, 6, 3, 7, 4, 8]
    assert tree.get_leaves(6)==[0, 1, 2]
    assert tree.clade(6)==frozenset(['A', 'B', 'C'])
    with pytest.raises(ValueError):
        list(tree.find_clades(order='inorder'))


def test_to_phylo():
    from Bio import Phylo
    from rootclock import FlexibleTree
    tree = FlexibleTree.from_newick(NWK)
    tree.reroot(2)
    phylo_tree = tree.to_phylo()
    assert phylo_tree.count_terminals()==5
    assert abs(phylo_tree.total_branch_length() - 18.0)<1e-12
    s = StringIO()
    Phylo.write(phylo_tree, s, 'newick')
    assert FlexibleTree.from_newick(s.getvalue()).total_branch_length()==tree.total_branch_length()

import numpy as np
from . import config as rcconf
from . import RootClockError, NotReadyError, RootClockUnknownError
from .flexible_tree import FlexibleTree
from .tip_dates import TipDates
from .least_squares import LeastSquaresNode, variance_weight, unit_weight
from .utils import TimedLogger


class LinearDating(object):
    """
    Dates of the internal nodes of a rooted tree and the substitution rate by
    weighted least squares without temporal constraints (To et al 2016, LD).

    The tree is only read. Two passes over the internal nodes compute the
    coefficients of :py:class:`rootclock.least_squares.LeastSquaresNode`,
    the rate is the smallest rate implied by any non-root branch but at least
    `min_omega`, and the times follow as t = u + v/omega.
    """

    def __init__(self, tree, dates, sequence_length, min_omega=rcconf.MIN_OMEGA,
                 c=rcconf.LINEAR_DATING_C, weighted=True, verbose=rcconf.VERBOSE, logger=None):
        """
        Parameters
        ----------
        tree : FlexibleTree, Bio.Phylo.BaseTree.Tree, str
            rooted binary tree with branch lengths in substitutions per site
        dates : TipDates, dict
            sampling dates of all tips
        sequence_length : int
            number of aligned sites the branch lengths were estimated from
        min_omega : float
            lower bound of the estimated rate, has to be positive
        c : float
            smoothing constant of the branch weights
        weighted : bool
            weight branches by the inverse variance of their length,
            otherwise all branches count equally
        """
        self.logger = logger if logger is not None else TimedLogger(verbose)
        self.tree = tree if isinstance(tree, FlexibleTree) else FlexibleTree(tree)
        self.tree.require_binary("LinearDating")
        self.dates = dates if isinstance(dates, TipDates) else TipDates(dates)
        self.dates.require_heterochronous("linear dating")

        if not min_omega>0:
            raise RootClockError("LinearDating: the minimal rate has to be positive, got %s"%min_omega)
        self.min_omega = min_omega
        self.c = c
        self.sequence_length = sequence_length
        self.weight = variance_weight(c, sequence_length) if weighted else unit_weight()

        # fail early on tips without dates
        self.tip_dates = {tip:self.dates[self.tree.name(tip)] for tip in self.tree.get_terminals()}

        self.nodes = {}
        self._omega = None


    def run(self):
        """
        Run both passes, estimate the rate and date all internal nodes.

        Returns
        -------
        float
            the substitution rate omega
        """
        self.logger("LinearDating: dating %d internal nodes, sequence length %s, c=%g"
                    %(self.tree.node_count - self.tree.leaf_count, self.sequence_length, self.c), 1)
        self.post_order_pass()
        self.pre_order_pass()
        self._omega = self.compute_omega()
        self.compute_times(self._omega)
        self.logger("LinearDating: rate %1.3e, root date %1.2f"%(self._omega, self.root_date), 2)
        return self._omega


    def post_order_pass(self):
        """x, y, z of all internal nodes, children before parents"""
        self.nodes = {}
        for nr in self.tree.get_nonterminals(order='postorder'):
            children = self.tree.children(nr)
            ls_node = LeastSquaresNode(nr, self.tree.branch_length(nr),
                                       self.tree.branch_lengths(children), self.weight,
                                       is_root=self.tree.is_root(nr))
            for n, child in enumerate(children):
                if self.tree.is_terminal(child):
                    ls_node.set_child_time(n, self.tip_dates[child])
                else:
                    ls_node.set_child_node(n, self._node(child))
            ls_node.compute_xyz()
            self.nodes[nr] = ls_node


    def pre_order_pass(self):
        """u, v of all internal nodes, parents before children"""
        for nr in self.tree.get_nonterminals(order='preorder'):
            parent = self.tree.parent(nr)
            self._node(nr).compute_uv(None if parent is None else self._node(parent))


    def compute_omega(self):
        """smallest rate estimate of the non-root internal nodes, bounded below by min_omega"""
        estimates = [self._node(nr).rate_estimate() for nr in self.tree.get_nonterminals()
                     if not self.tree.is_root(nr)]
        if len(estimates)==0:
            raise RootClockUnknownError("LinearDating: no internal branch to estimate the rate from")
        if any(np.isnan(estimates)):
            raise RootClockUnknownError("LinearDating: undefined rate estimate, check branch lengths and dates")

        omega = min(estimates)
        if omega<self.min_omega:
            self.logger("LinearDating: estimated rate %g is below the minimum, using %g"
                        %(omega, self.min_omega), 2, warn=True)
            omega = self.min_omega
        return float(omega)


    def compute_times(self, omega):
        for nr in self.tree.get_nonterminals():
            self._node(nr).compute_time(omega)


    def _node(self, nr):
        try:
            return self.nodes[nr]
        except KeyError:
            raise NotReadyError("LinearDating: coefficients of node %d have not been computed"%nr)


    @property
    def omega(self):
        if self._omega is None:
            raise NotReadyError("LinearDating: the rate is only available after run()")
        return self._omega

    @property
    def root_date(self):
        return self.get_time(self.tree.root)

    def get_time(self, nr):
        """date of internal node `nr`"""
        return self._node(nr).t

    def times(self):
        """dictionary internal node index -> date"""
        return {nr:self.get_time(nr) for nr in self.tree.get_nonterminals()}

    def rate_estimates(self):
        """dictionary non-root internal node -> rate implied by the branch above it"""
        return {nr:float(self._node(nr).rate_estimate()) for nr in self.tree.get_nonterminals()
                if not self.tree.is_root(nr)}

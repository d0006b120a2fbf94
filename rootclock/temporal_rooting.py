from collections import namedtuple
from enum import Enum
import numpy as np
from scipy.optimize import minimize_scalar
from Bio.Phylo.BaseTree import Tree
from . import config as rcconf
from . import TopologyError, UnknownMethodError, InfeasibleConstraintError
from .flexible_tree import FlexibleTree
from .tip_dates import TipDates
from .regression import Regression
from .utils import TimedLogger
from . import objectives


class RootingFunction(Enum):
    """Scores used to compare root positions, lower is better"""
    HEURISTIC_RESIDUAL_MEAN_SQUARED = "heuristic residual mean squared"
    RESIDUAL_MEAN_SQUARED = "residual mean squared"
    CORRELATION = "correlation"
    R_SQUARED = "R squared"

    def __str__(self):
        return self.value

    @classmethod
    def from_string(cls, name):
        """accepts 'correlation', 'CORRELATION', 'r-squared', 'residual mean squared', ..."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().upper().replace('-', '_').replace(' ', '_')
        for f in cls:
            if f.name==key or f.value.upper().replace(' ', '_')==key:
                return f
        raise UnknownMethodError("unknown rooting function '%s', choose from: %s"
                                 %(name, ", ".join(f.value for f in cls)))


RootSearchProgress = namedtuple('RootSearchProgress', ['current', 'total'])


class TemporalRooting(object):
    """
    Regression of root-to-tip distance against sampling date for temporally
    sampled sequences, and the search for the root that makes this
    relationship most clock-like (Rambaut et al 2016, TempEst).

    Usage::

        rooting = TemporalRooting(dates)
        rooted_tree = rooting.find_root(tree, RootingFunction.CORRELATION)
        regression = rooting.get_root_to_tip_regression(rooted_tree)
    """

    def __init__(self, dates, force_positive_rate=False, target_rate=None,
                 verbose=rcconf.VERBOSE, logger=None):
        """
        Parameters
        ----------
        dates : TipDates, dict
            sampling dates of the tips
        force_positive_rate : bool
            penalize root positions that imply a negative substitution rate
        target_rate : float, optional
            if given, the global root search picks the tree whose root-to-tip
            gradient is closest to this rate instead of the best score
        verbose : int
            verbosity level 0-6
        logger : callable, optional
            logger(msg, level, warn=False) to use instead of printing to stdout
        """
        self.dates = dates if isinstance(dates, TipDates) else TipDates(dates)
        self.force_positive_rate = force_positive_rate
        self.target_rate = target_rate
        self.logger = logger if logger is not None else TimedLogger(verbose)
        self.progress = RootSearchProgress(0, 0)
        self.best_score = None
        if self.is_contemporaneous:
            self.logger("TemporalRooting: tips are contemporaneous, roots are scored by "
                        "the variance of root-to-tip distances", 1, warn=True)

    @property
    def is_contemporaneous(self):
        return self.dates.contemporaneous

    @property
    def date_range(self):
        return self.dates.date_range

    @property
    def use_target_rate(self):
        return self.target_rate is not None


####################################################################
## ROOT SEARCH
####################################################################
    def find_root(self, tree, rooting_function=RootingFunction.CORRELATION, progress=None):
        """
        Find the best root by re-rooting the tree on every branch in turn and
        optimizing the root position along the two branches next to it.

        Parameters
        ----------
        tree : FlexibleTree, Bio.Phylo.BaseTree.Tree
            binary tree, left unchanged
        rooting_function : RootingFunction, str
        progress : callable, optional
            called with a :py:class:`RootSearchProgress` after each branch

        Returns
        -------
        FlexibleTree
            new tree rooted at the best position
        """
        tree = self._as_flexible_tree(tree)
        rooting_function = RootingFunction.from_string(rooting_function)
        dates = self.get_tip_dates(tree)
        return self._find_global_root(tree, dates, rooting_function, self.force_positive_rate, progress=progress)


    def find_local_root(self, tree, rooting_function=RootingFunction.CORRELATION):
        """
        Optimize the position of the root between its two children without
        changing the rest of the topology.

        Returns
        -------
        FlexibleTree
            copy of the tree with the two root branches re-split
        """
        tree = self._as_flexible_tree(tree)
        rooting_function = RootingFunction.from_string(rooting_function)
        dates = self.get_tip_dates(tree)
        best_tree = tree.copy()
        self.best_score = self._find_local_root(best_tree, dates, rooting_function, self.force_positive_rate)
        self.logger("TemporalRooting.find_local_root: score = %g"%self.best_score, 2)
        return best_tree


    def _find_global_root(self, source, dates, rooting_function, force_positive_rate, progress=None):
        best_tree = source.copy()
        min_f = self._find_local_root(best_tree, dates, rooting_function, force_positive_rate)
        if self.use_target_rate:
            min_diff = abs(self._regression(best_tree, dates).gradient - self.target_rate)
        self.logger("TemporalRooting._find_global_root: %s of the current root: %g"
                    %(rooting_function, min_f), 2)

        total = source.node_count
        for current in range(total):
            if not source.is_root(current):
                tmp_tree = source.copy()
                tmp_tree.reroot(current, rcconf.DEFAULT_SPLIT)

                f = self._find_local_root(tmp_tree, dates, rooting_function, force_positive_rate)
                if self.use_target_rate:
                    diff = abs(self._regression(tmp_tree, dates).gradient - self.target_rate)
                    if diff<min_diff:
                        min_diff = diff
                        min_f = f
                        best_tree = tmp_tree
                elif f<min_f:
                    min_f = f
                    best_tree = tmp_tree
                self.logger("TemporalRooting._find_global_root: branch above node %d, score %g"%(current, f), 4)

            self.progress = RootSearchProgress(current+1, total)
            if progress is not None:
                progress(self.progress)

        self.best_score = min_f
        self.logger("TemporalRooting._find_global_root: best %s: %g"%(rooting_function, min_f), 2)
        return best_tree


    def _find_local_root(self, tree, dates, rooting_function, force_positive_rate):
        """
        Move the root along its two child branches to minimize the score,
        write the resulting branch lengths into `tree` and return the score.
        """
        tree.require_binary("TemporalRooting")
        if rooting_function==RootingFunction.RESIDUAL_MEAN_SQUARED and not self.is_contemporaneous:
            return self._find_analytical_local_root(tree, dates, rooting_function)

        node1, node2 = self._root_children(tree)
        length1 = tree.branch_length(node1)
        length2 = tree.branch_length(node2)
        sum_length = length1 + length2

        tip_index = {tip:i for i, tip in enumerate(tree.get_terminals())}
        tips1 = np.array([tip_index[tip] for tip in tree.get_leaves(node1)], dtype=int)
        tips2 = np.array([tip_index[tip] for tip in tree.get_leaves(node2)], dtype=int)
        distances = objectives.root_to_tip_distances(tree)

        def score(x):
            y = distances.copy()
            y[tips1] += x*sum_length - length1
            y[tips2] += (1.0-x)*sum_length - length2
            return self._score(dates, y, rooting_function, force_positive_rate)

        # coarse grid first, refined by a bounded search around its minimum
        grid = np.linspace(0, 1, rcconf.ROOT_GRID_SIZE)
        grid_scores = np.array([score(x) for x in grid])
        ii = int(np.argmin(grid_scores))
        x, fmin = grid[ii], grid_scores[ii]
        bounds = (grid[max(ii-1, 0)], grid[min(ii+1, len(grid)-1)])
        sol = minimize_scalar(score, bounds=bounds, method='bounded')
        if sol.success and sol.fun<fmin:
            x, fmin = sol.x, sol.fun

        tree.set_branch_length(node1, x*sum_length)
        tree.set_branch_length(node2, (1.0-x)*sum_length)
        return float(fmin)


    def _score(self, dates, y, rooting_function, force_positive_rate):
        if self.is_contemporaneous:
            return np.var(y, ddof=1)

        r = Regression(dates, y)
        if rooting_function==RootingFunction.CORRELATION:
            score = -r.correlation_coefficient
        elif rooting_function==RootingFunction.R_SQUARED:
            score = -r.r_squared
        elif rooting_function in (RootingFunction.HEURISTIC_RESIDUAL_MEAN_SQUARED,
                                  RootingFunction.RESIDUAL_MEAN_SQUARED):
            score = r.residual_mean_squared
        else:
            raise UnknownMethodError("unknown rooting function %s"%rooting_function)

        # negative rates are penalized: -r is already positive, R^2 changes sign
        # and a residual mean square becomes infinite
        if force_positive_rate and r.gradient<0.0:
            if rooting_function==RootingFunction.R_SQUARED:
                score = -score
            elif rooting_function!=RootingFunction.CORRELATION:
                score = np.inf
        return score


    def _find_analytical_local_root(self, tree, t, rooting_function):
        """
        Closed form position of the root between its two children that
        minimizes the residual mean square of the root-to-tip regression.
        The fraction x of the summed root branches is assigned as (1-x) to the
        first child and x to the second.
        """
        if rooting_function!=RootingFunction.RESIDUAL_MEAN_SQUARED:
            raise UnknownMethodError("Analytical local root solution only for residual mean squared")

        node1, node2 = self._root_children(tree)
        length1 = tree.branch_length(node1)
        length2 = tree.branch_length(node2)
        sum_length = length1 + length2

        terminals = tree.get_terminals()
        tip_index = {tip:i for i, tip in enumerate(terminals)}
        N = len(terminals)
        n = len(tree.get_leaves(node2))

        c = np.zeros(N, dtype=float)
        c[[tip_index[tip] for tip in tree.get_leaves(node2)]] = 1.0

        y = objectives.root_to_tip_distances(tree)
        y = y + (1-c)*(sum_length-length1) - c*(sum_length-length1)

        t = np.asarray(t, dtype=float)
        sum_tt = np.sum(t*t)
        sum_t = np.sum(t)
        sum_y = np.sum(y)
        sum_ty = np.sum(t*y)
        sum_tc = np.sum(t*c)
        y_bar = sum_y/N
        t_bar = sum_t/N

        C = sum_tt - sum_t*sum_t/N
        A = 2*c - (2.0*n-N)/N + (2*(t_bar-t)/(C*N))*(N*sum_tc - n*sum_t) - 1
        B = (y - y_bar) + ((t_bar-t)/(C*N))*(N*sum_ty - sum_t*sum_y)
        sum_ab = np.sum(A*B)
        sum_aa = np.sum(A*A)

        if sum_length>0 and sum_aa>0:
            x = min(max(-sum_ab/(sum_length*sum_aa), 0.0), 1.0)
            tree.set_branch_length(node1, (1.0-x)*sum_length)
            tree.set_branch_length(node2, x*sum_length)
        else:
            self.logger("TemporalRooting._find_analytical_local_root: degenerate root branches, "
                        "keeping the current split", 3, warn=True)

        return Regression(t, objectives.root_to_tip_distances(tree)).residual_mean_squared


    @staticmethod
    def _root_children(tree):
        children = tree.children(tree.root)
        if len(children)!=2:
            raise TopologyError("Root position can only be optimized on a binary tree, "
                                "the root has %d children"%len(children))
        return children


    def _regression(self, tree, dates):
        return Regression(dates, objectives.root_to_tip_distances(tree))


    def _as_flexible_tree(self, tree):
        if isinstance(tree, FlexibleTree):
            return tree
        elif isinstance(tree, (Tree, str)):
            return FlexibleTree(tree)
        raise TypeError("TemporalRooting: a FlexibleTree or Bio.Phylo tree is required")


####################################################################
## REGRESSIONS
####################################################################
    def get_root_to_tip_regression(self, tree):
        """Root-to-tip distance vs. time of sampling"""
        self.dates.require_heterochronous("root to tip regression")
        tree = self._as_flexible_tree(tree)
        return Regression(self.get_tip_dates(tree), self.get_root_to_tip_distances(tree))


    def get_node_density_regression(self, tree):
        """Number of nodes between root and tip vs. time of sampling"""
        self.dates.require_heterochronous("node density regression")
        tree = self._as_flexible_tree(tree)
        return Regression(self.get_tip_dates(tree), self.get_node_density(tree))


    def get_ancestor_root_to_tip_regression(self, tree, regression):
        """
        Regression for the parents of the tips, whose dates are projected
        through an existing root-to-tip `regression`.
        """
        self.dates.require_heterochronous("root to tip regression")
        tree = self._as_flexible_tree(tree)
        distances = self.get_parent_root_to_tip_distances(tree)
        dates = regression.x_intercept + distances/regression.gradient
        return Regression(dates, distances)


    def get_root_to_tip_distances(self, tree):
        return objectives.root_to_tip_distances(self._as_flexible_tree(tree))

    def get_parent_root_to_tip_distances(self, tree):
        return objectives.parent_root_to_tip_distances(self._as_flexible_tree(tree))

    def get_root_to_tip_residuals(self, tree, regression):
        return objectives.root_to_tip_residuals(self._as_flexible_tree(tree), self.dates, regression)

    def get_node_density(self, tree):
        return objectives.node_densities(self._as_flexible_tree(tree))

    def get_tip_dates(self, tree):
        return objectives.tip_dates(self._as_flexible_tree(tree), self.dates)

    def get_tip_labels(self, tree):
        return objectives.tip_labels(self._as_flexible_tree(tree))


####################################################################
## CLADE CONSTRAINTS
####################################################################
    def adjust_tree_to_constraints(self, source, clade_heights):
        """
        Push internal node heights into the bounds given for their clades.
        Heights are those of the tree itself (tallest tip at 0); a node below
        the highest of its children is moved just above it.

        Parameters
        ----------
        source : FlexibleTree
            left unchanged
        clade_heights : dict
            maps a set of tip labels to (lower, upper) height bounds

        Returns
        -------
        FlexibleTree
            copy of `source` with adjusted heights
        """
        tree = self._as_flexible_tree(source).copy()
        constraints = {frozenset(k):v for k,v in (clade_heights or {}).items()}

        for node in tree.get_nonterminals(order='postorder'):
            max_child_height = max(0.0, max(tree.height(c) for c in tree.children(node)))
            lower, upper = max_child_height, np.inf
            bounds = constraints.get(tree.clade(node))
            if bounds is not None:
                lower = max(bounds[0], max_child_height)
                upper = bounds[1]

            if lower>upper:
                raise InfeasibleConstraintError("incompatible constraints for clade %s: lower bound %g > upper bound %g"
                                                %(sorted(tree.clade(node)), lower, upper))

            height = tree.height(node)
            if height<lower:
                height = lower + rcconf.CONSTRAINT_OFFSET
            elif height>upper:
                height = 0.5*(upper + lower)
            tree.set_height(node, height)

        return tree


    def set_heights_from_dates(self, tree):
        """
        Tip heights from the sampling dates, to be used before
        :py:meth:`adjust_tree_to_constraints` on a time scaled tree.
        """
        raise NotImplementedError("TemporalRooting.set_heights_from_dates: heights from dates are not supported")

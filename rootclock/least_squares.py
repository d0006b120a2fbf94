"""
Per-node state of the least-squares dating of To et al 2016, 'Fast dating
using least-squares criteria and algorithms', Systematic Biology.

The time of every internal node i is written as a linear function of the time
of its ancestor a(i) and the inverse rate,

    t(i) = x(i)*t(a(i)) + y(i) + z(i)/omega      (post-order, children first)

which after substituting the ancestor becomes

    t(i) = u(i) + v(i)/omega                      (pre-order, parents first)

The weights of the branches are supplied as a function of the branch length,
see :py:func:`variance_weight` and :py:func:`unit_weight`.
"""
from enum import IntEnum
import numpy as np
from . import MissingDataError, NotReadyError, RootClockUnknownError


def variance_weight(c, sequence_length):
    """
    Inverse variance of a branch length estimated from `sequence_length`
    sites, w(b) = s/(b + c/s). `c` smooths the weights of short branches.
    """
    s = float(sequence_length)
    if s<=0:
        raise ValueError("variance_weight: sequence length has to be positive, got %s"%sequence_length)
    def weight(b):
        return s/(b + c/s)
    return weight


def unit_weight():
    """all branches weighted equally (ordinary least squares)"""
    def weight(b):
        return 1.0
    return weight


class Stage(IntEnum):
    CREATED = 0
    XYZ = 1       # x, y, z known
    UV = 2        # u, v known
    TIMED = 3     # time known


class LeastSquaresNode(object):
    """
    Coefficients of one internal node. Child slots are filled either with the
    sampling date of a tip (:py:meth:`set_child_time`) or with the already
    computed record of an internal child (:py:meth:`set_child_node`).
    """

    def __init__(self, nr, length, child_lengths, weight, is_root=False):
        """
        Parameters
        ----------
        nr : int
            index of the node in the tree
        length : float
            length of the branch to the ancestor, ignored for the root
        child_lengths : list
            lengths of the branches to the children
        weight : callable
            branch weight as a function of the branch length
        is_root : bool
            the root has no branch above it and weight 0
        """
        if len(child_lengths)==0:
            raise ValueError("LeastSquaresNode: node %d is a tip, only internal nodes are dated"%nr)
        self.nr = nr
        self.is_root = is_root
        self.b = 0.0 if is_root else float(length)
        self.w = 0.0 if is_root else float(weight(self.b))
        self.bs = np.array(child_lengths, dtype=float)
        self.ws = np.array([weight(b) for b in self.bs], dtype=float)

        self._child_times = [None]*len(self.bs)
        self._child_nodes = [None]*len(self.bs)
        self._coefficients = {}
        self.stage = Stage.CREATED


    def set_child_time(self, n, date):
        """sampling date of the tip in child slot `n`"""
        if date is None or np.isnan(date):
            raise MissingDataError("LeastSquaresNode: no date for child %d of node %d"%(n, self.nr))
        self._child_times[n] = float(date)
        self._child_nodes[n] = None


    def set_child_node(self, n, child):
        """x, y, z record of the internal node in child slot `n`"""
        child.require(Stage.XYZ)
        self._child_nodes[n] = child
        self._child_times[n] = None


    def compute_xyz(self):
        for n, (t, child) in enumerate(zip(self._child_times, self._child_nodes)):
            if t is None and child is None:
                raise NotReadyError("LeastSquaresNode: child %d of node %d has not been set"%(n, self.nr))

        leaf = np.array([c is None for c in self._child_nodes])
        ts = np.array([t if t is not None else 0.0 for t in self._child_times])
        xs = np.array([c.x if c is not None else 0.0 for c in self._child_nodes])
        ys = np.array([c.y if c is not None else 0.0 for c in self._child_nodes])
        zs = np.array([c.z if c is not None else 0.0 for c in self._child_nodes])

        if np.sum(self.ws)==0 or (np.sum(ts[leaf])==0 and np.sum(ys[~leaf])==0):
            raise RootClockUnknownError("LeastSquaresNode: weights or times of the children of node %d sum to zero"%self.nr)

        wsw = self.w + np.sum(self.ws) - np.sum(self.ws*xs)
        if wsw==0:
            raise RootClockUnknownError("LeastSquaresNode: total weight of node %d is zero"%self.nr)

        self._coefficients['x'] = self.w/wsw
        self._coefficients['y'] = (np.sum(self.ws*ts) + np.sum(self.ws*ys))/wsw
        self._coefficients['z'] = (self.w*self.b - np.sum(self.ws*self.bs) + np.sum(self.ws*zs))/wsw
        self.stage = Stage.XYZ


    def compute_uv(self, ancestor=None):
        """
        Substitute the time of the ancestor. The root has no ancestor, its x
        is 0 and u, v equal y, z.
        """
        self.require(Stage.XYZ)
        if ancestor is None:
            if not self.is_root:
                raise NotReadyError("LeastSquaresNode: node %d needs its ancestor to compute u, v"%self.nr)
            ua, va = 0.0, 0.0
        else:
            ancestor.require(Stage.UV)
            ua, va = ancestor.u, ancestor.v
        self._coefficients['ua'] = ua
        self._coefficients['va'] = va
        self._coefficients['u'] = self.x*ua + self.y
        self._coefficients['v'] = self.x*va + self.z
        self.stage = Stage.UV


    def rate_estimate(self):
        """
        Rate that fits the branch above this node exactly,
        (b + v(a) - v)/(u - u(a)). Not defined for the root.
        """
        if self.is_root:
            raise NotReadyError("LeastSquaresNode: the root has no branch to estimate a rate from")
        self.require(Stage.UV)
        with np.errstate(divide='ignore', invalid='ignore'):
            return np.float64(self.b + self.va - self.v)/np.float64(self.u - self.ua)


    def compute_time(self, omega):
        self.require(Stage.UV)
        self._coefficients['t'] = self.u + self.v/omega
        self.stage = Stage.TIMED
        return self.t


    def require(self, stage):
        if self.stage<stage:
            raise NotReadyError("LeastSquaresNode: node %d is at stage %s, %s is required"
                                %(self.nr, self.stage.name, stage.name))


    def _get(self, key, stage):
        self.require(stage)
        return self._coefficients[key]

    @property
    def x(self):
        return self._get('x', Stage.XYZ)

    @property
    def y(self):
        return self._get('y', Stage.XYZ)

    @property
    def z(self):
        return self._get('z', Stage.XYZ)

    @property
    def u(self):
        return self._get('u', Stage.UV)

    @property
    def v(self):
        return self._get('v', Stage.UV)

    @property
    def ua(self):
        return self._get('ua', Stage.UV)

    @property
    def va(self):
        return self._get('va', Stage.UV)

    @property
    def t(self):
        return self._get('t', Stage.TIMED)

version="0.3.0"
## Here we define an error class for rootclock errors. MissingData, Contemporaneous, Topology,
## InfeasibleConstraint, UnknownMethod and NotReady errors are all due to incorrect calling of
## rootclock functions or input data that does not fit the base assumptions of the algorithms.
## Errors marked as RootClockUnknownError are due to numerically degenerate input or to bugs
## in rootclock. Please report them to the developers if they persist.
class RootClockError(Exception):
    """
    RootClockError class
    Parent class for more specific errors
    Raised when rootclock is used incorrectly in contrast with `RootClockUnknownError`
    `RootClockUnknownError` is raised when the reason of the error is unknown, could indicate bug
    """
    pass

class MissingDataError(RootClockError):
    """MissingDataError class raised when the tree, a tip date or a taxon is missing"""
    pass

class ContemporaneousTipsError(RootClockError):
    """ContemporaneousTipsError class raised when an analysis needs variation in the sampling dates"""
    pass

class TopologyError(RootClockError):
    """TopologyError class raised when a strictly bifurcating tree is required"""
    pass

class InfeasibleConstraintError(RootClockError):
    """InfeasibleConstraintError class raised when a clade height constraint has lower > upper"""
    pass

class UnknownMethodError(RootClockError):
    """UnknownMethodError class raised when an unknown rooting function is requested"""
    pass

class NotReadyError(RootClockError):
    """NotReadyError class raised when results are requested before they are computed"""
    pass

class RootClockUnknownError(Exception):
    """RootClockUnknownError class raised when an algorithm runs into degenerate numbers (all-zero weights or times). This might be due to data not fulfilling base assumptions or due to bugs in rootclock. Please report them to the developers if they persist."""
    pass

from .flexible_tree import FlexibleTree
from .tip_dates import TipDates
from .regression import Regression
from .temporal_rooting import TemporalRooting, RootingFunction, RootSearchProgress
from .linear_dating import LinearDating
from .argument_parser import make_parser

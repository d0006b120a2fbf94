VERBOSE = 3

# tip sets whose date span is below this are treated as sampled at the same time
CONTEMPORANEOUS_TOLERANCE = 1e-8

# tree arena
NO_PARENT = -1

# rooting
DEFAULT_SPLIT = 0.5      # proportion of a branch at which a candidate root is placed
ROOT_GRID_SIZE = 5       # coarse grid on [0,1] evaluated before the bounded 1-D search
CONSTRAINT_OFFSET = 1e-6 # added to a lower height bound when a node is pushed up

# linear dating
LINEAR_DATING_C = 10     # smoothing constant of the branch weights (To et al, eq. 4)
MIN_OMEGA = 1e-10        # default lower bound of the substitution rate

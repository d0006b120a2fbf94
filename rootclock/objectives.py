"""
Quantities used to score a root position: distances from the root to the
tips, numbers of nodes on the path to the root, and the tip dates aligned
with them. All arrays are ordered like `tree.get_terminals()`. None of these
functions changes the tree.
"""
import numpy as np


def root_to_tip_distance(tree, node):
    """sum of the branch lengths on the path from `node` up to the root"""
    distance = 0.0
    while not tree.is_root(node):
        distance += tree.branch_length(node)
        node = tree.parent(node)
    return distance


def node_depth(tree, node):
    """number of edges on the path from `node` up to the root"""
    depth = 0
    while not tree.is_root(node):
        depth += 1
        node = tree.parent(node)
    return depth


def root_to_tip_distances(tree):
    return np.array([root_to_tip_distance(tree, tip) for tip in tree.get_terminals()], dtype=float)


def parent_root_to_tip_distances(tree):
    """root-to-tip distance of the parent of every tip"""
    return np.array([root_to_tip_distance(tree, tree.parent(tip)) for tip in tree.get_terminals()], dtype=float)


def node_densities(tree):
    return np.array([node_depth(tree, tip) for tip in tree.get_terminals()], dtype=float)


def tip_labels(tree):
    return [tree.name(tip) for tip in tree.get_terminals()]


def tip_dates(tree, dates):
    """
    Parameters
    ----------
    dates : TipDates
        lookup fails with MissingDataError for taxa without a date
    """
    return np.array([dates[tree.name(tip)] for tip in tree.get_terminals()], dtype=float)


def root_to_tip_residuals(tree, dates, regression):
    return np.array([regression.residual(dates[tree.name(tip)], root_to_tip_distance(tree, tip))
                     for tip in tree.get_terminals()], dtype=float)

import sys
from textwrap import fill
from . import FlexibleTree, TipDates, TemporalRooting, RootingFunction, LinearDating
from . import utils
from . import RootClockError, UnknownMethodError
from .CLI_io import *


def load_inputs(params):
    """read tree and dates, print a message and return None on failure"""
    try:
        tree = FlexibleTree(params.tree)
    except RootClockError as e:
        print("\nERROR: could not read the tree %s\n"%params.tree, file=sys.stderr)
        raise e

    dates = TipDates(utils.parse_dates(params.dates, date_col=params.date_column,
                                       name_col=params.name_column))
    missing = [n for n in (tree.name(tip) for tip in tree.get_terminals()) if n not in dates]
    if len(missing):
        print("ERROR: the following tips have no date:\n\t"+"\n\t".join(missing), file=sys.stderr)
        return None, None
    return tree, dates


def estimate_clock_model(params):
    """
    implementing rootclock clock
    """
    tree, dates = load_inputs(params)
    if tree is None:
        return 1

    outdir = get_outdir(params, '_clock')

    rooting = TemporalRooting(dates, force_positive_rate=not params.allow_negative_rate,
                              target_rate=params.target_rate, verbose=params.verbose)
    if rooting.is_contemporaneous:
        print("ERROR: all tips have the same date, a root-to-tip regression is not possible.", file=sys.stderr)
        return 1

    try:
        rooting_function = RootingFunction.from_string(params.rooting_function)
    except UnknownMethodError as e:
        print("ERROR: unknown rooting function!")
        raise e

    if params.keep_root:
        rooted_tree = tree
    elif params.local:
        rooted_tree = rooting.find_local_root(tree, rooting_function)
    else:
        def report(progress):
            if params.verbose>3:
                print("\tbranch %d of %d"%progress)
        rooted_tree = rooting.find_root(tree, rooting_function, progress=report)

    regression = rooting.get_root_to_tip_regression(rooted_tree)
    print('\n', regression)
    print(fill('The R^2 value indicates the fraction of variation in '
          'root-to-tip distance explained by the sampling times. '
          'Higher values corresponds more clock-like behavior (max 1.0).')+'\n')

    print(fill('The rate is the slope of the best fit of the date to '
          'the root-to-tip distance and provides an estimate of '
          'the substitution rate. The rate needs to be positive! '
          'Negative rates suggest an inappropriate root.')+'\n')

    print('\nThe estimated rate and tree correspond to a root date:')
    print('\n--- root-date:\t %3.2f\n\n'%regression.x_intercept)

    if not params.keep_root:
        write_tree(rooted_tree, outdir+'rerooted.newick')

    write_rtt_table(rooting, rooted_tree, regression, outdir+'rtt.csv')

    if params.plot_rtt:
        plot_rtt(rooting, rooted_tree, regression, outdir+params.plot_rtt)
    return 0


def linear_dating(params):
    """
    implementing rootclock lsd
    """
    tree, dates = load_inputs(params)
    if tree is None:
        return 1

    outdir = get_outdir(params, '_lsd')

    if params.reroot:
        rooting = TemporalRooting(dates, verbose=params.verbose)
        tree = rooting.find_root(tree, RootingFunction.from_string(params.rooting_function))
        write_tree(tree, outdir+'rerooted.newick')

    try:
        dating = LinearDating(tree, dates, params.sequence_length, min_omega=params.min_rate,
                              c=params.c, weighted=not params.unweighted, verbose=params.verbose)
        omega = dating.run()
    except RootClockError as e:
        print("\nLinear dating failed. Please see above for error messages and/or rerun with --verbose 4\n")
        raise e

    print("\n--- substitution rate:\t%1.3e"%omega)
    print("--- root date:\t\t%3.2f (%s)\n"%(dating.root_date, utils.datestring_from_numeric(dating.root_date)))
    write_dates_table(dating, outdir+'dates.tsv')
    return 0

#!/usr/bin/env python
import argparse
from rootclock.wrappers import estimate_clock_model, linear_dating
import rootclock
from rootclock import config as rcconf


rootclock_description = \
    "rootclock: temporal rooting and least-squares dating of phylogenies\n\n"\
    "rootclock implements the following sub-commands:\n\n"\
    "\t clock\t\tfind the root that maximizes the temporal signal and report the root-to-tip regression.\n"\
    "\t lsd\t\testimate the substitution rate and the dates of internal nodes by least squares.\n"\
    "\t version\tprint the version.\n\n"\
    "To print a description and argument list of the individual sub-commands, type:\n\n"\
    "\t rootclock <subcommand> -h\n\n"

tree_description = "Name of file containing the tree in newick or nexus format. "\
    "The tree has to be strictly bifurcating."

dates_description = "csv file with dates for nodes with 'node_name, date' where date is float (as in 2012.15)"

rooting_function_description = "Score used to compare root positions. Valid choices are "\
    "'correlation', 'r-squared', 'residual-mean-squared' and 'heuristic-residual-mean-squared'. "\
    "'residual-mean-squared' places the root analytically on each branch, "\
    "the others use a numerical search along the branch."

clock_description = \
    "Calculates the root-to-tip regression and quantifies the 'clock-i-ness' of the tree. "\
    "It will reroot the tree to maximize the clock-like signal unless run with --keep-root."

lsd_description = \
    "Estimates the substitution rate and the dates of all internal nodes of a rooted tree "\
    "by weighted least squares (To et al 2016). Writes the dates to 'dates.tsv'."


def add_dates_args(parser):
    parser.add_argument('--tree', required=True, type=str, help=tree_description)
    parser.add_argument('--dates', required=True, type=str, help=dates_description)
    parser.add_argument('--name-column', type=str, help="label of the column to be used as taxon name")
    parser.add_argument('--date-column', type=str, help="label of the column to be used as sampling date")


def add_rooting_function_arg(parser):
    parser.add_argument('--rooting-function', default='correlation', type=str,
                        help=rooting_function_description)


def add_common_args(parser):
    parser.add_argument('--verbose', default=1, type=int,  help='verbosity of output 0-6')
    parser.add_argument('--outdir', type=str,  help='directory to write the output to')


def make_parser():
    parser = argparse.ArgumentParser(description = "",
                                     usage=rootclock_description)

    subparsers = parser.add_subparsers()

    ## CLOCKSIGNAL
    c_parser = subparsers.add_parser('clock', description=clock_description)
    add_dates_args(c_parser)
    add_rooting_function_arg(c_parser)
    reroot_group = c_parser.add_mutually_exclusive_group()
    reroot_group.add_argument('--keep-root', required = False, action="store_true", default=False,
            help ="don't reroot the tree. Otherwise, search all branches for the root "
                  "that optimizes the rooting function")
    reroot_group.add_argument('--local', required = False, action="store_true", default=False,
            help ="only optimize the position of the root between its two children")
    c_parser.add_argument('--allow-negative-rate', required = False, action="store_true", default=False,
                          help="By default, root positions with negative rates are penalized. For trees with little temporal "
                               "signal it is advisable to remove this restriction.")
    c_parser.add_argument('--target-rate', type=float,
                          help="choose the root whose root-to-tip rate is closest to this rate")
    c_parser.add_argument('--plot-rtt', default="root_to_tip_regression.pdf",
                            help = "filename to save the plot to. Suffix will determine format"
                                   " (choices pdf, png, svg, default=pdf)")
    add_common_args(c_parser)
    c_parser.set_defaults(func=estimate_clock_model)

    ## LINEAR DATING
    l_parser = subparsers.add_parser('lsd', description=lsd_description)
    add_dates_args(l_parser)
    l_parser.add_argument('--sequence-length', required=True, type=int, help="length of the sequence, "
                              "used to calculate expected variation in branch length.")
    l_parser.add_argument('--c', default=rcconf.LINEAR_DATING_C, type=float,
                          help="smoothing constant of the branch weights, default=%s"%rcconf.LINEAR_DATING_C)
    l_parser.add_argument('--min-rate', default=rcconf.MIN_OMEGA, type=float,
                          help="lower bound of the substitution rate, default=%s"%rcconf.MIN_OMEGA)
    l_parser.add_argument('--unweighted', action='store_true', default=False,
                          help="weight all branches equally instead of by their expected variance")
    l_parser.add_argument('--reroot', action='store_true', default=False,
                          help="search the best root with the temporal rooting before dating")
    add_rooting_function_arg(l_parser)
    add_common_args(l_parser)
    l_parser.set_defaults(func=linear_dating)

    # make a version subcommand
    v_parser = subparsers.add_parser('version', description='print version')
    v_parser.set_defaults(func=lambda x: print(rootclock.version))

    def toplevel(params):
        print(rootclock_description)
    parser.set_defaults(func=toplevel)

    return parser

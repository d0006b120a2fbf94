import os, sys
import numpy as np
from Bio import Phylo
from .utils import datestring_from_numeric


def get_outdir(params, suffix='_rootclock'):
    if params.outdir:
        if os.path.exists(params.outdir):
            if os.path.isdir(params.outdir):
                return params.outdir.rstrip('/') + '/'
            else:
                print("designated output location %s is not a directory"%params.outdir, file=sys.stderr)
        else:
            os.makedirs(params.outdir)
            return params.outdir.rstrip('/') + '/'

    from datetime import datetime
    outdir_stem = datetime.now().date().isoformat()
    outdir = outdir_stem + suffix.rstrip('/')+'/'
    count = 1
    while os.path.exists(outdir):
        outdir = outdir_stem + '-%04d'%count + suffix.rstrip('/')+'/'
        count += 1

    os.makedirs(outdir)
    return outdir


def node_label(tree, nr):
    """taxon or internal node name, 'NODE_<nr>' for unnamed internal nodes"""
    name = tree.name(nr)
    return name if name is not None else 'NODE_%07d'%nr


def write_tree(tree, fname):
    """write a FlexibleTree as newick via Bio.Phylo"""
    Phylo.write(tree.to_phylo(), fname, 'newick')
    print("--- re-rooted tree written to \n\t%s\n"%fname)


def write_rtt_table(rooting, tree, regression, fname):
    distances = rooting.get_root_to_tip_distances(tree)
    dates = rooting.get_tip_dates(tree)
    residuals = rooting.get_root_to_tip_residuals(tree, regression)
    with open(fname, 'w', encoding='utf-8') as ofile:
        ofile.write("name, date, root-to-tip distance, residual\n")
        for name, date, dist, res in zip(rooting.get_tip_labels(tree), dates, distances, residuals):
            ofile.write("%s, %f, %f, %f\n"%(name, date, dist, res))
    print("--- wrote dates and root-to-tip distances to \n\t%s\n"%fname)


def write_dates_table(dating, fname):
    tree = dating.tree
    with open(fname, 'w', encoding='utf-8') as ofile:
        ofile.write('#rate: %e\n'%dating.omega)
        ofile.write('#node\tdate\tnumeric date\n')
        for nr in tree.get_nonterminals(order='preorder'):
            numdate = dating.get_time(nr)
            ofile.write('%s\t%s\t%f\n'%(node_label(tree, nr), datestring_from_numeric(numdate), numdate))
    print("--- wrote dates of internal nodes to \n\t%s\n"%fname)


def plot_rtt(rooting, tree, regression, fname, ax=None, fs=14):
    """
    Plot root-to-tip distance vs sampling date with the regression line.
    """
    from matplotlib import pyplot as plt
    if ax is None:
        plt.figure()
        ax = plt.subplot(111)

    xi = rooting.get_tip_dates(tree)
    yi = rooting.get_root_to_tip_distances(tree)
    t_mrca = regression.x_intercept
    time_span = np.max(xi) - np.min(xi)
    x_vals = np.array([max(np.min(xi), t_mrca) - 0.1*time_span, np.max(xi) + 0.05*time_span])

    ax.plot(x_vals, regression.predict(x_vals),
            label = r"$y=\alpha + \beta t$"+"\n"+
                    r"$\beta=$%1.2e"%(regression.gradient)
                    + "\nroot date: %1.1f"%t_mrca)
    ax.scatter(xi, yi, label="tips")
    ax.set_ylim([0, 1.1*np.max(yi)])
    ax.set_ylabel('root-to-tip distance', fontsize=fs)
    ax.set_xlabel('date', fontsize=fs)
    ax.ticklabel_format(useOffset=False)
    ax.tick_params(labelsize=fs*0.8)
    for loc in ['top', 'right']:
        ax.spines[loc].set_visible(False)
    ax.legend(loc=2, fontsize=fs)
    plt.tight_layout()

    plt.savefig(fname)
    print("--- root-to-tip plot saved to  \n\t"+fname)

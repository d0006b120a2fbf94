import numpy as np
import pytest

NWK = "((((A:1,B:1):1,C:2):2,D:3):3,E:5);"
DATES = {'A':2017, 'B':2017, 'C':2016, 'D':2015, 'E':2012}

# strict clock with rate 0.01 and the root in 2000, X=(A,B) in 2005, Y=(C,D) in 2008
CLOCK_NWK = "((A:0.05,B:0.07):0.05,(C:0.03,D:0.07):0.08);"
CLOCK_DATES = {'A':2010, 'B':2012, 'C':2011, 'D':2015}


def quiet_logger(msg, level, warn=False, only_once=False):
    pass


def get_dating(nwk=NWK, dates=DATES, **kwargs):
    from rootclock import FlexibleTree, LinearDating
    params = {'sequence_length':1000, 'logger':quiet_logger}
    params.update(kwargs)
    return LinearDating(FlexibleTree.from_newick(nwk), dates, **params)


@pytest.mark.parametrize("weighted", [True, False])
def test_strict_clock(weighted):
    dating = get_dating(CLOCK_NWK, CLOCK_DATES, weighted=weighted)
    omega = dating.run()
    assert abs(omega - 0.01)<1e-8
    assert omega==dating.omega
    times = dating.times()
    assert set(times)=={4, 5, 6}
    assert abs(times[4] - 2005)<1e-6
    assert abs(times[5] - 2008)<1e-6
    assert abs(dating.root_date - 2000)<1e-6
    assert all(abs(r - 0.01)<1e-8 for r in dating.rate_estimates().values())


def test_omega_floor():
    dating = get_dating()
    omega = dating.run()
    assert np.isfinite(omega)
    assert omega>=dating.min_omega
    assert all(np.isfinite(t) for t in dating.times().values())

    floor = get_dating(min_omega=10.0)
    assert floor.run()==10.0
    assert min(floor.rate_estimates().values())<10.0


def test_invalid_min_omega():
    from rootclock import RootClockError
    with pytest.raises(RootClockError):
        get_dating(min_omega=0.0)


def test_results_before_run():
    from rootclock import NotReadyError
    dating = get_dating()
    with pytest.raises(NotReadyError):
        dating.omega
    with pytest.raises(NotReadyError):
        dating.get_time(dating.tree.root)


def test_pass_order():
    from rootclock import NotReadyError
    dating = get_dating()
    # parents before children requires the coefficients of the first pass
    with pytest.raises(NotReadyError):
        dating.pre_order_pass()

    dating.post_order_pass()
    with pytest.raises(NotReadyError):
        dating.compute_omega()
    with pytest.raises(NotReadyError):
        dating.get_time(dating.tree.root)

    dating.pre_order_pass()
    omega = dating.compute_omega()
    dating.compute_times(omega)
    assert np.isfinite(dating.get_time(dating.tree.root))


def test_children_before_parents():
    from rootclock.least_squares import LeastSquaresNode, Stage, unit_weight
    from rootclock import NotReadyError
    weight = unit_weight()
    child = LeastSquaresNode(5, 1.0, [1.0, 1.0], weight)
    parent = LeastSquaresNode(6, 1.0, [1.0, 2.0], weight)
    with pytest.raises(NotReadyError):
        parent.set_child_node(0, child)
    parent.set_child_time(1, 2016)
    # slot 0 is still empty
    with pytest.raises(NotReadyError):
        parent.compute_xyz()

    child.set_child_time(0, 2017)
    child.set_child_time(1, 2017)
    child.compute_xyz()
    assert child.stage==Stage.XYZ
    parent.set_child_node(0, child)
    parent.compute_xyz()
    # with only tips as children the record reduces to the plain weighted averages
    assert abs(child.x - 1.0/3.0)<1e-12
    assert abs(child.y - 2*2017/3.0)<1e-9
    assert abs(child.z - (1.0 - 2.0)/3.0)<1e-12


def test_least_squares_node_errors():
    from rootclock.least_squares import LeastSquaresNode, variance_weight
    from rootclock import NotReadyError, MissingDataError, RootClockUnknownError
    weight = variance_weight(10, 1000)
    root = LeastSquaresNode(4, 0.0, [1.0, 1.0], weight, is_root=True)
    assert root.w==0.0
    root.set_child_time(0, 2010)
    root.set_child_time(1, 2012)
    root.compute_xyz()
    with pytest.raises(NotReadyError):
        root.u
    root.compute_uv()
    assert root.u==root.y and root.v==root.z
    with pytest.raises(NotReadyError):
        root.rate_estimate()

    internal = LeastSquaresNode(3, 1.0, [1.0, 1.0], weight)
    with pytest.raises(MissingDataError):
        internal.set_child_time(0, np.nan)
    internal.set_child_time(0, 0.0)
    internal.set_child_time(1, 0.0)
    with pytest.raises(RootClockUnknownError):
        internal.compute_xyz()

    with pytest.raises(ValueError):
        LeastSquaresNode(0, 1.0, [], weight)


def test_weights():
    from rootclock.least_squares import variance_weight, unit_weight
    w = variance_weight(10, 1000)
    assert abs(w(0.0) - 1000/(10/1000))<1e-9
    assert w(0.1)<w(0.01)
    assert unit_weight()(0.5)==1.0
    with pytest.raises(ValueError):
        variance_weight(10, 0)


def test_contemporaneous_tips():
    from rootclock import ContemporaneousTipsError
    with pytest.raises(ContemporaneousTipsError):
        get_dating(dates={k:2015.0 for k in DATES})


def test_non_binary_tree():
    from rootclock import TopologyError
    with pytest.raises(TopologyError):
        get_dating(nwk="(((A:1,B:1,C:2):2,D:3):3,E:5);")


def test_missing_date():
    from rootclock import MissingDataError
    dates = dict(DATES)
    dates.pop('C')
    with pytest.raises(MissingDataError):
        get_dating(dates=dates)


def test_dating_after_rooting():
    from rootclock import FlexibleTree, TemporalRooting, LinearDating
    rooting = TemporalRooting(DATES, logger=quiet_logger)
    rooted = rooting.find_root(FlexibleTree.from_newick(NWK), 'residual-mean-squared')
    dating = LinearDating(rooted, DATES, 1000, logger=quiet_logger)
    dating.run()
    assert set(dating.times())==set(rooted.get_nonterminals())

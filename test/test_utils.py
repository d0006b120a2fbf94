import datetime
import numpy as np
import pytest


def write_dates(tmp_path, content, fname="dates.csv"):
    path = tmp_path/fname
    path.write_text(content)
    return str(path)


def test_parse_dates(tmp_path):
    from rootclock.utils import parse_dates
    fname = write_dates(tmp_path, "name,date\n"
                                  "A,2017.5\n"
                                  "B,2016-06-15\n"
                                  "C,2015-XX-XX\n"
                                  "D,[2010.2:2011.4]\n"
                                  "E,\n")
    dates = parse_dates(fname)
    assert dates['A']==2017.5
    assert 2016.4<dates['B']<2016.5
    assert len(dates['C'])==2 and 2015<=dates['C'][0]<dates['C'][1]<2016
    assert dates['D']==[2010.2, 2011.4]
    assert dates['E'] is None


def test_parse_dates_columns(tmp_path):
    from rootclock.utils import parse_dates
    from rootclock import RootClockError
    fname = write_dates(tmp_path, "strain\tcollection_date\tsampling\nA\t2001.1\t2011\nB\t2002.2\t2012\n", "dates.tsv")
    assert parse_dates(fname)=={'A':2001.1, 'B':2002.2}
    assert parse_dates(fname, date_col='sampling')=={'A':2011.0, 'B':2012.0}

    with pytest.raises(RootClockError):
        parse_dates(fname, date_col='year')
    with pytest.raises(RootClockError):
        parse_dates(fname, name_col='taxon')
    with pytest.raises(RootClockError):
        parse_dates(str(tmp_path/"missing.csv"))


def test_tip_dates(tmp_path):
    from rootclock import TipDates, MissingDataError, ContemporaneousTipsError
    fname = write_dates(tmp_path, "name,date\nA,2017\nB,[2010:2012]\nC,\n")
    dates = TipDates.from_file(fname)
    assert len(dates)==2
    assert dates['B']==2011.0
    assert 'C' not in dates
    assert dates.date_range==6.0
    assert not dates.contemporaneous
    with pytest.raises(MissingDataError):
        dates['C']

    same = TipDates({'A':2015.0, 'B':2015.0 + 1e-10})
    assert same.contemporaneous
    with pytest.raises(ContemporaneousTipsError):
        same.require_heterochronous("root to tip regression")
    with pytest.raises(MissingDataError):
        TipDates({'A':None})


def test_numeric_dates():
    from rootclock.utils import numeric_date, datetime_from_numeric, datestring_from_numeric
    d = numeric_date(datetime.datetime(2018, 1, 1))
    assert abs(d - (2018 + 0.5/365))<1e-12
    assert datetime_from_numeric(d).date()==datetime.date(2018, 1, 1)
    assert datestring_from_numeric(2018.5)=="2018-07-02"


def test_ambiguous_dates():
    from rootclock.utils import date_range_from_ambiguous, parse_date_value
    assert date_range_from_ambiguous("2017-02-XX")==(datetime.date(2017, 2, 1), datetime.date(2017, 2, 28))
    assert date_range_from_ambiguous("2016-XX-XX")==(datetime.date(2016, 1, 1), datetime.date(2016, 12, 31))
    assert date_range_from_ambiguous("XXXX-05-01") is None
    assert date_range_from_ambiguous("2016/05/XX") is None
    lower, upper = date_range_from_ambiguous("%d-XX-XX"%datetime.date.today().year)
    assert upper==datetime.date.today()

    assert parse_date_value("[2001:2002.5]")==[2001.0, 2002.5]
    assert parse_date_value("XXXX-XX-XX") is None
    assert parse_date_value(float("nan")) is None


def test_timed_logger(capsys):
    from rootclock.utils import TimedLogger
    logger = TimedLogger(verbose=2)
    logger("shown", 1)
    logger("hidden", 2)
    logger("warning", 2, warn=True)
    logger("warning", 2, warn=True, only_once=True)
    out = capsys.readouterr().out
    assert "shown" in out
    assert "hidden" not in out
    assert out.count("warning")==1

import os, sys, time
from calendar import isleap, monthrange
from textwrap import fill
import datetime
import pandas as pd
from . import RootClockError


def days_in_year(year):
    return 366 if isleap(year) else 365


def numeric_date(dt=None):
    """
    Decimal year YYYY.F of `dt` (default: now), where F is the fraction of
    the year elapsed at noon of that day.
    """
    if dt is None:
        dt = datetime.datetime.now()
    return dt.year + (dt.timetuple().tm_yday - 0.5)/days_in_year(dt.year)


def datetime_from_numeric(numdate):
    """
    Day containing the decimal year `numdate`. Only years >= 1 can be represented.
    """
    year = int(numdate)
    # 1e-10 keeps exact day boundaries such as 2018 + 3/365 on the right day
    day = int((numdate - year + 1e-10)*days_in_year(year))
    return datetime.datetime(year, 1, 1) + datetime.timedelta(days=day)


def datestring_from_numeric(numdate):
    """decimal year as YYYY-MM-DD"""
    dt = datetime_from_numeric(numdate)
    return "%04d-%02d-%02d"%(dt.year, dt.month, dt.day)


def date_range_from_ambiguous(date_str):
    """
    Bounds of a YYYY-MM-DD date with unknown month or day written as XX,
    e.g. 2017-05-XX is (2017-05-01, 2017-05-31). The upper bound is capped
    at today. Returns None if the string can't be parsed or the year is unknown.
    """
    fields = date_str.split('-')
    if len(fields)!=3 or 'XX' in fields[0]:
        return None
    try:
        year = int(fields[0])
        months = (1, 12) if 'XX' in fields[1] else (int(fields[1]),)*2
        lower_day = 1 if 'XX' in fields[2] else int(fields[2])
        upper_day = monthrange(year, months[1])[1] if 'XX' in fields[2] else int(fields[2])
        lower = datetime.date(year, months[0], lower_day)
        upper = datetime.date(year, months[1], upper_day)
    except ValueError:
        return None
    return lower, min(upper, datetime.date.today())


def parse_date_value(date_str):
    """
    Numeric date or [lower, upper] range from one entry of a date column.
    Accepts decimal years, [2002.2:2004.3], anything pandas.to_datetime reads,
    and ambiguous dates such as 2018-05-XX. Empty or unreadable entries give None.
    """
    if not isinstance(date_str, str) or date_str=='':
        return None
    try:
        return float(date_str)
    except ValueError:
        pass

    if date_str.startswith('[') and date_str.endswith(']'):
        bounds = date_str[1:-1].split(':')
        if len(bounds)==2:
            try:
                return [float(x) for x in bounds]
            except ValueError:
                pass

    try:
        return numeric_date(pd.to_datetime(date_str))
    except ValueError:
        bounds = date_range_from_ambiguous(date_str)
        if bounds is None:
            print("Can't parse date string: "+date_str, file=sys.stderr)
            return None
        return [numeric_date(x) for x in bounds]


def _pick_column(df, requested, matches, what):
    if requested:
        if requested not in df.columns:
            raise RootClockError("ERROR: specified column for %s does not exist. \n\tAvailable columns are: "%what
                                 +", ".join(df.columns)+"\n\tYou specified '%s'"%requested)
        return requested
    candidates = [col for col in df.columns if matches(col.lower())]
    if not candidates:
        return None
    return candidates[0]


def parse_dates(date_file, name_col=None, date_col=None):
    """
    parse dates from a csv or tsv file and return a dictionary mapping
    taxon names to numerical dates.

    Parameters
    ----------
    date_file : str
        name of file to parse meta data from
    name_col : str, optional
        column with the taxon names. Default: first column called 'name',
        'strain' or 'accession'
    date_col : str, optional
        column with the dates. Default: first column whose header contains 'date'

    Returns
    -------
    dict
        taxon name -> numeric date, [lower, upper] for ranges and ambiguous
        dates, None for missing entries. See :py:func:`parse_date_value`.
    """
    print("\nAttempting to parse dates...")
    if not os.path.isfile(date_file):
        raise RootClockError("ERROR: file %s does not exist"%date_file)
    sep = '\t' if date_file.endswith('.tsv') else r'\s*,\s*'
    df = pd.read_csv(date_file, sep=sep, engine='python', dtype='str', index_col=False)
    # quoted entries
    for col in df.columns:
        df[col] = df[col].map(lambda v: v.strip('"\'') if isinstance(v, str) else v)

    index_col = _pick_column(df, name_col, lambda c: c in ['name', 'strain', 'accession'], "the taxon name")
    if index_col is None:
        raise RootClockError("ERROR: Cannot read metadata: need at least one column that contains the taxon labels."
              " Looking for the first column that contains 'name', 'strain', or 'accession' in the header.")
    print("\tUsing column '%s' as name. This needs match the taxon names in the tree!!"%index_col)

    date_col = _pick_column(df, date_col, lambda c: 'date' in c, "dates")
    if date_col is None:
        raise RootClockError("ERROR: Metadata file has no column which looks like a sampling date!")
    print("\tUsing column '%s' as date."%date_col)

    dates = {name:parse_date_value(value) for name, value in zip(df[index_col], df[date_col])}
    if all(v is None for v in dates.values()):
        raise RootClockError("ERROR: Cannot parse dates correctly! Check date format.")
    return dates


class TimedLogger(object):
    """
    Callable used as the `logger` of the rootclock algorithms.
    Prints time-stamped messages that are indented by their level.
    """
    def __init__(self, verbose=3):
        self.t_start = time.time()
        self.verbose = verbose
        self.log_messages = set()

    def __call__(self, msg, level, warn=False, only_once=False):
        """
        Print log message *msg* to stdout.

        Parameters
        -----------

         msg : str
            String to print on the screen

         level : int
            Log-level. Only the messages with a level lower than the
            current verbose level will be shown.

         warn : bool
            Warning flag. If True, the message will also be shown if
            the log-level equals the verbose level.

         only_once : bool
            Show a message only the first time it is logged.

        """
        if only_once and msg in self.log_messages:
            return

        self.log_messages.add(msg)

        lw=80
        if level<self.verbose or (warn and level<=self.verbose):
            dt = time.time() - self.t_start
            outstr = '\n' if level<2 else ''
            initial_indent = format(dt, '4.2f')+'\t' + level*'-'
            subsequent_indent = " "*len(format(dt, '4.2f')) + "\t" + " "*level
            outstr += fill(msg, width=lw, initial_indent=initial_indent, subsequent_indent=subsequent_indent)
            print(outstr, file=sys.stdout)

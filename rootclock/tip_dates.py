import numpy as np
from . import config as rcconf
from . import MissingDataError, ContemporaneousTipsError


class TipDates(object):
    """
    Sampling dates of the tips, keyed by taxon label.

    Date ranges (as returned by :py:func:`rootclock.utils.parse_dates` for
    entries like '2017-XX-XX') are replaced by their midpoint, taxa without
    a date are dropped.
    """

    def __init__(self, dates, tolerance=rcconf.CONTEMPORANEOUS_TOLERANCE):
        """
        Parameters
        ----------
        dates : dict
            mapping taxon label -> numeric date (float, or [lower, upper])
        tolerance : float
            tips are considered contemporaneous if the dates span less than this
        """
        self._dates = {}
        for taxon, date in dates.items():
            if date is None:
                continue
            value = float(np.mean(date)) if np.ndim(date) else float(date)
            if np.isnan(value):
                continue
            self._dates[str(taxon)] = value

        if len(self._dates)==0:
            raise MissingDataError("TipDates: no valid dates given!")

        self.date_min = min(self._dates.values())
        self.date_max = max(self._dates.values())
        self.contemporaneous = abs(self.date_max - self.date_min) < tolerance


    @classmethod
    def from_file(cls, date_file, name_col=None, date_col=None, **kwargs):
        """read dates from a csv/tsv file, see :py:func:`rootclock.utils.parse_dates`"""
        from .utils import parse_dates
        return cls(parse_dates(date_file, name_col=name_col, date_col=date_col), **kwargs)


    @property
    def date_range(self):
        return self.date_max - self.date_min


    def require_heterochronous(self, analysis):
        """raise if the dates do not vary enough for `analysis`"""
        if self.contemporaneous:
            raise ContemporaneousTipsError("Cannot do a %s on contemporaneous tips"%analysis)


    def __getitem__(self, taxon):
        try:
            return self._dates[taxon]
        except KeyError:
            raise MissingDataError("Taxon, %s, not found in taxon list"%taxon)

    def __contains__(self, taxon):
        return taxon in self._dates

    def __len__(self):
        return len(self._dates)

    def __iter__(self):
        return iter(self._dates)

    def items(self):
        return self._dates.items()

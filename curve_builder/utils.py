import QuantLib as ql
import pandas as pd

from .errors import InvalidArgumentError


class DateUtils:
    """Small helpers to keep date/period parsing in one place."""

    @staticmethod
    def to_ql_date(d):
        """Convert common Python date representations into QuantLib.Date."""
        if isinstance(d, ql.Date):
            return d
        if isinstance(d, str):
            d = pd.to_datetime(d).date()
        elif isinstance(d, pd.Timestamp):
            d = d.date()
        return ql.Date(d.day, d.month, d.year)

    @staticmethod
    def parse_period(s):
        """Parse strings such as '1Mo', '3Mo', '1Yr', '10Yr', '6M', '1Y'."""
        s = str(s).strip().upper()
        # Normalize common suffixes
        s = s.replace("MONTH", "M").replace("MO", "M")
        s = s.replace("YEAR", "Y").replace("YR", "Y")
        try:
            if s.endswith("M"):
                return ql.Period(int(s[:-1]), ql.Months)
            if s.endswith("Y"):
                return ql.Period(int(s[:-1]), ql.Years)
            if s.endswith("W"):
                return ql.Period(int(s[:-1]), ql.Weeks)
            if s.endswith("D"):
                return ql.Period(int(s[:-1]), ql.Days)
        except ValueError as exc:
            raise InvalidArgumentError(f"Cannot parse tenor {s!r}") from exc
        raise InvalidArgumentError(f"Cannot parse tenor {s!r}")

    @staticmethod
    def period_to_years(period):
        """Return the length of a QuantLib.Period in years.

        Months and weeks are converted on a 12/52 basis so that '3M' maps
        exactly to 0.25, matching the quarterly swap grid.
        """
        n = float(period.length())
        units = period.units()
        if units == ql.Years:
            return n
        if units == ql.Months:
            return n / 12.0
        if units == ql.Weeks:
            return n / 52.0
        if units == ql.Days:
            return n / 365.0
        raise InvalidArgumentError(f"Unsupported period units: {units}")

    @staticmethod
    def year_fraction(start, end, day_count=None):
        """Year fraction between two dates (Actual/365 Fixed by default)."""
        day_count = day_count or ql.Actual365Fixed()
        return float(
            day_count.yearFraction(DateUtils.to_ql_date(start), DateUtils.to_ql_date(end))
        )

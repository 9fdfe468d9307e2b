"""Statistics on panel data (one row per date, one column per series).

Only what the covariance calibration needs: first differences, a
pairwise-complete covariance estimator and the volatility/correlation view
of a covariance matrix. Missing observations are NaN.
"""

import numpy as np
import pandas as pd

from .errors import InvalidArgumentError


def to_frame(table):
    if isinstance(table, pd.DataFrame):
        return table
    data = np.asarray(table, dtype=float)
    if data.ndim != 2:
        raise InvalidArgumentError("Panel data must be two-dimensional.")
    return pd.DataFrame(data)


def diff(table, d=1):
    """Changes over ``d`` observations; the first ``d`` rows are dropped."""
    frame = to_frame(table)
    if d >= len(frame):
        raise InvalidArgumentError("d must be less than number of observations")
    return frame.diff(d).iloc[d:]


def covariance(table):
    """Unbiased covariance matrix using pairwise-complete observations.

    For each pair of series only the rows where both are finite are used,
    so missing data in one series does not discard the others.
    """
    frame = to_frame(table).astype(float).replace([np.inf, -np.inf], np.nan)
    return frame.cov(min_periods=2)


def annualize(covar, periods_per_year):
    return covar * float(periods_per_year)


def stdev(covar):
    """Volatilities (square root of the diagonal)."""
    C = np.asarray(covar, dtype=float)
    return np.sqrt(np.diag(C))


def correlation(covar):
    """Correlation matrix; the diagonal is set to 1."""
    C = np.asarray(covar, dtype=float)
    vol = stdev(C)
    with np.errstate(divide="ignore", invalid="ignore"):
        corr = C / np.outer(vol, vol)
    np.fill_diagonal(corr, 1.0)
    return corr

"""Market inputs: tenor labels, historical rate panels and synthetic panels.

Reading files is left to the caller; these helpers take what a loader would
produce (a pandas DataFrame indexed by date, one column per tenor) and put it
in the shape the calibration expects.
"""

import numbers

import numpy as np
import pandas as pd

from .errors import InvalidArgumentError
from .instruments import create_instrument
from .utils import DateUtils


def tenor_to_years(tenor):
    """Convert a tenor label ('3M', '10Y', '2Yr') or a number to years."""
    if isinstance(tenor, numbers.Real):
        return float(tenor)
    return DateUtils.period_to_years(DateUtils.parse_period(tenor))


def instruments_for_tenors(tenors, name="Swap", config=None):
    """One instrument of the given kind (see INSTRUMENT_TEMPLATES) per tenor."""
    return [create_instrument(name, tenor_to_years(t), config) for t in tenors]


def prepare_panel(frame, percent=True):
    """Return a clean copy of a historical rate panel.

    - rows sorted by date (ascending)
    - columns renamed from tenor labels to maturities in years
    - values coerced to float (unparseable entries become NaN)
    - rates quoted in percent converted to decimals
    """
    panel = frame.copy()
    panel.index = pd.to_datetime(panel.index)
    panel = panel.sort_index()
    panel.columns = [tenor_to_years(c) for c in panel.columns]
    panel = panel.apply(pd.to_numeric, errors="coerce").astype(float)
    if percent:
        panel = panel / 100.0
    return panel


def infer_periods_per_year(dates):
    """Average number of observations per year (Actual/365 Fixed)."""
    dates = pd.DatetimeIndex(dates).sort_values()
    if len(dates) < 2:
        raise InvalidArgumentError("Need at least 2 dates to infer the sampling frequency.")
    years = DateUtils.year_fraction(dates[0], dates[-1])
    if years <= 0:
        raise InvalidArgumentError("Dates must span a positive period.")
    return (len(dates) - 1) / years


def simulate_vasicek_panel(template, instruments, covariance, n_dates, seed=12345,
                           periods_per_year=250.0, initial_state=None, start=None):
    """Simulate a historical panel from a Vasicek template.

    Factor levels follow a random walk whose annualised covariance is
    ``covariance``; each date's market rates are the instruments' implied
    rates under that state. The model's structural covariance is set to the
    same matrix so the panel is consistent with it.

    Returns
    -------
    (panel, states) : tuple of pandas.DataFrame
        ``panel`` has one column per instrument selected by the template
        (labelled by maturity); ``states`` holds the simulated factors.
    """
    idx = template.select(instruments)
    used = [instruments[i] for i in idx]
    model = template.create_model(used)
    model.set_covariance(covariance)

    C = np.asarray(covariance, dtype=float) / float(periods_per_year)
    chol = np.linalg.cholesky(C)
    rng = np.random.RandomState(int(seed))
    shocks = rng.normal(0.0, 1.0, (n_dates - 1, model.state_size)) @ chol.T

    x0 = np.zeros(model.state_size) if initial_state is None else np.asarray(initial_state, float)
    states = np.vstack([x0, x0 + np.cumsum(shocks, axis=0)])

    rows = []
    for x in states:
        model.set_state(x)
        rows.append([inst.implied_rate(model.discount) for inst in used])

    index = pd.bdate_range(start, periods=n_dates) if start is not None else pd.RangeIndex(n_dates)
    columns = [inst.maturity for inst in used]
    return pd.DataFrame(rows, index=index, columns=columns), pd.DataFrame(states, index=index)

"""Term structure sampling and bump-response sweeps.

The functions return ``pandas.DataFrame`` objects in a *wide* format: the first
column is the maturity axis, and each additional column is a series label.
"""

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG
from .errors import InvalidArgumentError
from .instruments import create_instrument
from .solver import fit_yield_curve


def plot_grid(last):
    """Maturity grid up to ``last``: 1/16 below 1y, 1/4 below 5y, 1/2 below
    10y, then 1y steps."""

    def step(t):
        if t < 1:
            return 1.0 / 16.0
        if t < 5:
            return 0.25
        if t < 10:
            return 0.5
        return 1.0

    grid = []
    t = step(0.0)
    while t <= last:
        grid.append(t)
        t += step(t)
    return np.array(grid)


def term_structure(discount, instrument_name, maturities, config=None):
    """Implied rates of ``instrument_name`` instruments along ``maturities``."""
    rows = []
    for t in maturities:
        inst = create_instrument(instrument_name, float(t), config)
        rows.append({"maturity": float(t), "rate": float(inst.implied_rate(discount))})
    return pd.DataFrame(rows, columns=["maturity", "rate"])


def _label(maturity):
    return f"{maturity:g}Y"


def bump_response(template, instruments, market_rates, output_instrument, maturities,
                  bump=None, config=None):
    """Response of an output curve to a bump in each input market rate.

    The curve is fitted once to ``market_rates``; then each fitted rate is
    bumped by ``bump`` in turn and the same model is refitted (warm start from
    the previous state). The response is ``(bumped - base) / bump`` for every
    output instrument, so a full pass-through reads 1.0.

    Parameters
    ----------
    template : ModelTemplate
    instruments : list[Instrument]
    market_rates : sequence of float
    output_instrument : str
        Name in INSTRUMENT_TEMPLATES of the instruments on the output curve.
    maturities : iterable[float]
        Output maturities.
    bump : float, optional
        Rate bump (default ``config.bump_size``, 10bp).
    """
    cfg = config or DEFAULT_CONFIG
    bump = float(cfg.bump_size if bump is None else bump)
    if bump == 0:
        raise InvalidArgumentError("bump must be non-zero")
    if len(instruments) != len(market_rates):
        raise InvalidArgumentError("instruments and market_rates must have the same length.")

    idx = template.select(instruments)
    used = [instruments[i] for i in idx]
    rates = np.asarray(market_rates, dtype=float)[idx]

    model = template.create_model(used)
    base_curve = fit_yield_curve(model, used, rates, cfg)
    maturities = [float(t) for t in maturities]
    base = term_structure(base_curve, output_instrument, maturities, cfg)["rate"].to_numpy()

    out = pd.DataFrame({"maturity": maturities})
    for i, inst in enumerate(used):
        bumped_rates = rates.copy()
        bumped_rates[i] += bump
        bumped_curve = fit_yield_curve(model, used, bumped_rates, cfg)
        bumped = term_structure(bumped_curve, output_instrument, maturities, cfg)["rate"].to_numpy()
        out[_label(inst.maturity)] = (bumped - base) / bump
    return out

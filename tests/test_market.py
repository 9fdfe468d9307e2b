import numpy as np
import pandas as pd
import pytest
import QuantLib as ql

from curve_builder import InvalidArgumentError, Swap
from curve_builder.market import (
    infer_periods_per_year,
    instruments_for_tenors,
    prepare_panel,
    simulate_vasicek_panel,
    tenor_to_years,
)
from curve_builder.models import VasicekModelTemplate
from curve_builder.utils import DateUtils


@pytest.mark.parametrize(
    "tenor, years",
    [("3M", 0.25), ("6Mo", 0.5), ("1Y", 1.0), ("10Yr", 10.0), ("2W", 2.0 / 52.0), (7, 7.0), (0.5, 0.5)],
)
def test_tenor_to_years(tenor, years):
    assert tenor_to_years(tenor) == pytest.approx(years, abs=1e-15)


@pytest.mark.parametrize("tenor", ["abc", "Y", "10"])
def test_bad_tenor(tenor):
    with pytest.raises(InvalidArgumentError):
        tenor_to_years(tenor)


def test_date_utils():
    assert DateUtils.to_ql_date("2020-03-15") == ql.Date(15, 3, 2020)
    assert DateUtils.to_ql_date(pd.Timestamp("2020-03-15")) == ql.Date(15, 3, 2020)
    assert DateUtils.year_fraction("2020-01-01", "2021-01-01") == pytest.approx(366.0 / 365.0)


def test_instruments_for_tenors():
    insts = instruments_for_tenors(["3M", "2Y"], "Swap")
    assert insts == [Swap(0.25), Swap(2.0)]
    assert [i.kind for i in instruments_for_tenors(["1Y"], "Zero Coupon")] == ["fra"]


def test_prepare_panel():
    raw = pd.DataFrame(
        {"3M": ["5.00", "n/a", "4.00"], "1Y": [5.5, 5.25, 4.5]},
        index=["2020-01-03", "2020-01-02", "2020-01-01"],
    )
    panel = prepare_panel(raw)
    assert list(panel.columns) == [0.25, 1.0]
    assert panel.index.is_monotonic_increasing
    np.testing.assert_allclose(panel[1.0].to_numpy(), [0.045, 0.0525, 0.055])
    assert np.isnan(panel.iloc[1, 0])
    assert panel.iloc[2, 0] == pytest.approx(0.05)
    # The input is left untouched.
    assert list(raw.columns) == ["3M", "1Y"]


def test_infer_periods_per_year():
    daily = pd.date_range("2020-01-01", "2020-12-31", freq="D")
    assert infer_periods_per_year(daily) == pytest.approx(365.0)
    with pytest.raises(InvalidArgumentError):
        infer_periods_per_year(daily[:1])


def test_simulated_panel():
    template = VasicekModelTemplate([2, 10])
    instruments = [Swap(t) for t in [1.0, 2.0, 5.0, 10.0]]
    covar = [[1e-4, 0.0], [0.0, 4e-5]]
    panel, states = simulate_vasicek_panel(template, instruments, covar, n_dates=20,
                                           start="2022-01-03")
    assert list(panel.columns) == [2.0, 10.0]
    assert panel.shape == (20, 2)
    assert isinstance(panel.index, pd.DatetimeIndex)
    assert np.all(states.iloc[0] == 0.0)

    again, _ = simulate_vasicek_panel(template, instruments, covar, n_dates=20,
                                      start="2022-01-03")
    pd.testing.assert_frame_equal(panel, again)

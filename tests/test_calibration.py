import logging

import numpy as np
import pandas as pd
import pytest

from curve_builder import (
    CalibrationResult,
    Calibrator,
    ConvergenceError,
    FitterConfig,
    ForwardRateAgreement,
    InvalidArgumentError,
    Swap,
    calibrate,
)
from curve_builder.market import simulate_vasicek_panel
from curve_builder.models import SPLINE_MODEL_TEMPLATES, VasicekModelTemplate

TRUE_COVAR = np.array([[1.0e-4, -2.0e-5], [-2.0e-5, 4.0e-5]])


@pytest.fixture
def simulated():
    instruments = [ForwardRateAgreement(2.0), ForwardRateAgreement(10.0)]
    panel, states = simulate_vasicek_panel(
        VasicekModelTemplate([2, 10]), instruments, TRUE_COVAR, n_dates=300, seed=7
    )
    return instruments, panel, states


def test_recovers_sample_covariance(simulated):
    instruments, panel, states = simulated
    template = VasicekModelTemplate([2, 10])
    result = Calibrator().calibrate(template, instruments, panel)

    assert isinstance(result, CalibrationResult)
    assert result.iterations < 50
    expected = states.diff().iloc[1:].cov().to_numpy() * 250.0
    np.testing.assert_allclose(result.covariance, expected, rtol=0.0, atol=1e-6)
    np.testing.assert_allclose(template.covariance(), result.covariance)
    np.testing.assert_allclose(result.covariance, TRUE_COVAR, rtol=0.0, atol=4e-5)

    # Fitted factor changes reproduce the simulated ones; levels differ by the
    # convexity offset between the true and the calibrated covariance.
    np.testing.assert_allclose(
        result.states.diff().iloc[1:].to_numpy(), states.diff().iloc[1:].to_numpy(), atol=1e-10
    )


def test_converged_template_is_left_unchanged(simulated):
    instruments, panel, _ = simulated
    template = VasicekModelTemplate([2, 10])
    first = calibrate(template, instruments, panel)
    before = template.covariance()
    second = calibrate(template, instruments, panel)
    assert second.iterations == 1
    np.testing.assert_array_equal(template.covariance(), before)
    np.testing.assert_allclose(second.covariance, first.covariance)


def test_missing_observations_are_skipped(simulated, caplog):
    instruments, panel, _ = simulated
    panel = panel.copy()
    panel.iloc[100, 0] = np.nan

    template = VasicekModelTemplate([2, 10])
    with caplog.at_level(logging.WARNING, logger="curve_builder.calibration"):
        result = calibrate(template, instruments, panel)
    assert "missing rates" in caplog.text
    assert result.states.iloc[100].isna().all()
    assert np.all(np.isfinite(result.covariance))
    np.testing.assert_allclose(result.covariance, TRUE_COVAR, rtol=0.0, atol=4e-5)


def test_swap_panel_converges():
    instruments = [Swap(2.0), Swap(10.0)]
    panel, _ = simulate_vasicek_panel(
        VasicekModelTemplate([2, 10]), instruments, TRUE_COVAR, n_dates=200, seed=3
    )
    result = calibrate(VasicekModelTemplate([2, 10]), instruments, panel)
    assert result.iterations < 50
    assert np.max(np.abs(result.realized - result.covariance)) < 1e-6


def test_periods_per_year():
    instruments = [ForwardRateAgreement(2.0), ForwardRateAgreement(10.0)]
    panel, _ = simulate_vasicek_panel(
        VasicekModelTemplate([2, 10]), instruments, TRUE_COVAR, n_dates=100, seed=5,
        start="2021-01-04",
    )
    daily = calibrate(VasicekModelTemplate([2, 10]), instruments, panel)
    weekly = calibrate(VasicekModelTemplate([2, 10]), instruments, panel, periods_per_year=52)
    np.testing.assert_allclose(weekly.covariance, daily.covariance * 52.0 / 250.0, atol=1e-9)

    cfg = FitterConfig()
    cfg.infer_periods_per_year = True
    inferred = calibrate(VasicekModelTemplate([2, 10]), instruments, panel, config=cfg)
    assert 250.0 < inferred.periods_per_year < 270.0


def test_template_without_covariance():
    panel = pd.DataFrame(np.full((5, 3), 0.03))
    instruments = [Swap(t) for t in [1.0, 2.0, 3.0]]
    with pytest.raises(InvalidArgumentError):
        calibrate(SPLINE_MODEL_TEMPLATES[0], instruments, panel)


def test_panel_shape_mismatch(simulated):
    instruments, panel, _ = simulated
    with pytest.raises(InvalidArgumentError):
        calibrate(VasicekModelTemplate([2, 10]), instruments[:1], panel)
    with pytest.raises(InvalidArgumentError):
        calibrate(VasicekModelTemplate([2, 10]), instruments, panel.iloc[:2])
    with pytest.raises(InvalidArgumentError):
        calibrate(VasicekModelTemplate([5]), instruments, panel)


def test_iteration_cap(simulated):
    instruments, panel, _ = simulated
    cfg = FitterConfig(max_calibration_iterations=1)
    with pytest.raises(ConvergenceError):
        calibrate(VasicekModelTemplate([2, 10]), instruments, panel, config=cfg)

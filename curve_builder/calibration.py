import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG
from .errors import ConvergenceError, InvalidArgumentError
from .market import infer_periods_per_year
from .models.base import Capability
from .panel import annualize, correlation, covariance, diff, stdev, to_frame
from .solver import fit_yield_curve

logger = logging.getLogger(__name__)


@dataclass
class CalibrationResult:
    """Outcome of a converged covariance calibration."""

    covariance: np.ndarray
    realized: np.ndarray
    iterations: int
    states: pd.DataFrame
    periods_per_year: float


class Calibrator:
    """Calibration of structural covariance to historical rates.

    Fitting matches a model's state vector to one date's quotes; calibration
    matches the model's structural covariance to the covariance of the state
    vector realized over a history of dates. Because the fitted states depend
    on the covariance (through the convexity term), this is a fixed-point
    iteration:

    1. Create a fresh model from the template and fit it to every date, in
       order, reusing the previous date's state as starting point.
    2. Take first differences of the state history and compute their
       annualised covariance.
    3. Stop if it matches the template covariance within
       ``config.covariance_tolerance``; otherwise store it in the template and
       repeat.
    """

    def __init__(self, config=None):
        self.cfg = config or DEFAULT_CONFIG

    def _periods_per_year(self, frame, periods_per_year):
        if periods_per_year is not None:
            return float(periods_per_year)
        if self.cfg.infer_periods_per_year and isinstance(frame.index, pd.DatetimeIndex):
            return infer_periods_per_year(frame.index)
        return self.cfg.periods_per_year

    def calibrate(self, template, instruments, panel, periods_per_year=None):
        """Calibrate ``template``'s covariance to a panel of market rates.

        Parameters
        ----------
        template : ModelTemplate
            Must support ``Capability.COVARIANCE``; updated in place.
        instruments : list[Instrument]
            One instrument per panel column.
        panel : pandas.DataFrame or array-like
            Historical market rates, one row per date (ascending).
        periods_per_year : float, optional
            Annualisation factor; defaults to the configuration.

        Returns
        -------
        CalibrationResult
        """
        if not template.supports(Capability.COVARIANCE):
            raise InvalidArgumentError(f"{template.name} has no structural covariance to calibrate.")

        frame = to_frame(panel).sort_index()
        if frame.shape[1] != len(instruments):
            raise InvalidArgumentError("Panel must have one column per instrument.")

        idx = template.select(instruments)
        if not idx:
            raise InvalidArgumentError(f"{template.name} cannot fit any of the instruments.")
        used = [instruments[i] for i in idx]
        rates = frame.iloc[:, idx].to_numpy(dtype=float)
        if len(rates) < 3:
            raise InvalidArgumentError("Calibration needs at least 3 historical dates.")

        ppy = self._periods_per_year(frame, periods_per_year)
        complete = np.all(np.isfinite(rates), axis=1)
        if not complete.all():
            logger.warning("%d of %d dates have missing rates and are not fitted.",
                           int((~complete).sum()), len(rates))

        for iteration in range(1, self.cfg.max_calibration_iterations + 1):

            # Fit the model to historical data to get the state vector history.
            model = template.create_model(used)
            states = np.full((len(rates), model.state_size), np.nan)
            for d in np.flatnonzero(complete):
                fit_yield_curve(model, used, rates[d], self.cfg)
                states[d] = model.get_state()
            history = pd.DataFrame(states, index=frame.index)

            # Historical covariance of the state changes.
            model_covar = model.covariance()
            nf = model_covar.shape[0]
            realized = annualize(covariance(diff(history)), ppy).to_numpy()[:nf, :nf]
            if not np.all(np.isfinite(realized)):
                raise InvalidArgumentError("Not enough complete observations to estimate covariance.")

            logger.debug("Iteration %d realized factor volatility: %s",
                         iteration, np.array2string(stdev(realized), precision=6))
            logger.debug("Iteration %d realized factor correlation:\n%s",
                         iteration, np.array2string(correlation(realized), precision=4))

            # Compare with the model covariance (factor block only; a target
            # carried in the state has no covariance entry).
            max_diff = float(np.max(np.abs(realized - model_covar)))
            if max_diff < self.cfg.covariance_tolerance:
                logger.info("Calibration finished in %d iterations.", iteration)
                return CalibrationResult(
                    covariance=template.covariance(),
                    realized=realized,
                    iterations=iteration,
                    states=history,
                    periods_per_year=ppy,
                )

            template.set_covariance(realized)

        raise ConvergenceError(
            f"Calibration failed to converge in {self.cfg.max_calibration_iterations} iterations."
        )


def calibrate(template, instruments, panel, config=None, periods_per_year=None):
    """Calibrate ``template``'s structural covariance; see ``Calibrator``."""
    return Calibrator(config).calibrate(template, instruments, panel, periods_per_year)

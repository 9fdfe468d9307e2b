import logging
import warnings

import numpy as np


class FitterConfig:
    """Central configuration object.

    Every numerical knob used by the Newton fit and the covariance calibration
    lives here, so a run can be reproduced from a single object.

    Parameters
    ----------
    max_newton_iterations : int
        Iteration cap of ``fit_yield_curve``.
    rate_tolerance : float
        Absolute tolerance on implied vs market rates (1e-8 = 0.0001 bp).
    max_calibration_iterations : int
        Outer iteration cap of the covariance calibration.
    covariance_tolerance : float
        Max absolute entrywise difference between realized and model
        covariance accepted as converged.
    periods_per_year : float
        Annualisation factor applied to the covariance of state changes
        (250 for daily data).

    Notes
    -----
    - ``inst_fwd_dt`` and ``swap_frequency`` are the default conventions used
      when instruments are created through ``create_instrument``.
    - ``infer_periods_per_year`` replaces ``periods_per_year`` by the average
      number of observations per year of a date-indexed panel.
    """

    def __init__(
        self,
        max_newton_iterations=100,
        rate_tolerance=1.0e-8,
        max_calibration_iterations=50,
        covariance_tolerance=1.0e-6,
        periods_per_year=250.0,
    ):
        self.max_newton_iterations = int(max_newton_iterations)
        self.rate_tolerance = float(rate_tolerance)
        self.max_calibration_iterations = int(max_calibration_iterations)
        self.covariance_tolerance = float(covariance_tolerance)
        self.periods_per_year = float(periods_per_year)
        self.infer_periods_per_year = False

        # ----------------
        # Instrument conventions
        # ----------------
        self.inst_fwd_dt = 1.0 / 128.0
        self.swap_frequency = 0.25

        # ----------------
        # Sensitivity
        # ----------------
        self.bump_size = 0.001  # 10bp

        # ----------------
        # Global flags
        # ----------------
        self.log_level = "WARNING"
        self.suppress_warnings = False
        self.numpy_seed = 42

    def apply_global_settings(self):
        """Apply global settings (logging level, warnings, RNG seed)."""
        logging.basicConfig(
            level=getattr(logging, str(self.log_level).upper(), logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        if self.suppress_warnings:
            warnings.filterwarnings("ignore")
        np.random.seed(self.numpy_seed)


DEFAULT_CONFIG = FitterConfig()

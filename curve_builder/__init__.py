"""Yield curve builder package.

This package provides:
- A B-spline basis for the log-discount curve
- Market instruments (log discount, zero rate, instantaneous forward, swap)
- Curve models (spline, n-factor Vasicek, discretized forward) and templates
- A constrained Newton-Lagrange solver to fit a model to market rates
- Calibration of a model's structural covariance to historical rates
"""

from .config import FitterConfig
from .errors import ConvergenceError, CurveBuilderError, DomainError, InvalidArgumentError
from .spline import BSpline, SplineConstraint, build_spline_basis
from .instruments import (
    INSTRUMENT_TEMPLATES,
    ForwardRateAgreement,
    InstantaneousForward,
    Instrument,
    LogDiscount,
    Swap,
    ZeroRate,
    create_instrument,
)
from .models import (
    BoundaryCondition,
    Capability,
    CurveModel,
    DiscretizedForwardModel,
    MeanReversionModel,
    ModelTemplate,
    SplineModel,
)
from .solver import DiscountFunction, fit_yield_curve
from .calibration import CalibrationResult, Calibrator, calibrate

"""Market instruments priced off a discount function.

Every instrument maps a discount function ``discount(t, gradient=False)`` to an
implied market rate. When ``gradient=True`` the discount function returns
``(df, d df / d state)`` and the instrument returns ``(rate, d rate / d state)``,
which is what the Newton solver needs to build its Jacobian.
"""

import abc
import math
from dataclasses import dataclass

import numpy as np

from .errors import DomainError, InvalidArgumentError


def _log_discount(discount, t, gradient):
    """-ln df(t) and, optionally, its gradient."""
    if gradient:
        df, df_grad = discount(t, gradient=True)
    else:
        df, df_grad = discount(t), None
    if not df > 0:
        raise DomainError(f"Discount factor at t={t} is not positive: {df}")
    if gradient:
        return -math.log(df), -np.asarray(df_grad, dtype=float) / df
    return -math.log(df), None


@dataclass(frozen=True)
class Instrument(abc.ABC):
    """Immutable instrument of a given maturity (in years)."""

    maturity: float

    kind = "instrument"

    def __post_init__(self):
        T = float(self.maturity)
        if not math.isfinite(T) or T <= 0:
            raise DomainError(f"Instrument maturity must be positive, got {self.maturity!r}")
        object.__setattr__(self, "maturity", T)

    @abc.abstractmethod
    def implied_rate(self, discount, gradient=False):
        raise NotImplementedError


@dataclass(frozen=True)
class LogDiscount(Instrument):
    """Log discount factor ``-ln df(T)``."""

    kind = "log_discount"

    def implied_rate(self, discount, gradient=False):
        value, grad = _log_discount(discount, self.maturity, gradient)
        return (value, grad) if gradient else value


@dataclass(frozen=True)
class ForwardRateAgreement(Instrument):
    """Continuously compounded zero rate ``-ln df(T) / T``."""

    kind = "fra"

    def implied_rate(self, discount, gradient=False):
        T = self.maturity
        value, grad = _log_discount(discount, T, gradient)
        if gradient:
            return value / T, grad / T
        return value / T


ZeroRate = ForwardRateAgreement


@dataclass(frozen=True)
class InstantaneousForward(Instrument):
    """Instantaneous forward rate, approximated by a backward difference of
    the log discount factor over ``dt`` years."""

    dt: float = 1.0 / 128.0

    kind = "inst_fwd"

    def implied_rate(self, discount, gradient=False):
        T = self.maturity
        dt = float(self.dt)
        if not dt > 0:
            raise DomainError("Finite-difference step must be positive.")
        start = T - dt
        if start < 0:
            raise DomainError(
                f"Maturity {T} is shorter than the finite-difference step {dt}."
            )

        v_end, g_end = _log_discount(discount, T, gradient)
        v_start, g_start = _log_discount(discount, start, gradient)
        rate = (v_end - v_start) / dt
        if gradient:
            return rate, (g_end - g_start) / dt
        return rate


@dataclass(frozen=True)
class Swap(Instrument):
    """Vanilla fixed-for-floating swap; the fixed leg pays every
    ``frequency`` years on a 30/360 basis.

    Accrual dates are generated backward from the maturity. The period
    closest to time zero is a stub whose accrual factor is ``min(frequency, t)``.
    """

    frequency: float = 0.25

    kind = "swap"

    def implied_rate(self, discount, gradient=False):
        T = self.maturity
        frequency = float(self.frequency)
        if not frequency > 0:
            raise DomainError("Swap payment frequency must be positive.")

        if gradient:
            final_df, final_grad = discount(T, gradient=True)
            final_grad = np.asarray(final_grad, dtype=float)
            annuity_grad = np.zeros_like(final_grad)
        else:
            final_df = discount(T)

        annuity = 0.0
        t = T
        while t > 0:
            accrual = min(frequency, t)
            if gradient:
                df, df_grad = discount(t, gradient=True)
                annuity_grad += accrual * np.asarray(df_grad, dtype=float)
            else:
                df = discount(t)
            annuity += accrual * df
            t -= frequency

        if annuity <= 0:
            raise DomainError("Swap annuity is not positive.")

        rate = (1.0 - final_df) / annuity
        if gradient:
            return rate, -(final_grad + rate * annuity_grad) / annuity
        return rate


# Display name -> instrument class
INSTRUMENT_TEMPLATES = {
    "Swap": Swap,
    "Zero Coupon": ForwardRateAgreement,
    "Instantaneous Forward": InstantaneousForward,
    "Log Discount Factor": LogDiscount,
}


def create_instrument(name, maturity, config=None):
    """Create an instrument from its display name (see INSTRUMENT_TEMPLATES).

    Conventions (swap frequency, forward step) are taken from ``config`` when
    given.
    """
    try:
        cls = INSTRUMENT_TEMPLATES[name]
    except KeyError:
        raise InvalidArgumentError(
            f"Unknown instrument {name!r}; expected one of {sorted(INSTRUMENT_TEMPLATES)}"
        ) from None

    if config is not None:
        if cls is Swap:
            return Swap(maturity, frequency=config.swap_frequency)
        if cls is InstantaneousForward:
            return InstantaneousForward(maturity, dt=config.inst_fwd_dt)
    return cls(maturity)

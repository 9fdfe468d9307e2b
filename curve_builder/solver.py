import logging

import numpy as np
from scipy import linalg

from .config import DEFAULT_CONFIG
from .errors import ConvergenceError, InvalidArgumentError
from .models.base import Capability

logger = logging.getLogger(__name__)


class DiscountFunction:
    """Discount function of a fitted model.

    Calls are delegated to the model, so the function follows the model's
    current state: refitting the same model moves this curve too.
    """

    def __init__(self, model, iterations, max_residual):
        self.model = model
        self.iterations = int(iterations)
        self.max_residual = float(max_residual)

    def __call__(self, t, gradient=False):
        return self.model.discount(t, gradient)

    def __repr__(self):
        return (
            f"DiscountFunction({type(self.model).__name__}, iterations={self.iterations}, "
            f"max_residual={self.max_residual:.2e})"
        )


def _check_inputs(model, instruments, market_rates):
    n = len(instruments)
    rates = np.asarray(market_rates, dtype=float).reshape(-1)
    if n != len(rates):
        raise InvalidArgumentError("instruments and market_rates must have the same length.")
    if not np.all(np.isfinite(rates)):
        raise InvalidArgumentError("market_rates must be finite.")

    p = model.state_size
    if model.supports(Capability.CONSTRAINTS):
        P, q = model.constraints()
        P = np.atleast_2d(np.asarray(P, dtype=float))
        q = np.asarray(q, dtype=float).reshape(-1)
        if P.shape != (len(q), p):
            raise InvalidArgumentError(
                f"Constraint matrix must be {len(q)}-by-{p}, got {P.shape[0]}-by-{P.shape[1]}"
            )
    else:
        P, q = np.zeros((0, p)), np.zeros(0)
    m = len(q)

    if n + m > p:
        raise InvalidArgumentError(
            f"Incorrect number of instruments: {n} instruments and {m} constraints "
            f"for {p} state variables."
        )

    H = None
    if model.supports(Capability.QUADRATIC):
        H = np.asarray(model.quadratic(), dtype=float)
        if H.shape != (p, p):
            raise InvalidArgumentError(f"Quadratic matrix must be {p}-by-{p}, got {H.shape}")
    elif n + m < p:
        raise InvalidArgumentError(
            f"Under-determined fit ({n} instruments + {m} constraints < {p} state variables) "
            f"requires a quadratic regularizer."
        )
    return rates, P, q, H


def fit_yield_curve(model, instruments, market_rates, config=None):
    """Fit a yield curve model to observed market rates.

    Newton's method is used on the state vector. Each iteration linearizes
    the implied rates and solves for an update ``delta`` such that

        J delta = market - implied      (n instrument rows)
        P delta = q - P x               (m model constraint rows)

    If the model has a quadratic regularizer H (needed when n + m < p), the
    update instead minimizes (x + delta)' H (x + delta) subject to these
    equations, via the KKT system

        [[H, A'], [A, 0]] [delta; lambda] = [-H x; b].

    Iteration stops once the maximum deviation between market and implied
    rates is below ``config.rate_tolerance`` (1e-8 = 0.0001 bp). At least one
    update is always applied so that the constraints hold exactly.

    Parameters
    ----------
    model : CurveModel
        Model to fit; its state is updated in place.
    instruments : list[Instrument]
    market_rates : sequence of float
        Observed rates, one per instrument.
    config : FitterConfig, optional

    Returns
    -------
    DiscountFunction
    """
    cfg = config or DEFAULT_CONFIG
    rates, P, q, H = _check_inputs(model, instruments, market_rates)
    n = len(instruments)
    p = model.state_size

    for iteration in range(1, cfg.max_newton_iterations + 1):

        # Implied rates and Jacobian.
        J = np.zeros((n, p))
        implied = np.zeros(n)
        for i, inst in enumerate(instruments):
            implied[i], J[i] = inst.implied_rate(model.discount, gradient=True)
        if not (np.all(np.isfinite(implied)) and np.all(np.isfinite(J))):
            raise ConvergenceError(f"Implied rates became non-finite at iteration {iteration}.")

        # Check tolerance.
        diff = rates - implied
        max_diff = float(np.max(np.abs(diff))) if n else 0.0
        if iteration > 1 and max_diff < cfg.rate_tolerance:
            logger.debug("Newton method found solution in %d iterations.", iteration)
            return DiscountFunction(model, iteration, max_diff)

        # Model-dependent constraints.
        x = model.get_state()
        A = np.vstack([J, P])
        b = np.concatenate([diff, q - P @ x])

        try:
            if H is None:
                delta = linalg.solve(A, b)
            else:
                k = A.shape[0]
                K = np.block([[H, A.T], [A, np.zeros((k, k))]])
                rhs = np.concatenate([-H @ x, b])
                delta = linalg.solve(K, rhs, assume_a="sym")[:p]
        except linalg.LinAlgError as exc:
            raise ConvergenceError(f"Singular Newton system at iteration {iteration}.") from exc

        model.shift_state(delta)

    raise ConvergenceError(
        f"Newton method cannot find solution in {cfg.max_newton_iterations} iterations."
    )

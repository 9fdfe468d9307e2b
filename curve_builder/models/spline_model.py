from dataclasses import dataclass

import numpy as np

from ..errors import InvalidArgumentError
from ..spline import BSpline
from .base import Capability, CurveModel, ModelTemplate


@dataclass(frozen=True)
class BoundaryCondition:
    """Constraint ``F^(order)(knot) = value`` on the log-discount curve.

    ``knot_index`` indexes the knot list ``[0, maturities...]``; negative
    values count from the end (-1 is the longest maturity).
    """

    knot_index: int
    order: int
    value: float = 0.0


class SplineModel(CurveModel):
    """Spline model of the yield curve.

    The log-discount curve F(t) = -ln df(t) is a p-degree B-spline whose knots
    are the instrument maturities plus a trivial knot at t = 0. There are
    (n + p) basis functions but only n instruments, so besides F(0) = 0 the
    model takes (p - 1) boundary conditions, typically on derivatives at the
    end points.

    When fewer conditions are given the model is under-determined, and it
    exposes a roughness penalty ``integral of F''(t)^2`` as quadratic
    regularizer; the fit then picks the smoothest curve matching the market.

    The state vector holds the (n + p) spline weights.
    """

    def __init__(self, maturities, degree, conditions=()):
        ts = sorted(float(t) for t in maturities)
        n = len(ts)
        if n < 2:
            raise InvalidArgumentError("Must supply at least 2 maturities.")
        if ts[0] <= 0:
            raise InvalidArgumentError("Maturities must be positive.")
        if len(set(ts)) != n:
            raise InvalidArgumentError("Maturities must be distinct.")

        p = int(degree)
        if not (1 <= p <= n - 1):
            raise InvalidArgumentError(f"Spline degree must be between 1 and {n - 1}.")

        conditions = list(conditions)
        if len(conditions) > p - 1:
            raise InvalidArgumentError(f"Expects at most {p - 1} boundary conditions.")

        ts = [0.0] + ts
        self.spline = BSpline(ts, p, add_multi_knots=True)
        super().__init__(self.spline.basis_count())

        self._ts = ts
        self._conditions = conditions

        rows = [self.spline.evaluate(0.0)]  # F(0) == 0
        rhs = [0.0]
        for cond in conditions:
            k = int(cond.knot_index)
            if not (-len(ts) <= k < len(ts)):
                raise InvalidArgumentError(f"Knot index {k} out of range.")
            if not (0 <= int(cond.order) <= p):
                raise InvalidArgumentError(f"Derivative order must be between 0 and {p}.")
            rows.append(self.spline.evaluate(ts[k], cond.order))
            rhs.append(float(cond.value))
        self._P = np.array(rows)
        self._q = np.array(rhs)

        self.capabilities = Capability.CONSTRAINTS
        if len(conditions) < p - 1:
            self.capabilities |= Capability.QUADRATIC
            self._H = self._roughness(2)

    def _roughness(self, order):
        """Gram matrix of the ``order``-th derivative of the basis functions,
        integrated exactly over each knot span."""
        nodes, weights = np.polynomial.legendre.leggauss(self.spline.degree() + 1)
        m = self.state_size
        H = np.zeros((m, m))
        for a, b in zip(self._ts[:-1], self._ts[1:]):
            half = 0.5 * (b - a)
            for u, w in zip(nodes, weights):
                d = self.spline.evaluate(a + half * (u + 1.0), order)
                H += w * half * np.outer(d, d)
        return 0.5 * (H + H.T)

    def constraints(self):
        return self._P.copy(), self._q.copy()

    def quadratic(self):
        if not self.supports(Capability.QUADRATIC):
            return super().quadratic()
        return self._H.copy()

    def discount(self, t, gradient=False):
        c = self.spline.evaluate(t)
        df = float(np.exp(-np.dot(c, self._x)))
        if gradient:
            return df, -df * c
        return df

    def info(self):
        return (
            f"Degree-{self.spline.degree()} spline model, "
            f"{len(self._ts) - 1} maturities, {len(self._conditions)} boundary conditions\n"
            f"weights = {np.array2string(self._x, precision=6)}"
        )


class SplineModelTemplate(ModelTemplate):
    """Spline model fitted to every supplied instrument."""

    def __init__(self, name, degree, conditions=()):
        self.name = name
        self.degree = int(degree)
        self.conditions = tuple(conditions)

    def create_model(self, instruments):
        return SplineModel([inst.maturity for inst in instruments], self.degree, self.conditions)


SPLINE_MODEL_TEMPLATES = [
    SplineModelTemplate("Linear spline", 1),
    SplineModelTemplate("Quadratic spline (flat long forward)", 2, [BoundaryCondition(-1, 2)]),
    SplineModelTemplate("Quadratic spline (smoothest)", 2),
    SplineModelTemplate(
        "Cubic spline (natural)", 3, [BoundaryCondition(0, 2), BoundaryCondition(-1, 2)]
    ),
]

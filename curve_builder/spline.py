"""B-spline basis used to interpolate the log-discount curve.

A family of B-splines is fixed by a knot vector and a degree. Each spline of the
family is a linear combination of the same basis functions, so the value (or
any derivative) of a spline at a given point is the inner product of the
weight vector with the vector returned by :meth:`BSpline.evaluate`.

The basis is computed with the Cox-de Boor recursion, laid out as a triangular
table (degree 0 up to degree p) instead of a recursive call tree.
"""

from dataclasses import dataclass

import numpy as np
from scipy import linalg

from .errors import DomainError, InvalidArgumentError


@dataclass(frozen=True)
class SplineConstraint:
    """Value (order=0) or derivative constraint ``f^(order)(x) = y``."""

    x: float
    y: float
    order: int = 0


class BSpline:
    """Family of B-splines of a given knot vector and degree.

    Parameters
    ----------
    knots : sequence of float
        Knot vector, at least two elements. A sorted copy is stored.
    degree : int
        Spline degree: 1=linear, 2=quadratic, 3=cubic, etc.
    add_multi_knots : bool
        If True, repeat the first and last knot ``degree`` extra times so the
        spline is pinned at the boundaries.
    """

    def __init__(self, knots, degree, add_multi_knots=False):
        xs = [float(x) for x in knots]
        if len(xs) < 2:
            raise InvalidArgumentError("Knot vector must contain at least 2 elements.")
        if not np.all(np.isfinite(xs)):
            raise InvalidArgumentError("Knot vector must be finite.")
        xs.sort()

        p = int(degree)
        if p < 1:
            raise InvalidArgumentError("Spline degree must be at least 1.")

        if add_multi_knots:
            xs = [xs[0]] * p + xs + [xs[-1]] * p
        if p > len(xs) - 1:
            raise InvalidArgumentError(
                "Spline degree must be no greater than number of knots - 1."
            )

        self._xs = np.asarray(xs, dtype=float)
        self._p = p

    def knots(self):
        """Return a copy of the (possibly augmented) knot vector."""
        return self._xs.copy()

    def degree(self):
        return self._p

    def basis_count(self):
        """Number of basis functions: knots - 1 - degree."""
        return len(self._xs) - 1 - self._p

    # ---------------------------------------------------------------------
    # Evaluation
    # ---------------------------------------------------------------------
    def _values(self, x, top_degree):
        """Basis values N[i, q](x) for q = 0..top_degree (column q)."""
        xs = self._xs
        L = len(xs)
        last = xs[-1]

        N = np.zeros((L - 1, top_degree + 1))
        for i in range(L - 1):
            if xs[i] == xs[i + 1]:  # multiplicity knot
                continue
            if xs[i] <= x < xs[i + 1]:
                N[i, 0] = 1.0
            elif x == xs[i + 1] and x == last:  # closed at the last knot
                N[i, 0] = 1.0

        for q in range(1, top_degree + 1):
            for i in range(L - 1 - q):
                d1 = xs[i + q] - xs[i]
                d2 = xs[i + 1 + q] - xs[i + 1]
                w1 = 0.0 if d1 == 0 else (x - xs[i]) / d1
                w2 = 0.0 if d2 == 0 else (x - xs[i + 1]) / d2
                N[i, q] = w1 * N[i, q - 1] + (1.0 - w2) * N[i + 1, q - 1]
        return N

    def evaluate(self, x, order=0):
        """Return the vector of all basis values (or derivatives) at ``x``.

        Parameters
        ----------
        x : float
            Point in ``[knots[0], knots[-1]]``.
        order : int
            Order of derivative, between 0 and the degree.

        Returns
        -------
        numpy.ndarray
            ``basis_count()`` elements; its inner product with a weight vector
            gives the spline's value (or derivative) at ``x``.
        """
        xs = self._xs
        p = self._p
        m = self.basis_count()
        order = int(order)

        if not (0 <= order <= p):
            raise InvalidArgumentError(f"order must be between 0 and {p}")
        x = float(x)
        if not (xs[0] <= x <= xs[-1]):
            raise DomainError(
                f"x={x} is outside the range [{xs[0]}, {xs[-1]}] covered by this spline."
            )

        base = p - order
        D = self._values(x, base)[:, base]
        for q in range(base + 1, p + 1):
            nxt = np.zeros(len(xs) - 1 - q)
            for i in range(len(nxt)):
                v1 = xs[i + q] - xs[i]
                v2 = xs[i + q + 1] - xs[i + 1]
                v1 = 1.0 if v1 == 0 else v1
                v2 = 1.0 if v2 == 0 else v2
                nxt[i] = q / v1 * D[i] - q / v2 * D[i + 1]
            D = nxt
        return D[:m].copy()

    def basis(self, i, order=0):
        """Return the i'th basis function (or its derivative) as a callable."""
        m = self.basis_count()
        if not (0 <= i < m):
            raise InvalidArgumentError(f"Invalid basis index: {i}")
        if not (0 <= order <= self._p):
            raise InvalidArgumentError("Invalid derivative order")

        def f(x):
            return float(self.evaluate(x, order)[i])

        return f

    def apply(self, weights, order=0):
        """Spline of this family with the given weights (copied by value)."""
        m = self.basis_count()
        w = np.array(weights, dtype=float)
        if w.shape != (m,):
            raise InvalidArgumentError(f"Weights must contain exactly {m} elements")

        def f(x):
            return float(np.dot(self.evaluate(x, order), w))

        return f

    def fit(self, constraints):
        """Spline of this family that satisfies the given constraints exactly.

        The number of constraints must equal ``basis_count()``.
        """
        m = self.basis_count()
        constraints = list(constraints)
        if len(constraints) != m:
            raise InvalidArgumentError(f"The number of constraints must be equal to {m}")

        C = np.array([self.evaluate(c.x, c.order) for c in constraints])
        b = np.array([c.y for c in constraints], dtype=float)
        return self.apply(linalg.solve(C, b))


def build_spline_basis(knots, degree, add_multi_knots=True):
    """Build a B-spline basis; boundary knots are repeated by default."""
    return BSpline(knots, degree, add_multi_knots=add_multi_knots)

import math

import numpy as np

from ..errors import DomainError, InvalidArgumentError
from .base import Capability, CurveModel, ModelTemplate


class DiscretizedForwardModel(CurveModel):
    """Discretized yield curve model that fits the log discount factor
    explicitly at regular intervals.

    The interval [0, T] is divided into n steps of length delta = T / n. The
    state vector is F[0..n], the log discount factors on the grid, with
    F[0] = 0 imposed as a linear constraint. Between grid points F is
    interpolated linearly.

    The model is under-determined by market instruments alone. Its quadratic
    regularizer is H = L' Sigma^{-1} L, where L is the second-difference
    operator on F (so L F is proportional to the forward rate increments)
    and Sigma the covariance matrix of those increments.
    """

    capabilities = Capability.CONSTRAINTS | Capability.QUADRATIC

    def __init__(self, maturity, n, covariance):
        T = float(maturity)
        n = int(n)
        if not T > 0:
            raise InvalidArgumentError("Maturity must be positive.")
        if n < 2:
            raise InvalidArgumentError("Must use at least 2 intervals.")

        covar = np.array(covariance, dtype=float)
        if covar.shape != (n - 1, n - 1):
            raise InvalidArgumentError(f"Covariance matrix must be {n - 1}-by-{n - 1}")

        super().__init__(n + 1)
        self.maturity = T
        self.n = n
        self.covar = covar

        L = np.zeros((n - 1, n + 1))
        for i in range(n - 1):
            L[i, i] = 1.0
            L[i, i + 1] = -2.0
            L[i, i + 2] = 1.0
        try:
            prec = np.linalg.inv(covar)
        except np.linalg.LinAlgError as exc:
            raise InvalidArgumentError("Covariance matrix is singular.") from exc
        H = L.T @ prec @ L
        self._H = 0.5 * (H + H.T)

    def constraints(self):
        P = np.zeros((1, self.n + 1))
        P[0, 0] = 1.0
        return P, np.zeros(1)

    def quadratic(self):
        return self._H.copy()

    def discount(self, t, gradient=False):
        t = float(t)
        if t < 0:
            raise DomainError("t cannot be negative")
        if t > self.maturity:
            raise DomainError(f"cannot extrapolate beyond {self.maturity}")

        k = t * self.n / self.maturity
        if math.isclose(k, round(k)):  # grid point
            k = float(round(k))

        F = self._x
        if k == math.floor(k):
            k1 = k2 = int(k)
            a = 1.0
        else:  # linear interpolation
            k1 = int(math.floor(k))
            k2 = k1 + 1
            a = k2 - k
        df = math.exp(-(F[k1] * a + F[k2] * (1.0 - a)))

        if gradient:
            grad = np.zeros(self.n + 1)
            grad[k1] += -df * a
            grad[k2] += -df * (1.0 - a)
            return df, grad
        return df

    def info(self):
        return f"Discretized forward model, {self.n} intervals up to {self.maturity:g}y"


# -------------------------------------------------------------------------
# Covariance kernels of the forward rate increments f_1 .. f_{n-1}
# -------------------------------------------------------------------------
def log_discount_iid_kernel(delta):
    """Log discount factors i.i.d. with unit variance (F_0 = 0 is fixed).

    The first difference F_i - F_{i-1} has variance 2 (1 at the first node)
    and covariance -1 with its neighbours.
    """

    def kernel(s, t):
        if math.isclose(s, t):
            return 1.0 + (0.0 if math.isclose(s, delta) else 1.0)
        if math.isclose(abs(s - t), delta):
            return -1.0
        return 0.0

    return kernel


def zero_rate_iid_kernel(delta):
    """Zero rates i.i.d. with unit variance, F(t) = t * r(t)."""

    def kernel(s, t):
        if math.isclose(s, t):
            return s ** 2 + (s - delta) ** 2
        if math.isclose(abs(s - t), delta):
            return -(min(s, t) ** 2)
        return 0.0

    return kernel


def forward_iid_kernel(s, t):
    return 1.0 if math.isclose(s, t) else 0.0


def constant_correlation_kernel(rho=0.5):
    return lambda s, t: 1.0 if math.isclose(s, t) else rho


def exponential_correlation_kernel(decay=1.0):
    return lambda s, t: math.exp(-decay * abs(s - t))


def gaussian_correlation_kernel(decay=2.0):
    return lambda s, t: math.exp(-decay * (s - t) ** 2)


class DiscreteModelTemplate(ModelTemplate):
    """Discretized model on a fixed grid with a covariance kernel."""

    capabilities = Capability.NONE

    def __init__(self, name, maturity, interval, kernel):
        self.name = name
        self.maturity = float(maturity)
        self.interval = float(interval)
        self.kernel = kernel

        n = self.maturity / self.interval
        if not math.isclose(n, round(n)) or round(n) < 2:
            raise InvalidArgumentError("Maturity must be a multiple (>= 2) of the interval.")
        self.n = int(round(n))

    def covariance_matrix(self):
        delta = self.interval
        size = self.n - 1
        covar = np.zeros((size, size))
        for i in range(size):
            for j in range(size):
                covar[i, j] = self.kernel((i + 1) * delta, (j + 1) * delta)
        return covar

    def select(self, instruments):
        return [i for i, inst in enumerate(instruments) if inst.maturity <= self.maturity]

    def create_model(self, instruments):
        return DiscretizedForwardModel(self.maturity, self.n, self.covariance_matrix())


DISCRETE_MODEL_TEMPLATES = [
    DiscreteModelTemplate("Discrete (i.i.d. log df)", 30, 0.25, log_discount_iid_kernel(0.25)),
    DiscreteModelTemplate("Discrete (i.i.d. zc)", 30, 0.25, zero_rate_iid_kernel(0.25)),
    DiscreteModelTemplate("Discrete (i.i.d. fwd)", 30, 0.25, forward_iid_kernel),
    DiscreteModelTemplate("Discrete (const cor)", 30, 0.25, constant_correlation_kernel(0.5)),
    DiscreteModelTemplate("Discrete (exp cor)", 30, 0.25, exponential_correlation_kernel(1.0)),
    DiscreteModelTemplate("Discrete (exp^2 cor)", 30, 0.25, gaussian_correlation_kernel(2.0)),
]

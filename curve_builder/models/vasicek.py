import math

import numpy as np

from ..errors import DomainError, InvalidArgumentError
from .base import Capability, CurveModel, ModelTemplate


def B(k, t):
    """Integral of exp(-k s) over [0, t]."""
    if k == 0:
        return t
    return -math.expm1(-k * t) / k


def variance_integral(ki, kj, t):
    """Integral of B(ki, s) * B(kj, s) over [0, t].

    For positive speeds this is (t - B(ki) - B(kj) + B(ki + kj)) / (ki kj);
    the zero-speed limits are handled explicitly.
    """
    if ki != 0 and kj != 0:
        return (t - B(ki, t) - B(kj, t) + B(ki + kj, t)) / (ki * kj)
    if ki == 0 and kj == 0:
        return t ** 3 / 3.0
    k = ki if ki != 0 else kj
    # integral of s * (1 - exp(-k s)) / k
    return (t * t / 2.0 - (1.0 - math.exp(-k * t) * (1.0 + k * t)) / (k * k)) / k


class MeanReversionModel(CurveModel):
    """n-factor Vasicek model of the yield curve.

    The model has two kinds of parameters. Structural parameters are set
    a-priori (and adjusted by calibration); the state vector is fitted to
    market rates.

    Structural parameters:

    - ``k[0..n-1]``: mean reversion speeds. By default each factor's
      half-life equals one input maturity, k = ln(2) / T.
    - ``C[0..n-1][0..n-1]``: instantaneous covariance between factors,
      default 1% volatility and no correlation.
    - ``w``: mean reversion target, unless it is part of the state. Defaults
      to 0 so that the factors alone carry the level of the curve; pass
      ``target=0.0275`` for a fixed 2.75% long-run rate.

    State vector: ``x[0..n-1]`` factor levels, and ``x[n] = w`` when
    ``target_in_state`` is True (then n = len(maturities) - 1).

    The log discount factor is

        F(t) = w t - A(t) / 2 + sum_i B(k_i, t) x_i,
        A(t) = sum_ij C_ij * integral_0^t B(k_i, s) B(k_j, s) ds.
    """

    capabilities = Capability.COVARIANCE

    def __init__(self, maturities, mean_reversion=None, covariance=None, target=0.0,
                 target_in_state=False):
        ts = [float(t) for t in maturities]
        self.target_in_state = bool(target_in_state)
        n = len(ts) - 1 if self.target_in_state else len(ts)
        if n < 1:
            raise InvalidArgumentError("Must supply at least one factor maturity.")
        if any(t <= 0 for t in ts):
            raise InvalidArgumentError("Maturities must be positive.")

        self.n = n
        if mean_reversion is None:
            self.k = np.array([math.log(2.0) / t for t in ts[:n]])  # maturity as half-life
        else:
            self.k = np.array(mean_reversion, dtype=float)
            if self.k.shape != (n,):
                raise InvalidArgumentError(f"Expects {n} mean reversion speeds.")
            if np.any(self.k < 0):
                raise InvalidArgumentError("Mean reversion speeds cannot be negative.")

        self._C = np.zeros((n, n))
        self.set_covariance(0.0001 * np.identity(n) if covariance is None else covariance)
        self.target = float(target)

        super().__init__(n + (1 if self.target_in_state else 0))

    def covariance(self):
        return self._C.copy()

    def set_covariance(self, covariance):
        C = np.array(covariance, dtype=float)
        if C.shape != (self.n, self.n):
            raise InvalidArgumentError(f"Covariance matrix must be {self.n}-by-{self.n}.")
        if not np.allclose(C, C.T, rtol=0.0, atol=1e-14):
            raise InvalidArgumentError("Covariance matrix must be symmetric.")
        self._C = C

    def convexity(self, t):
        """A(t), the variance term of the log discount factor."""
        A = 0.0
        for i in range(self.n):
            for j in range(self.n):
                if self._C[i, j] != 0:
                    A += self._C[i, j] * variance_integral(self.k[i], self.k[j], t)
        return A

    def discount(self, t, gradient=False):
        t = float(t)
        if t < 0:
            raise DomainError("t cannot be negative")

        n = self.n
        x = self._x
        w = x[n] if self.target_in_state else self.target

        b = np.array([B(k, t) for k in self.k])
        F = w * t - 0.5 * self.convexity(t) + float(np.dot(b, x[:n]))
        df = math.exp(-F)

        if gradient:
            grad = np.zeros(self.state_size)
            grad[:n] = -b * df
            if self.target_in_state:
                grad[n] = -t * df
            return df, grad
        return df

    def info(self):
        vol = np.sqrt(np.clip(np.diag(self._C), 0.0, None))
        lines = [
            f"{self.n}-factor Vasicek model",
            f"x = {np.array2string(100.0 * self._x, precision=4)}%",
            f"k = {np.array2string(self.k, precision=4)}",
            f"sigma = {np.array2string(vol, precision=4)}",
        ]
        return "\n".join(lines)


class VasicekModelTemplate(ModelTemplate):
    """Vasicek model whose factors are tied to fixed maturities.

    Only the instruments whose maturity is one of the factor maturities are
    fitted. The template carries the structural covariance, which is copied
    into every model it creates and updated by calibration.
    """

    capabilities = Capability.COVARIANCE

    def __init__(self, maturities, covariance=None, target=0.0):
        self.maturities = sorted(float(t) for t in maturities)
        n = len(self.maturities)
        if n < 1:
            raise InvalidArgumentError("Must supply at least one maturity.")
        self.name = f"{n}-factor Vasicek"
        self.target = float(target)
        self._covar = np.zeros((n, n))
        if covariance is not None:
            self.set_covariance(covariance)

    def covariance(self):
        return self._covar.copy()

    def set_covariance(self, covariance):
        C = np.array(covariance, dtype=float)
        n = len(self.maturities)
        if C.shape != (n, n):
            raise InvalidArgumentError(f"Covariance matrix must be {n}-by-{n}.")
        self._covar = 0.5 * (C + C.T)

    def select(self, instruments):
        idx = [i for i, inst in enumerate(instruments) if inst.maturity in self.maturities]
        return sorted(idx, key=lambda i: instruments[i].maturity)

    def create_model(self, instruments):
        maturities = [inst.maturity for inst in instruments]
        if maturities != self.maturities:
            raise InvalidArgumentError(
                f"{self.name} expects instruments at maturities {self.maturities}, got {maturities}"
            )
        model = MeanReversionModel(maturities, target=self.target)
        model.set_covariance(self._covar)
        return model


VASICEK_MODEL_TEMPLATES = [
    VasicekModelTemplate([10]),
    VasicekModelTemplate([2, 10]),
    VasicekModelTemplate([2, 10, 30]),
    VasicekModelTemplate([0.25, 2, 10, 30]),
    VasicekModelTemplate([0.25, 2, 5, 10, 30]),
]

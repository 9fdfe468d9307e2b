import abc
import enum

import numpy as np

from ..errors import InvalidArgumentError


class Capability(enum.Flag):
    """Optional features a curve model may implement."""

    NONE = 0
    CONSTRAINTS = enum.auto()  # linear constraints P x = q
    QUADRATIC = enum.auto()  # quadratic regularizer x' H x
    COVARIANCE = enum.auto()  # structural covariance matrix


class CurveModel(abc.ABC):
    """Abstract yield curve model.

    A model owns a state vector that is fitted to market rates, and exposes a
    discount function with analytic gradient with respect to that state.

    The state is never handed out by reference: ``get_state`` returns a copy,
    ``set_state`` and ``shift_state`` are the only writers.

    Optional features are declared in ``capabilities`` and must be queried
    with :meth:`supports` before calling ``constraints``, ``quadratic`` or
    ``covariance``.
    """

    capabilities = Capability.NONE

    def __init__(self, state_size):
        self._x = np.zeros(int(state_size))

    # ---------------------------------------------------------------------
    # State handle
    # ---------------------------------------------------------------------
    @property
    def state_size(self):
        return len(self._x)

    def get_state(self):
        return self._x.copy()

    def set_state(self, values):
        values = np.array(values, dtype=float)
        if values.shape != self._x.shape:
            raise InvalidArgumentError(
                f"State must have shape {self._x.shape}, got {values.shape}"
            )
        self._x[:] = values

    def shift_state(self, delta):
        """Add ``delta`` to the state vector in place."""
        delta = np.asarray(delta, dtype=float)
        if delta.shape != self._x.shape:
            raise InvalidArgumentError(
                f"State update must have shape {self._x.shape}, got {delta.shape}"
            )
        self._x += delta

    # ---------------------------------------------------------------------
    # Capabilities
    # ---------------------------------------------------------------------
    def supports(self, capability):
        return bool(self.capabilities & capability)

    @abc.abstractmethod
    def discount(self, t, gradient=False):
        """Discount factor at ``t`` years; ``(df, gradient)`` if requested."""
        raise NotImplementedError

    def constraints(self):
        """Return ``(P, q)`` such that ``P x = q`` must hold."""
        raise InvalidArgumentError(f"{type(self).__name__} has no linear constraints")

    def quadratic(self):
        """Return the (p, p) regularizer matrix ``H``."""
        raise InvalidArgumentError(f"{type(self).__name__} has no quadratic regularizer")

    def covariance(self):
        """Return a copy of the structural covariance matrix."""
        raise InvalidArgumentError(f"{type(self).__name__} has no structural covariance")

    def info(self):
        return type(self).__name__


class ModelTemplate(abc.ABC):
    """A partially specified model; the only missing piece is the set of
    instruments to fit to.

    ``select`` tells which of the candidate instruments the model will fit;
    ``create_model`` builds a fresh model from the selected ones.
    """

    name = "model"
    capabilities = Capability.NONE

    def supports(self, capability):
        return bool(self.capabilities & capability)

    def select(self, instruments):
        return list(range(len(instruments)))

    @abc.abstractmethod
    def create_model(self, instruments):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"

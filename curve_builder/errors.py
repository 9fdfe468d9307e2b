class CurveBuilderError(Exception):
    """Base class for all errors raised by the curve builder."""


class InvalidArgumentError(CurveBuilderError, ValueError):
    """Malformed inputs detected before any iteration starts.

    Examples: knot vectors that are too short, wrong constraint counts,
    mismatched matrix dimensions.
    """


class DomainError(CurveBuilderError, ValueError):
    """A valid object was evaluated outside of its domain (negative or
    out-of-range maturity, degenerate accrual fraction)."""


class ConvergenceError(CurveBuilderError, RuntimeError):
    """An iterative routine hit its iteration cap or a singular step."""

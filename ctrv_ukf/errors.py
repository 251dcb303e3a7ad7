"""Exception taxonomy for the CTRV unscented Kalman filter.

Numerical faults abort the current step and leave the last valid
state/covariance in place. They are never retried internally: the same
corrupted state would reproduce the fault.
"""

from typing import Optional


class EstimatorError(Exception):
    """Base class for all estimator failures."""


class StateCorruptionError(EstimatorError):
    """Augmented covariance has no Cholesky factor (not positive definite)."""

    def __init__(self, message: str, delta_t: Optional[float] = None):
        super().__init__(message)
        self.delta_t = delta_t

    def __str__(self) -> str:
        base = super().__str__()
        if self.delta_t is None:
            return base
        return f"{base} (dt={self.delta_t:.6f}s)"


class SingularInnovationError(EstimatorError):
    """Innovation covariance could not be inverted, or the update went non-finite."""

    def __init__(self, message: str, path: str = "", delta_t: Optional[float] = None):
        super().__init__(message)
        self.path = path
        self.delta_t = delta_t

    def __str__(self) -> str:
        base = super().__str__()
        if self.path:
            base = f"[{self.path}] {base}"
        if self.delta_t is not None:
            base = f"{base} (dt={self.delta_t:.6f}s)"
        return base


class UnknownSensorError(EstimatorError, ValueError):
    """Measurement carries an unrecognised sensor tag or a malformed payload."""

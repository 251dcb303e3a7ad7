"""Small linear-algebra helpers shared by prediction and both update paths."""

from typing import Optional, Tuple

import numpy as np

from .errors import SingularInnovationError


# Condition number above which an innovation covariance is treated as singular
MAX_CONDITION = 1e12


def normalize_angle(angle):
    """Wrap an angle (scalar or array) into (-π, π].

    Angles already in range are returned unchanged.
    """
    angle = np.asarray(angle, dtype=float)
    wrapped = np.pi - np.mod(np.pi - angle, 2.0 * np.pi)
    out = np.where((angle > -np.pi) & (angle <= np.pi), angle, wrapped)
    return out[()] if out.ndim == 0 else out


def check_shape(a: np.ndarray, shape: Tuple[int, ...], name: str) -> np.ndarray:
    """Return ``a`` as a float array, raising ValueError if its shape differs."""
    a = np.asarray(a, dtype=float)
    if a.shape != shape:
        raise ValueError(f"{name}: expected shape {shape}, got {a.shape}")
    return a


def cholesky_lower(a: np.ndarray) -> Optional[np.ndarray]:
    """Lower-triangular Cholesky factor of ``a``, or None if it does not exist.

    ``None`` means ``a`` is not (numerically) positive definite or holds
    non-finite entries; callers decide how to report that.
    """
    a = np.asarray(a, dtype=float)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise ValueError(f"Cholesky needs a square matrix, got shape {a.shape}")
    if not np.all(np.isfinite(a)):
        return None
    try:
        return np.linalg.cholesky(a)
    except np.linalg.LinAlgError:
        return None


def checked_inverse(S: np.ndarray, path: str) -> np.ndarray:
    """Invert an innovation covariance, raising on (near-)singularity.

    Args:
        S: Square innovation covariance
        path: Update path name for the error context ("lidar" / "radar")
    """
    S = np.asarray(S, dtype=float)
    if S.ndim != 2 or S.shape[0] != S.shape[1]:
        raise ValueError(f"{path}: innovation covariance must be square, got {S.shape}")
    if not np.all(np.isfinite(S)):
        raise SingularInnovationError("innovation covariance has non-finite entries", path)
    cond = np.linalg.cond(S)
    if not np.isfinite(cond) or cond > MAX_CONDITION:
        raise SingularInnovationError(
            f"innovation covariance is singular (cond={cond:.3e})", path)
    try:
        Si = np.linalg.inv(S)
    except np.linalg.LinAlgError as exc:
        raise SingularInnovationError(f"innovation covariance inversion failed: {exc}", path) from exc
    return Si


def symmetrize(P: np.ndarray) -> np.ndarray:
    return (P + P.T) / 2

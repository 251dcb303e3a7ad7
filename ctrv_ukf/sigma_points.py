"""
Augmented sigma points
======================

Sigma points are stored row-wise: shape (2·n_aug + 1, n). Row 0 is the
mean, rows 1..n_aug the positive spread, rows n_aug+1..2·n_aug the
negative spread.

Reference: Julier & Uhlmann (2004), "Unscented filtering and nonlinear
estimation".
"""

from typing import Optional, Tuple

import numpy as np
from scipy.linalg import block_diag

from .errors import StateCorruptionError
from .linalg import check_shape, cholesky_lower, normalize_angle


def spreading_parameter(n_aug: int) -> float:
    """λ = 3 − n_aug."""
    return 3.0 - n_aug


def sigma_weights(n_aug: int, lambda_: Optional[float] = None) -> np.ndarray:
    """Weights shared by mean and covariance recombination; they sum to 1."""
    if lambda_ is None:
        lambda_ = spreading_parameter(n_aug)
    n_sigma = 2 * n_aug + 1
    weights = np.full(n_sigma, 0.5 / (lambda_ + n_aug))
    weights[0] = lambda_ / (lambda_ + n_aug)
    return weights


def augment(x: np.ndarray, P: np.ndarray, std_a: float,
            std_yawdd: float) -> Tuple[np.ndarray, np.ndarray]:
    """Append the two zero-mean process-noise components to state and covariance.

    Returns:
        x_aug (n+2,), P_aug (n+2 × n+2) = blockdiag(P, std_a², std_yawdd²)
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    P = check_shape(P, (len(x), len(x)), "P")
    x_aug = np.concatenate([x, [0.0, 0.0]])
    P_aug = block_diag(P, np.diag([std_a ** 2, std_yawdd ** 2]))
    return x_aug, P_aug


def sigma_points_from_sqrt(x_aug: np.ndarray, L: np.ndarray,
                           lambda_: float) -> np.ndarray:
    """Spread 2n+1 points around ``x_aug`` along the columns of ``L``."""
    n = len(x_aug)
    spread = np.sqrt(lambda_ + n) * L.T   # row i = scaled column i of L
    return np.vstack([x_aug[None, :], x_aug + spread, x_aug - spread])


def generate_sigma_points(x_aug: np.ndarray, P_aug: np.ndarray,
                          lambda_: Optional[float] = None) -> np.ndarray:
    """Sigma points of N(x_aug, P_aug).

    Raises:
        StateCorruptionError: ``P_aug`` is not positive definite
    """
    if lambda_ is None:
        lambda_ = spreading_parameter(len(x_aug))
    L = cholesky_lower(P_aug)
    if L is None:
        raise StateCorruptionError("augmented covariance is not positive definite")
    return sigma_points_from_sqrt(x_aug, L, lambda_)


def sigma_differences(points: np.ndarray, mean: np.ndarray,
                      angle_index: Optional[int] = None) -> np.ndarray:
    """Row-wise ``points − mean`` with one circular component wrapped."""
    diff = points - mean
    if angle_index is not None:
        diff[:, angle_index] = normalize_angle(diff[:, angle_index])
    return diff


def unscented_mean_covariance(points: np.ndarray, weights: np.ndarray,
                              angle_index: Optional[int] = None
                              ) -> Tuple[np.ndarray, np.ndarray]:
    """Recombine weighted sigma points into a mean and covariance.

    Args:
        points: Sigma points, shape (n_sigma, n)
        weights: Sigma weights, shape (n_sigma,)
        angle_index: Component holding an angle; its differences are
            wrapped into (-π, π] before the outer products, and its mean
            is accumulated as wrapped offsets from the center point (equal
            to the plain weighted sum unless points straddle the ±π seam)

    Returns:
        (mean (n,), covariance (n × n))
    """
    mean = weights @ points
    if angle_index is not None:
        ref = points[0, angle_index]
        offsets = normalize_angle(points[:, angle_index] - ref)
        mean[angle_index] = ref + weights @ offsets
    diff = sigma_differences(points, mean, angle_index)
    cov = (weights[:, None] * diff).T @ diff
    return mean, cov


def cross_covariance(x_points: np.ndarray, x_mean: np.ndarray, x_angle: Optional[int],
                     z_points: np.ndarray, z_mean: np.ndarray, z_angle: Optional[int],
                     weights: np.ndarray) -> np.ndarray:
    """Σ wᵢ (xᵢ − x̄)(zᵢ − z̄)ᵀ with circular components wrapped on both sides."""
    dx = sigma_differences(x_points, x_mean, x_angle)
    dz = sigma_differences(z_points, z_mean, z_angle)
    return (weights[:, None] * dx).T @ dz

"""
Filter consistency and accuracy metrics
=======================================

NIS (Normalized Innovation Squared) of a consistent filter follows a
chi-square distribution with dim(z) degrees of freedom: 2 for lidar,
3 for radar. About 95% of NIS samples should fall below chi2.ppf(0.95).

Reference: Bar-Shalom, Li, Kirubarajan (2001), "Estimation with
Applications to Tracking and Navigation", ch. 5.4.
"""

from typing import Sequence

import numpy as np
from scipy.stats import chi2

from .measurement import MEASUREMENT_DIM, SensorType
from .motion import PX, PY, velocity_components


def nis_threshold(dof: int, confidence: float = 0.95) -> float:
    """Chi-square critical value (2 dof → 5.991, 3 dof → 7.815 at 95%)."""
    if dof < 1:
        raise ValueError(f"dof must be >= 1, got {dof}")
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    return float(chi2.ppf(confidence, dof))


def sensor_dof(sensor_type: SensorType) -> int:
    return MEASUREMENT_DIM[sensor_type]


def nis_consistency(nis_values: Sequence[float], dof: int,
                    confidence: float = 0.95) -> float:
    """Fraction of NIS samples at or below the chi-square threshold.

    Exact zeros (skipped updates) are ignored. Returns NaN when no
    samples remain.
    """
    nis = np.asarray(nis_values, dtype=float)
    nis = nis[nis != 0.0]
    if nis.size == 0:
        return float("nan")
    return float(np.mean(nis <= nis_threshold(dof, confidence)))


def state_to_cartesian(x: np.ndarray) -> np.ndarray:
    """[px, py, v, yaw, yawd] → [px, py, vx, vy] (row-wise for 2-D input)."""
    x = np.asarray(x, dtype=float)
    vel = velocity_components(x)
    return np.concatenate([x[..., [PX, PY]], vel], axis=-1)


def compute_rmse(estimates: Sequence[np.ndarray],
                 ground_truth: Sequence[np.ndarray]) -> np.ndarray:
    """Per-component root-mean-square error between two equal-length sequences."""
    est = np.asarray(estimates, dtype=float)
    gt = np.asarray(ground_truth, dtype=float)
    if est.size == 0 or gt.size == 0:
        raise ValueError("RMSE needs at least one estimate")
    if est.shape != gt.shape:
        raise ValueError(f"estimate/ground-truth shape mismatch: {est.shape} vs {gt.shape}")
    return np.sqrt(np.mean((est - gt) ** 2, axis=0))

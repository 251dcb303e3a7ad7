"""
Sensor observation models
=========================

LASER (linear):   z = H·x,  H selects [px, py]
RADAR (nonlinear):
    rho     = sqrt(px² + py²)
    phi     = atan2(py, px)
    rho_dot = (px·v·cos(yaw) + py·v·sin(yaw)) / rho

Radar sensor sits at the origin of the tracking frame.
"""

import logging
import warnings
from typing import Tuple

import numpy as np

from .config import RANGE_FLOOR
from .motion import N_X, PX, PY, V, YAW

logger = logging.getLogger(__name__)

# Lidar selection matrix: [px, py] from [px, py, v, yaw, yawd]
H_LASER = np.array([
    [1.0, 0.0, 0.0, 0.0, 0.0],
    [0.0, 1.0, 0.0, 0.0, 0.0],
])

# Bearing component of a radar measurement
RADAR_BEARING = 1


def radar_measurement_model(points: np.ndarray,
                            range_floor: float = RANGE_FLOOR) -> Tuple[np.ndarray, int]:
    """Map state-space points (n × 5) into radar space (n × 3).

    Points closer than ``range_floor`` get ``rho = range_floor`` and
    ``phi = 0`` so that the range-rate term stays bounded. This makes the
    model discontinuous at the floor.

    Returns:
        (Zsig (n × 3), number of clamped points)
    """
    points = np.atleast_2d(np.asarray(points, dtype=float))
    if points.shape[1] < N_X:
        raise ValueError(f"state points need {N_X} columns, got {points.shape[1]}")
    px, py = points[:, PX], points[:, PY]
    v, yaw = points[:, V], points[:, YAW]

    rho = np.sqrt(px ** 2 + py ** 2)
    phi = np.arctan2(py, px)
    clamped = rho < range_floor
    n_clamped = int(np.count_nonzero(clamped))
    if n_clamped:
        rho = np.where(clamped, range_floor, rho)
        phi = np.where(clamped, 0.0, phi)
        logger.debug("radar model: %d point(s) clamped to range floor %.3g", n_clamped, range_floor)
        warnings.warn(
            f"{n_clamped} sigma point(s) inside radar range floor {range_floor:g}; "
            "bearing forced to 0", RuntimeWarning, stacklevel=2)

    rho_dot = (px * v * np.cos(yaw) + py * v * np.sin(yaw)) / rho
    return np.column_stack([rho, phi, rho_dot]), n_clamped


def radar_from_state(x: np.ndarray, range_floor: float = RANGE_FLOOR) -> np.ndarray:
    """Exact radar measurement [rho, phi, rho_dot] of a single state."""
    z, _ = radar_measurement_model(np.asarray(x, dtype=float)[None, :], range_floor)
    return z[0]


def lidar_from_state(x: np.ndarray) -> np.ndarray:
    """Exact lidar measurement [px, py] of a single state."""
    return H_LASER @ np.asarray(x, dtype=float)


def polar_to_cartesian(rho: float, phi: float) -> np.ndarray:
    """Radar range/bearing → Cartesian [px, py]."""
    return np.array([rho * np.cos(phi), rho * np.sin(phi)])

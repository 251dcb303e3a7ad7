"""CTRV-UKF: lidar/radar fusion for a single object with an unscented Kalman filter.

Quick Start::

    from ctrv_ukf import UnscentedKalmanFilter, UKFConfig, radar_measurement
    ukf = UnscentedKalmanFilter(UKFConfig())
    for meas in packages:
        ukf.process_measurement(meas)
        state, cov = ukf.x, ukf.P

License: AGPL-3.0-or-later
"""

import logging

__version__ = "1.0.0"
__license__ = "AGPL-3.0-or-later"

from .config import UKFConfig, load_config
from .errors import (
    EstimatorError,
    StateCorruptionError,
    SingularInnovationError,
    UnknownSensorError,
)
from .linalg import normalize_angle, cholesky_lower, checked_inverse
from .measurement import (
    SensorType,
    MeasurementPackage,
    MEASUREMENT_DIM,
    laser_measurement,
    radar_measurement,
    make_measurement,
)
from .motion import ctrv_predict_sigma_points, ctrv_propagate_state
from .sigma_points import (
    sigma_weights,
    augment,
    generate_sigma_points,
    unscented_mean_covariance,
)
from .sensors import H_LASER, radar_measurement_model, lidar_from_state, radar_from_state
from .ukf import UnscentedKalmanFilter, StepResult
from .metrics import nis_threshold, nis_consistency, compute_rmse, state_to_cartesian
from .simulation import simulate_ctrv, generate_measurements, alternating_pattern

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "UKFConfig", "load_config",
    "EstimatorError", "StateCorruptionError", "SingularInnovationError", "UnknownSensorError",
    "normalize_angle", "cholesky_lower", "checked_inverse",
    "SensorType", "MeasurementPackage", "MEASUREMENT_DIM",
    "laser_measurement", "radar_measurement", "make_measurement",
    "ctrv_predict_sigma_points", "ctrv_propagate_state",
    "sigma_weights", "augment", "generate_sigma_points", "unscented_mean_covariance",
    "H_LASER", "radar_measurement_model", "lidar_from_state", "radar_from_state",
    "UnscentedKalmanFilter", "StepResult",
    "nis_threshold", "nis_consistency", "compute_rmse", "state_to_cartesian",
    "simulate_ctrv", "generate_measurements", "alternating_pattern",
]

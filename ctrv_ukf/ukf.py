"""
CTRV Unscented Kalman Filter
============================

Single-object estimator fusing lidar and radar measurements.

State vector: [px, py, v, yaw, yawd] (position, speed, heading, heading rate)

Per measurement:
    first call    → initialize from the measurement, no predict/update
    later calls   → dt from timestamps → sigma-point prediction (CTRV)
                    → lidar (linear KF) or radar (sigma-point) update

Each step works on local copies and commits state, covariance, sigma
points, timestamp and NIS together, so a failed step leaves the previous
estimate untouched.

Usage:
    ukf = UnscentedKalmanFilter(UKFConfig(std_a=0.8, std_yawdd=0.5))
    for meas in packages:
        ukf.process_measurement(meas)
        print(ukf.x, ukf.nis_laser, ukf.nis_radar)
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .config import UKFConfig
from .errors import EstimatorError, SingularInnovationError, StateCorruptionError, UnknownSensorError
from .linalg import checked_inverse, cholesky_lower, normalize_angle, symmetrize
from .measurement import MeasurementPackage, SensorType
from .motion import N_AUG, N_X, PX, PY, YAW, ctrv_predict_sigma_points, velocity_components
from .sensors import H_LASER, RADAR_BEARING, radar_measurement_model
from .sigma_points import (
    augment, cross_covariance, sigma_points_from_sqrt, sigma_weights,
    spreading_parameter, unscented_mean_covariance,
)

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Outcome of one :meth:`UnscentedKalmanFilter.process_measurement` call.

    Attributes:
        sensor_type: Sensor of the processed measurement
        timestamp: Measurement timestamp (µs)
        delta_t: Prediction interval (s); 0 on initialization or skip
        nis: NIS of the update, 0 when no update ran
        initialized: This call initialized the filter
        updated: A measurement update was applied
    """
    sensor_type: SensorType
    timestamp: int
    delta_t: float = 0.0
    nis: float = 0.0
    initialized: bool = False
    updated: bool = False


class UnscentedKalmanFilter:
    """Augmented-state UKF with the CTRV motion model.

    Attributes:
        x: State [px, py, v, yaw, yawd]
        P: State covariance (5×5)
        Xsig_pred: Sigma points of the last prediction (15×5)
        weights: Sigma weights (15,), fixed for the filter's lifetime
        time_us: Timestamp of the current estimate (µs)
        nis_laser, nis_radar: Last NIS per sensor
    """

    def __init__(self, config: Optional[UKFConfig] = None):
        self.config = config if config is not None else UKFConfig()

        self.n_x = N_X
        self.n_aug = N_AUG
        self.n_sigma = 2 * self.n_aug + 1
        self.lambda_ = spreading_parameter(self.n_aug)
        self.weights = sigma_weights(self.n_aug, self.lambda_)
        self.weights.setflags(write=False)

        self._R_laser = self.config.R_laser
        self._R_radar = self.config.R_radar

        self.is_initialized = False
        self.time_us = 0
        self.x = np.zeros(self.n_x)
        self.P = np.eye(self.n_x)
        self.Xsig_pred = np.zeros((self.n_sigma, self.n_x))
        self._has_prediction = False

        self.nis_laser = 0.0
        self.nis_radar = 0.0

    # ------------------------------------------------------------------
    # Step
    # ------------------------------------------------------------------

    def process_measurement(self, meas: MeasurementPackage) -> StepResult:
        """Run one estimation step for ``meas``.

        Raises:
            UnknownSensorError: ``meas`` has no recognised sensor type
            ValueError: timestamp earlier than the current estimate
            StateCorruptionError: prediction could not factor the covariance
            SingularInnovationError: update could not invert S
        """
        sensor = self._check_sensor(meas)

        if not self.is_initialized:
            self.initialize_from_measurement(meas)
            return StepResult(sensor, meas.timestamp, initialized=True)

        if meas.timestamp < self.time_us:
            raise ValueError(
                f"measurement at {meas.timestamp} us is older than estimate at {self.time_us} us")

        if not self._enabled(sensor):
            # Ignored entirely: no prediction, timestamp stays put
            self._set_nis(sensor, 0.0)
            logger.debug("%s disabled, measurement at %d us skipped", sensor.value, meas.timestamp)
            return StepResult(sensor, meas.timestamp)

        delta_t = (meas.timestamp - self.time_us) / 1e6
        try:
            x, P, Xsig_pred = self._predict(self.x, self.P, delta_t)
            if sensor is SensorType.LASER:
                x, P, nis = self._lidar_update(x, P, meas.z)
            elif sensor is SensorType.RADAR:
                x, P, nis = self._radar_update(x, P, Xsig_pred, meas.z)
            else:
                raise UnknownSensorError(f"No update path for sensor {sensor!r}")
        except EstimatorError as exc:
            if isinstance(exc, SingularInnovationError) and exc.delta_t is None:
                exc.delta_t = delta_t
            logger.error("step failed (%s, t=%d us, dt=%.6f s): %s",
                         sensor.value, meas.timestamp, delta_t, exc)
            raise

        self.x, self.P, self.Xsig_pred = x, P, Xsig_pred
        self._has_prediction = True
        self.time_us = meas.timestamp
        self._set_nis(sensor, nis)
        logger.debug("%s update t=%d us dt=%.4f s nis=%.3f", sensor.value, meas.timestamp, delta_t, nis)
        return StepResult(sensor, meas.timestamp, delta_t=delta_t, nis=nis, updated=True)

    step = process_measurement

    def initialize_from_measurement(self, meas: MeasurementPackage) -> None:
        """Seed state and covariance from the first measurement.

        Speed, heading and heading rate are unobserved and start from the
        configured defaults. Initialization happens even for a sensor whose
        updates are disabled.
        """
        cfg = self.config
        sensor = self._check_sensor(meas)
        z = meas.z

        x = np.array([0.0, 0.0, cfg.init_speed, cfg.init_yaw, cfg.init_yaw_rate])
        P = np.eye(self.n_x)
        P[2, 2] = cfg.init_var_speed
        P[3, 3] = cfg.init_var_yaw
        P[4, 4] = cfg.init_var_yaw_rate

        if sensor is SensorType.RADAR:
            rho, phi = z[0], z[1]
            x[PX] = rho * np.cos(phi)
            x[PY] = rho * np.sin(phi)
            P[0, 0] = P[1, 1] = cfg.std_radr ** 2 * 0.5
            self.nis_radar = 0.0
        elif sensor is SensorType.LASER:
            x[PX], x[PY] = z[0], z[1]
            P[0, 0] = cfg.std_laspx ** 2
            P[1, 1] = cfg.std_laspy ** 2
            self.nis_laser = 0.0
        else:
            raise UnknownSensorError(f"Cannot initialize from sensor {sensor!r}")

        self.x, self.P = x, P
        self.time_us = meas.timestamp
        self.is_initialized = True
        logger.debug("initialized from %s at t=%d us: x=%s", sensor.value, meas.timestamp, x)

    # ------------------------------------------------------------------
    # Public predict / update
    # ------------------------------------------------------------------

    def prediction(self, delta_t: float) -> None:
        """Predict state, covariance and sigma points ``delta_t`` seconds ahead."""
        self._require_initialized()
        x, P, Xsig_pred = self._predict(self.x, self.P, delta_t)
        self.x, self.P, self.Xsig_pred = x, P, Xsig_pred
        self._has_prediction = True

    def update_lidar(self, meas: MeasurementPackage) -> float:
        """Linear Kalman update with a lidar measurement; returns the NIS."""
        self._require_initialized()
        if self._check_sensor(meas) is not SensorType.LASER:
            raise UnknownSensorError(f"update_lidar got a {meas.sensor_type.value} measurement")
        if not self.config.use_laser:
            self.nis_laser = 0.0
            return 0.0
        self.x, self.P, self.nis_laser = self._lidar_update(self.x, self.P, meas.z)
        return self.nis_laser

    def update_radar(self, meas: MeasurementPackage) -> float:
        """Sigma-point update with a radar measurement; returns the NIS.

        Uses the sigma points of the last :meth:`prediction`.
        """
        self._require_initialized()
        if self._check_sensor(meas) is not SensorType.RADAR:
            raise UnknownSensorError(f"update_radar got a {meas.sensor_type.value} measurement")
        if not self.config.use_radar:
            self.nis_radar = 0.0
            return 0.0
        if not self._has_prediction:
            raise RuntimeError("radar update needs predicted sigma points; call prediction() first")
        self.x, self.P, self.nis_radar = self._radar_update(self.x, self.P, self.Xsig_pred, meas.z)
        return self.nis_radar

    # ------------------------------------------------------------------
    # Core math (pure: inputs are never modified)
    # ------------------------------------------------------------------

    def _predict(self, x: np.ndarray, P: np.ndarray,
                 delta_t: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        cfg = self.config
        x_aug, P_aug = augment(x, P, cfg.std_a, cfg.std_yawdd)

        L = cholesky_lower(P_aug)
        if L is None:
            raise StateCorruptionError("augmented covariance is not positive definite", delta_t)

        Xsig_aug = sigma_points_from_sqrt(x_aug, L, self.lambda_)
        Xsig_pred = ctrv_predict_sigma_points(Xsig_aug, delta_t, cfg.yaw_rate_eps)
        x_pred, P_pred = unscented_mean_covariance(Xsig_pred, self.weights, YAW)

        if not (np.all(np.isfinite(x_pred)) and np.all(np.isfinite(P_pred))):
            raise StateCorruptionError("prediction produced non-finite values", delta_t)
        return x_pred, symmetrize(P_pred), Xsig_pred

    def _lidar_update(self, x: np.ndarray, P: np.ndarray,
                      z: np.ndarray) -> Tuple[np.ndarray, np.ndarray, float]:
        H = H_LASER
        y = z - H @ x
        HP = H @ P
        S = HP @ H.T + self._R_laser
        Si = checked_inverse(S, "lidar")
        K = HP.T @ Si

        x_new = x + K @ y
        P_new = symmetrize(P - K @ HP)
        self._check_finite(x_new, P_new, "lidar")
        return x_new, P_new, float(y @ Si @ y)

    def _radar_update(self, x: np.ndarray, P: np.ndarray, Xsig_pred: np.ndarray,
                      z: np.ndarray) -> Tuple[np.ndarray, np.ndarray, float]:
        w = self.weights
        Zsig, _ = radar_measurement_model(Xsig_pred, self.config.range_floor)
        z_pred, S = unscented_mean_covariance(Zsig, w, RADAR_BEARING)
        S = S + self._R_radar
        Tc = cross_covariance(Xsig_pred, x, YAW, Zsig, z_pred, RADAR_BEARING, w)

        Si = checked_inverse(S, "radar")
        K = Tc @ Si

        y = z - z_pred
        y[RADAR_BEARING] = normalize_angle(y[RADAR_BEARING])

        x_new = x + K @ y
        P_new = symmetrize(P - Tc @ K.T)
        self._check_finite(x_new, P_new, "radar")
        return x_new, P_new, float(y @ Si @ y)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_sensor(meas: MeasurementPackage) -> SensorType:
        sensor = getattr(meas, "sensor_type", None)
        if not isinstance(sensor, SensorType):
            raise UnknownSensorError(f"Unknown sensor type: {sensor!r}")
        return sensor

    @staticmethod
    def _check_finite(x: np.ndarray, P: np.ndarray, path: str) -> None:
        if not (np.all(np.isfinite(x)) and np.all(np.isfinite(P))):
            raise SingularInnovationError("update produced non-finite state", path)

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise RuntimeError("Filter not initialized. Process a measurement first.")

    def _enabled(self, sensor: SensorType) -> bool:
        if sensor is SensorType.LASER:
            return self.config.use_laser
        return self.config.use_radar

    def _set_nis(self, sensor: SensorType, value: float) -> None:
        if sensor is SensorType.LASER:
            self.nis_laser = value
        else:
            self.nis_radar = value

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def position(self) -> np.ndarray:
        return self.x[:2].copy()

    @property
    def velocity(self) -> np.ndarray:
        """Cartesian [vx, vy]."""
        return velocity_components(self.x)

    def nis(self, sensor_type: SensorType) -> float:
        return self.nis_laser if sensor_type is SensorType.LASER else self.nis_radar

    def __repr__(self) -> str:
        if not self.is_initialized:
            return "UnscentedKalmanFilter(uninitialized)"
        return (f"UnscentedKalmanFilter(t={self.time_us} us, "
                f"x={np.array2string(self.x, precision=3)})")

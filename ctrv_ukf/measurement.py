"""
Measurement packages
====================

A measurement package is what producers (file readers, sensor drivers)
hand to the estimator: a sensor tag, the raw measurement vector and a
timestamp in microseconds.

Supported sensor types:
    LASER : [px, py] Cartesian position (lidar)
    RADAR : [rho, phi, rho_dot] range, bearing (rad), range rate
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence, Union

import numpy as np

from .errors import UnknownSensorError


class SensorType(Enum):
    """Closed set of sensor types the estimator understands."""
    LASER = "laser"
    RADAR = "radar"

    @classmethod
    def from_tag(cls, tag: Union[str, "SensorType"]) -> "SensorType":
        """Resolve a producer tag ("L", "R", "lidar", "radar", ...)."""
        if isinstance(tag, cls):
            return tag
        key = str(tag).strip().lower()
        try:
            return _TAG_ALIASES[key]
        except KeyError:
            raise UnknownSensorError(f"Unknown sensor tag: {tag!r}") from None


_TAG_ALIASES: Dict[str, SensorType] = {
    "l": SensorType.LASER,
    "laser": SensorType.LASER,
    "lidar": SensorType.LASER,
    "r": SensorType.RADAR,
    "radar": SensorType.RADAR,
}

# Raw measurement length per sensor type
MEASUREMENT_DIM: Dict[SensorType, int] = {
    SensorType.LASER: 2,
    SensorType.RADAR: 3,
}


@dataclass(frozen=True, eq=False)
class MeasurementPackage:
    """A single immutable measurement.

    Attributes:
        sensor_type: Which sensor produced the measurement
        raw_measurements: Raw vector, length 2 (laser) or 3 (radar)
        timestamp: Measurement time in microseconds, non-decreasing per stream
    """
    sensor_type: SensorType
    raw_measurements: np.ndarray
    timestamp: int

    def __post_init__(self):
        if not isinstance(self.sensor_type, SensorType):
            raise UnknownSensorError(f"Unknown sensor type: {self.sensor_type!r}")
        z = np.array(self.raw_measurements, dtype=float).reshape(-1)
        expected = MEASUREMENT_DIM[self.sensor_type]
        if z.shape != (expected,):
            raise UnknownSensorError(
                f"{self.sensor_type.value} measurement must have {expected} values, got {z.size}")
        if not np.all(np.isfinite(z)):
            raise ValueError(f"{self.sensor_type.value} measurement has non-finite values: {z}")
        z.setflags(write=False)
        object.__setattr__(self, "raw_measurements", z)
        timestamp = int(self.timestamp)
        if timestamp != self.timestamp:
            raise ValueError(f"timestamp must be a whole number of microseconds, got {self.timestamp!r}")
        object.__setattr__(self, "timestamp", timestamp)

    @property
    def z(self) -> np.ndarray:
        return self.raw_measurements

    @property
    def timestamp_s(self) -> float:
        return self.timestamp / 1e6


def laser_measurement(px: float, py: float, timestamp: int) -> MeasurementPackage:
    """Build a lidar package from a Cartesian position."""
    return MeasurementPackage(SensorType.LASER, np.array([px, py]), timestamp)


def radar_measurement(rho: float, phi: float, rho_dot: float,
                      timestamp: int) -> MeasurementPackage:
    """Build a radar package from range, bearing (rad) and range rate."""
    return MeasurementPackage(SensorType.RADAR, np.array([rho, phi, rho_dot]), timestamp)


def make_measurement(tag: Union[str, SensorType], values: Sequence[float],
                     timestamp: int) -> MeasurementPackage:
    """Build a package from a producer tag and raw values."""
    return MeasurementPackage(SensorType.from_tag(tag), np.asarray(values, dtype=float), timestamp)

"""
Estimator configuration
=======================

Tuning constants for the CTRV unscented Kalman filter. Everything here is
fixed at construction; the filter never mutates its config.

Configuration can be built directly, from a plain mapping, or from a YAML
file::

    ukf:
      std_a: 1.0
      std_yawdd: 0.6
      use_radar: false
"""

import math
from dataclasses import dataclass, fields, asdict
from typing import Any, Dict, Optional

import numpy as np
import yaml


# =============================================================================
# DEFAULTS
# =============================================================================

# Process noise
DEFAULT_STD_A = 1.0          # longitudinal acceleration (m/s²)
DEFAULT_STD_YAWDD = 1.0      # yaw acceleration (rad/s²)

# Lidar (position) noise
DEFAULT_STD_LASPX = 0.15     # m
DEFAULT_STD_LASPY = 0.15     # m

# Radar (range / bearing / range-rate) noise
DEFAULT_STD_RADR = 0.3       # m
DEFAULT_STD_RADPHI = 0.03    # rad
DEFAULT_STD_RADRD = 0.3      # m/s

# Numeric guards
YAW_RATE_EPS = 1e-3          # below this |yawd| the straight-line model is used
RANGE_FLOOR = 1e-3           # radar range clamp (m)

# First-measurement defaults for the unobserved state components
INIT_SPEED = 3.0
INIT_YAW = 0.0
INIT_YAW_RATE = 0.1
INIT_VAR_SPEED = 1.0
INIT_VAR_YAW = math.pi ** 2 / 64.0
INIT_VAR_YAW_RATE = INIT_VAR_YAW / 10.0


@dataclass(frozen=True)
class UKFConfig:
    """Configuration for :class:`ctrv_ukf.ukf.UnscentedKalmanFilter`.

    Attributes:
        std_a: Process noise std-dev, longitudinal acceleration (m/s²)
        std_yawdd: Process noise std-dev, yaw acceleration (rad/s²)
        std_laspx, std_laspy: Lidar position noise std-devs (m)
        std_radr: Radar range noise std-dev (m)
        std_radphi: Radar bearing noise std-dev (rad)
        std_radrd: Radar range-rate noise std-dev (m/s)
        use_laser: Process lidar measurements after initialization
        use_radar: Process radar measurements after initialization
        yaw_rate_eps: Turn-rate magnitude below which CTRV degenerates to CV
        range_floor: Minimum radar range used by the observation model
        init_*: Seeds for speed / heading / heading-rate on first measurement
    """
    std_a: float = DEFAULT_STD_A
    std_yawdd: float = DEFAULT_STD_YAWDD
    std_laspx: float = DEFAULT_STD_LASPX
    std_laspy: float = DEFAULT_STD_LASPY
    std_radr: float = DEFAULT_STD_RADR
    std_radphi: float = DEFAULT_STD_RADPHI
    std_radrd: float = DEFAULT_STD_RADRD
    use_laser: bool = True
    use_radar: bool = True
    yaw_rate_eps: float = YAW_RATE_EPS
    range_floor: float = RANGE_FLOOR
    init_speed: float = INIT_SPEED
    init_yaw: float = INIT_YAW
    init_yaw_rate: float = INIT_YAW_RATE
    init_var_speed: float = INIT_VAR_SPEED
    init_var_yaw: float = INIT_VAR_YAW
    init_var_yaw_rate: float = INIT_VAR_YAW_RATE

    def __post_init__(self):
        for name in ("std_a", "std_yawdd", "std_laspx", "std_laspy",
                     "std_radr", "std_radphi", "std_radrd",
                     "yaw_rate_eps", "range_floor",
                     "init_var_speed", "init_var_yaw", "init_var_yaw_rate"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive finite number, got {value!r}")
        for name in ("init_speed", "init_yaw", "init_yaw_rate"):
            if not np.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite")

    @property
    def R_laser(self) -> np.ndarray:
        """Lidar measurement noise covariance (2×2)."""
        return np.diag([self.std_laspx ** 2, self.std_laspy ** 2])

    @property
    def R_radar(self) -> np.ndarray:
        """Radar measurement noise covariance (3×3)."""
        return np.diag([self.std_radr ** 2, self.std_radphi ** 2, self.std_radrd ** 2])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UKFConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown UKF config keys: {', '.join(unknown)}")
        return cls(**data)


def load_config(config_path: str) -> UKFConfig:
    """Load a :class:`UKFConfig` from a YAML file.

    The mapping may sit at top level or under a ``ukf`` key. An empty
    file yields the defaults.
    """
    with open(config_path, 'r') as f:
        raw = yaml.safe_load(f)
    if raw is None:
        return UKFConfig()
    if not isinstance(raw, dict):
        raise ValueError(f"{config_path}: expected a mapping, got {type(raw).__name__}")
    if "ukf" in raw:
        raw = raw["ukf"]
    return UKFConfig.from_dict(raw)

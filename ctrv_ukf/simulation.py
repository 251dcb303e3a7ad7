"""
Synthetic CTRV scenarios
========================

Ground truth generated with the same CTRV model the filter uses, plus
exact or noisy lidar / radar measurement streams. Used by the tests and
the example script.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import UKFConfig
from .measurement import MeasurementPackage, SensorType
from .motion import N_X, ctrv_propagate_state
from .sensors import lidar_from_state, radar_from_state


def simulate_ctrv(x0: Sequence[float], dt: float, n_steps: int,
                  process_noise: Optional[Tuple[float, float]] = None,
                  rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """True CTRV trajectory.

    Args:
        x0: Initial state [px, py, v, yaw, yawd]
        dt: Step length (s)
        n_steps: Number of states returned, x0 included
        process_noise: (std_a, std_yawdd); accelerations are drawn per step
            and held constant over the step, as the filter assumes
        rng: Random generator for the process noise

    Returns:
        States, shape (n_steps, 5)
    """
    if n_steps < 1:
        raise ValueError("n_steps must be >= 1")
    x = np.asarray(x0, dtype=float)
    if x.shape != (N_X,):
        raise ValueError(f"x0 must have {N_X} elements")
    if process_noise is not None and rng is None:
        rng = np.random.default_rng()

    states = np.zeros((n_steps, N_X))
    states[0] = x
    for k in range(1, n_steps):
        nu_a = nu_yawdd = 0.0
        if process_noise is not None:
            nu_a = rng.normal(0.0, process_noise[0])
            nu_yawdd = rng.normal(0.0, process_noise[1])
        x = ctrv_propagate_state(x, dt, nu_a, nu_yawdd)
        states[k] = x
    return states


def alternating_pattern(n: int, first: SensorType = SensorType.LASER) -> List[SensorType]:
    """LASER, RADAR, LASER, ... (or starting with RADAR)."""
    other = SensorType.RADAR if first is SensorType.LASER else SensorType.LASER
    return [first if k % 2 == 0 else other for k in range(n)]


def generate_measurements(truth: np.ndarray, dt_us: int,
                          pattern: Optional[Sequence[SensorType]] = None,
                          config: Optional[UKFConfig] = None,
                          noisy: bool = False,
                          rng: Optional[np.random.Generator] = None,
                          t0_us: int = 0) -> List[MeasurementPackage]:
    """One measurement package per true state.

    Args:
        truth: True states (n × 5)
        dt_us: Time between consecutive states (µs)
        pattern: Sensor per state; alternating lidar/radar by default
        config: Noise std-devs used when ``noisy``
        noisy: Add zero-mean Gaussian noise with the configured std-devs
        rng: Random generator for the noise
        t0_us: Timestamp of the first state
    """
    truth = np.atleast_2d(np.asarray(truth, dtype=float))
    n = len(truth)
    if pattern is None:
        pattern = alternating_pattern(n)
    if len(pattern) != n:
        raise ValueError(f"pattern length {len(pattern)} != number of states {n}")
    cfg = config if config is not None else UKFConfig()
    if noisy and rng is None:
        rng = np.random.default_rng()

    packages = []
    for k, (x, sensor) in enumerate(zip(truth, pattern)):
        if sensor is SensorType.LASER:
            z = lidar_from_state(x)
            if noisy:
                z = z + rng.normal(0.0, [cfg.std_laspx, cfg.std_laspy])
        elif sensor is SensorType.RADAR:
            z = radar_from_state(x, cfg.range_floor)
            if noisy:
                z = z + rng.normal(0.0, [cfg.std_radr, cfg.std_radphi, cfg.std_radrd])
        else:
            raise ValueError(f"Unsupported sensor in pattern: {sensor!r}")
        packages.append(MeasurementPackage(sensor, z, t0_us + k * dt_us))
    return packages

"""
CTRV motion model
=================

Constant Turn Rate and Velocity: state = [px, py, v, yaw, yawd].
Augmented sigma points append [nu_a, nu_yawdd], the longitudinal and yaw
accelerations held constant over the prediction interval.

    yawd ≠ 0:  px += v/yawd · (sin(yaw + yawd·dt) − sin(yaw))
               py += v/yawd · (cos(yaw) − cos(yaw + yawd·dt))
    yawd ≈ 0:  px += v·dt·cos(yaw)
               py += v·dt·sin(yaw)
    yaw += yawd·dt

Noise terms:
    px += ½·nu_a·dt²·cos(yaw)     py += ½·nu_a·dt²·sin(yaw)
    v  += nu_a·dt
    yaw += ½·nu_yawdd·dt²         yawd += nu_yawdd·dt
"""

import numpy as np

from .config import YAW_RATE_EPS

# State layout
PX, PY, V, YAW, YAWD = range(5)
N_X = 5
N_AUG = 7


def ctrv_predict_sigma_points(Xsig_aug: np.ndarray, delta_t: float,
                              yaw_rate_eps: float = YAW_RATE_EPS) -> np.ndarray:
    """Propagate augmented sigma points (n_sigma × 7) through CTRV.

    Returns:
        Predicted sigma points in state space (n_sigma × 5)
    """
    Xsig_aug = np.atleast_2d(np.asarray(Xsig_aug, dtype=float))
    if Xsig_aug.shape[1] != N_AUG:
        raise ValueError(f"augmented sigma points need {N_AUG} columns, got {Xsig_aug.shape[1]}")

    px, py, v, yaw, yawd, nu_a, nu_yawdd = Xsig_aug.T
    dt = float(delta_t)
    dt2 = dt * dt

    turning = np.abs(yawd) > yaw_rate_eps
    # Only used where turning; avoids 0-division warnings on the other lanes
    safe_yawd = np.where(turning, yawd, 1.0)
    yaw_end = yaw + yawd * dt

    px_p = np.where(turning,
                    px + v / safe_yawd * (np.sin(yaw_end) - np.sin(yaw)),
                    px + v * dt * np.cos(yaw))
    py_p = np.where(turning,
                    py + v / safe_yawd * (np.cos(yaw) - np.cos(yaw_end)),
                    py + v * dt * np.sin(yaw))

    px_p = px_p + 0.5 * nu_a * dt2 * np.cos(yaw)
    py_p = py_p + 0.5 * nu_a * dt2 * np.sin(yaw)
    v_p = v + nu_a * dt
    yaw_p = yaw_end + 0.5 * nu_yawdd * dt2
    yawd_p = yawd + nu_yawdd * dt

    return np.column_stack([px_p, py_p, v_p, yaw_p, yawd_p])


def ctrv_propagate_state(x: np.ndarray, delta_t: float, nu_a: float = 0.0,
                         nu_yawdd: float = 0.0,
                         yaw_rate_eps: float = YAW_RATE_EPS) -> np.ndarray:
    """Propagate a single 5-D state, optionally with fixed accelerations."""
    x = np.asarray(x, dtype=float)
    if x.shape != (N_X,):
        raise ValueError(f"state must have shape ({N_X},), got {x.shape}")
    row = np.concatenate([x, [nu_a, nu_yawdd]])
    return ctrv_predict_sigma_points(row[None, :], delta_t, yaw_rate_eps)[0]


def velocity_components(x: np.ndarray) -> np.ndarray:
    """Cartesian [vx, vy] from speed and heading (works row-wise)."""
    x = np.asarray(x, dtype=float)
    v, yaw = x[..., V], x[..., YAW]
    return np.stack([v * np.cos(yaw), v * np.sin(yaw)], axis=-1)

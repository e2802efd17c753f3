"""Constant-acceleration Kalman filter over planar ball state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

# Measurement picks position out of [x, y, vx, vy, ax, ay].
H = np.array(
    [
        [1.0, 0.0, 0.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0, 0.0, 0.0],
    ]
)


@dataclass(frozen=True)
class KalmanState:
    x: np.ndarray
    P: np.ndarray

    @property
    def position(self) -> Tuple[float, float]:
        return float(self.x[0]), float(self.x[1])

    @property
    def velocity(self) -> Tuple[float, float]:
        return float(self.x[2]), float(self.x[3])

    @property
    def acceleration(self) -> Tuple[float, float]:
        return float(self.x[4]), float(self.x[5])


def initial_state(
    position: Tuple[float, float],
    velocity: Tuple[float, float],
    acceleration: Tuple[float, float],
    position_var: float,
    velocity_var: float,
    acceleration_var: float,
) -> KalmanState:
    x = np.array([position[0], position[1], velocity[0], velocity[1], acceleration[0], acceleration[1]], dtype=float)
    P = np.diag([position_var, position_var, velocity_var, velocity_var, acceleration_var, acceleration_var])
    return KalmanState(x=x, P=P)


def transition(dt: float) -> np.ndarray:
    F = np.eye(6)
    for i in range(2):
        F[i, i + 2] = dt
        F[i, i + 4] = 0.5 * dt * dt
        F[i + 2, i + 4] = dt
    return F


def process_noise(dt: float, q: float) -> np.ndarray:
    """White-jerk process noise with spectral density ``q``."""
    block = np.array(
        [
            [dt**5 / 20.0, dt**4 / 8.0, dt**3 / 6.0],
            [dt**4 / 8.0, dt**3 / 3.0, dt**2 / 2.0],
            [dt**3 / 6.0, dt**2 / 2.0, dt],
        ]
    ) * q
    Q = np.zeros((6, 6))
    for i in range(2):
        idx = [i, i + 2, i + 4]
        Q[np.ix_(idx, idx)] = block
    return Q


def predict(state: KalmanState, dt: float, q: float) -> KalmanState:
    F = transition(dt)
    x_pred = F @ state.x
    P_pred = F @ state.P @ F.T + process_noise(dt, q)
    return KalmanState(x=x_pred, P=P_pred)


def innovation(
    state: KalmanState, z: Tuple[float, float], meas_var: float
) -> Tuple[np.ndarray, np.ndarray]:
    y = np.array(z, dtype=float) - H @ state.x
    S = H @ state.P @ H.T + np.eye(2) * meas_var
    return y, S


def mahalanobis_sq(y: np.ndarray, S: np.ndarray) -> float:
    return float(y @ np.linalg.solve(S, y))


def update(state: KalmanState, z: Tuple[float, float], meas_var: float) -> KalmanState:
    y, S = innovation(state, z, meas_var)
    K = state.P @ H.T @ np.linalg.inv(S)
    x_upd = state.x + K @ y
    # Joseph form keeps P symmetric positive definite.
    I_KH = np.eye(6) - K @ H
    P_upd = I_KH @ state.P @ I_KH.T + K @ (np.eye(2) * meas_var) @ K.T
    return KalmanState(x=x_upd, P=P_upd)

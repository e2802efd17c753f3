"""Post-bounce projection of the ball path to the stumps plane."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from configs.calibration import Calibration
from contracts import BallTrackingData, Position
from log_config.logger import get_logger
from trajectory.pitch_point import PitchPointResult

logger = get_logger(__name__)

# Projections beyond this horizon are treated as never reaching the stumps.
MAX_PROJECTION_S = 3.0
_EPS = 1e-9


@dataclass(frozen=True)
class ProjectedPath:
    reached: bool
    impact_point: Position
    time_to_impact_s: float
    path: Tuple[Position, ...]


def predict_path(
    track: Sequence[BallTrackingData],
    pitch: PitchPointResult,
    calibration: Calibration,
    turn_deg: float = 0.0,
) -> ProjectedPath:
    """Extrapolate from the pitch point to the stumps plane.

    The launch state is the mean velocity and acceleration of the records
    following the pitch point. ``turn_deg`` is the geometric path turn
    measured before the bounce; a fraction of it is applied to the launch
    velocity to model the deviation off the pitch. Without a bounce the
    launch velocity is used unrotated.
    """
    p0 = np.array(pitch.position.as_tuple(), dtype=float)
    velocity, acceleration = _launch_state(track, pitch.index, calibration.metrics.post_bounce_window)
    if not pitch.no_bounce and turn_deg:
        velocity = _rotate(velocity, calibration.metrics.swing_deviation_coefficient * turn_deg)

    axis = np.array(calibration.pitch_axis)
    start = calibration.along(pitch.position) - calibration.stumps.plane_offset
    t_impact = _time_to_plane(start, float(velocity @ axis), float(acceleration @ axis))

    if t_impact is None:
        logger.info("Projected path never reaches the stumps plane")
        return ProjectedPath(
            reached=False,
            impact_point=pitch.position,
            time_to_impact_s=math.inf,
            path=(pitch.position,),
        )

    samples = max(calibration.metrics.projection_samples, 2)
    times = np.linspace(0.0, t_impact, samples)
    points = p0 + np.outer(times, velocity) + 0.5 * np.outer(times * times, acceleration)
    path = tuple(Position(float(x), float(y)) for x, y in points)
    return ProjectedPath(
        reached=True,
        impact_point=path[-1],
        time_to_impact_s=float(t_impact),
        path=path,
    )


def _launch_state(
    track: Sequence[BallTrackingData], index: int, window: int
) -> Tuple[np.ndarray, np.ndarray]:
    records = track[index : index + max(window, 1) + 1]
    if len(records) < 2:
        records = track[max(0, index - max(window, 1)) : index + 1]
    velocities = np.array([r.velocity.as_tuple() for r in records], dtype=float)
    velocity = velocities.mean(axis=0)
    if len(records) < 2:
        return velocity, np.zeros(2)
    times = np.array([r.timestamp_ms for r in records], dtype=float) / 1000.0
    dt = np.diff(times)
    dv = np.diff(velocities, axis=0)
    valid = dt > 0
    if not np.any(valid):
        return velocity, np.zeros(2)
    acceleration = (dv[valid] / dt[valid][:, None]).mean(axis=0)
    return velocity, acceleration


def _rotate(vector: np.ndarray, degrees: float) -> np.ndarray:
    theta = math.radians(degrees)
    c, s = math.cos(theta), math.sin(theta)
    return np.array([c * vector[0] - s * vector[1], s * vector[0] + c * vector[1]])


def _time_to_plane(start: float, speed: float, accel: float) -> Optional[float]:
    """Smallest t >= 0 with start + speed t + accel t^2 / 2 == 0."""
    if start >= 0.0:
        return 0.0
    if abs(accel) < _EPS:
        if speed <= _EPS:
            return None
        t = -start / speed
        return t if t <= MAX_PROJECTION_S else None
    a, b, c = 0.5 * accel, speed, start
    disc = b * b - 4.0 * a * c
    if disc < 0.0:
        return None
    root = math.sqrt(disc)
    roots = sorted(t for t in ((-b - root) / (2.0 * a), (-b + root) / (2.0 * a)) if t > 0.0)
    if not roots or roots[0] > MAX_PROJECTION_S:
        return None
    return roots[0]

"""Delivery metrics derived from a finished ball track."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.signal import savgol_filter

from configs.calibration import Calibration
from contracts import BallTrackingData
from log_config.logger import get_logger
from trajectory.pitch_point import PitchPointResult

logger = get_logger(__name__)

MPS_TO_KMH = 3.6
SAVGOL_POLYORDER = 2


@dataclass(frozen=True)
class DeliveryMetrics:
    speed_kmh: float
    max_speed_kmh: float
    swing_angle_deg: float
    spin_rpm: float
    post_bounce_vertical_mps: float
    path_turn_deg: float  # geometric turn, independent of batter handedness


def compute_delivery_metrics(
    track: Sequence[BallTrackingData],
    pitch: PitchPointResult,
    calibration: Calibration,
) -> DeliveryMetrics:
    speed = release_speed_kmh(track, calibration)
    if calibration.swing_observable:
        turn = path_turn_deg(track, pitch, calibration)
        spin = spin_rate_rpm(track, pitch, calibration)
    else:
        logger.info("Lateral axis is too close to vertical in this view; swing and spin not measured")
        turn = 0.0
        spin = 0.0
    return DeliveryMetrics(
        speed_kmh=speed,
        max_speed_kmh=max(speed, max_speed_kmh(track, calibration)),
        swing_angle_deg=-turn if calibration.metrics.batter_handedness == "left" else turn,
        path_turn_deg=turn,
        spin_rpm=spin,
        post_bounce_vertical_mps=post_bounce_vertical_mps(track, pitch, calibration),
    )


def release_speed_kmh(track: Sequence[BallTrackingData], calibration: Calibration) -> float:
    """Average speed over the release window, from displacement over elapsed time."""
    window = min(calibration.metrics.release_window, len(track) - 1)
    if window < 1:
        return 0.0
    first, last = track[0], track[window]
    distance = first.position.distance_to(last.position)
    return calibration.units_to_meters(distance / _elapsed_s(first, last, window, calibration)) * MPS_TO_KMH


def max_speed_kmh(track: Sequence[BallTrackingData], calibration: Calibration) -> float:
    if not track:
        return 0.0
    peak = max(record.velocity.magnitude for record in track)
    return calibration.units_to_meters(peak) * MPS_TO_KMH


def path_turn_deg(
    track: Sequence[BallTrackingData],
    pitch: PitchPointResult,
    calibration: Calibration,
) -> float:
    """Signed angle from the release direction to the direction just before pitching.

    Directions are taken in (along, horizontal lateral) coordinates, so
    vertical motion never reads as turn. Positive means the path turned
    toward the lateral axis (pitch axis rotated +90 degrees). Returns 0 when
    the view cannot separate lateral from vertical motion.
    """
    if not calibration.swing_observable:
        return 0.0
    along, lateral = _horizontal_coordinates(track, calibration)
    window = calibration.metrics.direction_window
    release = _direction(along, lateral, 0, min(window, len(track) - 1))
    end = pitch.index - 1 if not pitch.no_bounce else len(track) - 1
    end = max(end, 1)
    pre_bounce = _direction(along, lateral, max(0, end - window), end)
    if release is None or pre_bounce is None:
        return 0.0
    cross = release[0] * pre_bounce[1] - release[1] * pre_bounce[0]
    dot = release[0] * pre_bounce[0] + release[1] * pre_bounce[1]
    return math.degrees(math.atan2(cross, dot))


def spin_rate_rpm(
    track: Sequence[BallTrackingData],
    pitch: PitchPointResult,
    calibration: Calibration,
) -> float:
    """Modelled spin: mean pre-bounce horizontal path curvature times a calibrated coefficient.

    Rotation is not observable from positions alone; this is an estimate
    whose scale rests entirely on ``metrics.curvature_to_rpm``. Curvature is
    measured in (along, horizontal lateral) coordinates so the gravity arc
    does not count, and is 0 when the view cannot separate the two.
    """
    if not calibration.swing_observable:
        return 0.0
    end = pitch.index if not pitch.no_bounce else len(track)
    segment = track[:end]
    n = len(segment)
    window = min(calibration.metrics.spin_smoothing_window, n if n % 2 == 1 else n - 1)
    if window <= SAVGOL_POLYORDER:
        return 0.0
    times = np.array([r.timestamp_ms for r in segment], dtype=float) / 1000.0
    delta = float(np.mean(np.diff(times))) if n > 1 else 1.0 / calibration.fps
    if delta <= 0:
        delta = 1.0 / calibration.fps
    xs, ys = _horizontal_coordinates(segment, calibration)
    dx = savgol_filter(xs, window, SAVGOL_POLYORDER, deriv=1, delta=delta)
    dy = savgol_filter(ys, window, SAVGOL_POLYORDER, deriv=1, delta=delta)
    ddx = savgol_filter(xs, window, SAVGOL_POLYORDER, deriv=2, delta=delta)
    ddy = savgol_filter(ys, window, SAVGOL_POLYORDER, deriv=2, delta=delta)
    speed_sq = dx * dx + dy * dy
    moving = speed_sq > 1e-9
    if not np.any(moving):
        return 0.0
    curvature = np.abs(dx * ddy - dy * ddx)[moving] / speed_sq[moving] ** 1.5
    curvature_per_m = float(np.mean(curvature)) / calibration.meters_per_unit
    return curvature_per_m * calibration.metrics.curvature_to_rpm


def post_bounce_vertical_mps(
    track: Sequence[BallTrackingData],
    pitch: PitchPointResult,
    calibration: Calibration,
) -> float:
    if pitch.no_bounce:
        return 0.0
    window = track[pitch.index : pitch.index + calibration.metrics.post_bounce_window]
    if not window:
        return 0.0
    vertical = [calibration.vertical_component(r.velocity.vx, r.velocity.vy) for r in window]
    return calibration.units_to_meters(sum(vertical) / len(vertical))


def _horizontal_coordinates(
    track: Sequence[BallTrackingData], calibration: Calibration
) -> Tuple[np.ndarray, np.ndarray]:
    points = np.array([r.position.as_tuple() for r in track], dtype=float).reshape(-1, 2)
    along = points @ np.array(calibration.pitch_axis)
    lateral = points @ np.array(calibration.horizontal_lateral_axis)
    return along, lateral


def _direction(
    along: np.ndarray, lateral: np.ndarray, start: int, end: int
) -> Optional[Tuple[float, float]]:
    if end <= start or end >= len(along):
        return None
    dx = float(along[end] - along[start])
    dy = float(lateral[end] - lateral[start])
    if dx == 0.0 and dy == 0.0:
        return None
    return dx, dy


def _elapsed_s(
    first: BallTrackingData, last: BallTrackingData, frames: int, calibration: Calibration
) -> float:
    dt = (last.timestamp_ms - first.timestamp_ms) / 1000.0
    if dt <= 0:
        dt = frames / calibration.fps
    return dt

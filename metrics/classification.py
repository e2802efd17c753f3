"""Delivery type classification from calibrated thresholds."""

from __future__ import annotations

from configs.calibration import ClassificationThresholds
from contracts import BallType


def classify_ball_type(
    swing_angle_deg: float,
    pitch_distance_m: float,
    post_bounce_vertical_mps: float,
    no_bounce: bool,
    thresholds: ClassificationThresholds,
) -> BallType:
    """Rules are checked in priority order: bouncer, yorker, swing, straight.

    A delivery without a bounce can only be a yorker or straight.
    """
    if no_bounce:
        if pitch_distance_m < thresholds.yorker_max_pitch_distance_m:
            return BallType.YORKER
        return BallType.STRAIGHT
    if post_bounce_vertical_mps > thresholds.bouncer_vertical_speed_mps:
        return BallType.BOUNCER
    if pitch_distance_m < thresholds.yorker_max_pitch_distance_m:
        return BallType.YORKER
    if abs(swing_angle_deg) >= thresholds.min_swing_deg:
        return BallType.INSWINGER if swing_angle_deg > 0 else BallType.OUTSWINGER
    return BallType.STRAIGHT

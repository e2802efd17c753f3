"""Post-tracking analysis: a pure function from a finished track to results."""

from __future__ import annotations

import time
from typing import Sequence

from configs.calibration import Calibration
from contracts import AnalysisResults, BallTrackingData
from exceptions import InsufficientTrackLengthError
from log_config.logger import get_logger, log_performance
from metrics.classification import classify_ball_type
from metrics.delivery import compute_delivery_metrics
from metrics.lbw import decide_lbw
from trajectory.pitch_point import find_pitch_point
from trajectory.predictor import predict_path

logger = get_logger(__name__)


def compute_analysis(track: Sequence[BallTrackingData], calibration: Calibration) -> AnalysisResults:
    """Derive delivery metrics, pitch point, projection and LBW decision.

    Every stage reads the same immutable track; calling this twice with the
    same inputs yields identical results.

    Args:
        track: Records of the selected segment, in frame order
        calibration: Validated calibration

    Returns:
        AnalysisResults for the delivery

    Raises:
        InsufficientTrackLengthError: If the track is shorter than
            ``tracker.min_track_length``
    """
    records = tuple(track)
    min_length = calibration.tracker.min_track_length
    if len(records) < min_length:
        logger.warning(f"Track too short for analysis: {len(records)} < {min_length}")
        raise InsufficientTrackLengthError(len(records), min_length)

    start = time.perf_counter()
    pitch = find_pitch_point(records, calibration)
    delivery = compute_delivery_metrics(records, pitch, calibration)
    ball_type = classify_ball_type(
        swing_angle_deg=delivery.swing_angle_deg,
        pitch_distance_m=pitch.pitch_distance_m,
        post_bounce_vertical_mps=delivery.post_bounce_vertical_mps,
        no_bounce=pitch.no_bounce,
        thresholds=calibration.thresholds,
    )
    projection = predict_path(records, pitch, calibration, turn_deg=delivery.path_turn_deg)
    lbw = decide_lbw(records, pitch, projection, calibration)
    log_performance("compute_analysis", (time.perf_counter() - start) * 1000.0)

    logger.info(
        f"Delivery: {delivery.speed_kmh:.1f} km/h, {ball_type.value}, "
        f"pitch {pitch.pitch_distance_m:.2f} m from stumps"
        + (" (no bounce)" if pitch.no_bounce else "")
    )
    return AnalysisResults(
        speed=delivery.speed_kmh,
        max_speed=delivery.max_speed_kmh,
        pitch_point=pitch.pitch_point,
        pitch_distance=pitch.pitch_distance_m,
        swing_angle=delivery.swing_angle_deg,
        spin_rate=delivery.spin_rpm,
        ball_type=ball_type,
        lbw_prediction=lbw,
        trajectory=tuple(record.position for record in records),
        no_bounce=pitch.no_bounce,
        projected_path=projection.path,
    )

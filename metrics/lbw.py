"""Leg-before-wicket decision from the projected impact point."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from configs.calibration import Calibration
from contracts import BallTrackingData, LbwPrediction, Position
from log_config.logger import get_logger
from trajectory.pitch_point import PitchPointResult
from trajectory.predictor import ProjectedPath

logger = get_logger(__name__)


@dataclass(frozen=True)
class LbwChecks:
    impact_in_box: bool
    below_bails: bool
    pitched_in_line: bool
    reached_stumps: bool

    @property
    def would_hit(self) -> bool:
        return self.impact_in_box and self.below_bails and self.pitched_in_line and self.reached_stumps


def decide_lbw(
    track: Sequence[BallTrackingData],
    pitch: PitchPointResult,
    projection: ProjectedPath,
    calibration: Calibration,
) -> LbwPrediction:
    """Combine the geometric checks and a margin-based probability.

    probability = g * wc * wb * wl * wr, where g is a rational sigmoid of the
    normalized margin inside the stump box, wc scales with track confidence
    at the pitch point and at the last record, and wb, wl, wr are fixed
    penalties for no bounce, pitching outside the line and a projection
    that never reaches the stumps. Every factor is monotonic in its input
    and g stays strictly inside (0, 1).
    """
    impact = projection.impact_point
    checks = evaluate_checks(impact, pitch, projection, calibration)
    cfg = calibration.lbw

    g = margin_score(normalized_margin(impact, calibration), cfg.margin_steepness)
    confidence = (track[pitch.index].confidence + track[-1].confidence) / 2.0
    wc = cfg.confidence_floor + (1.0 - cfg.confidence_floor) * confidence
    wb = 1.0 - cfg.no_bounce_penalty if pitch.no_bounce else 1.0
    wl = 1.0 if checks.pitched_in_line else cfg.outside_line_factor
    wr = 1.0 if checks.reached_stumps else cfg.unreached_factor
    probability = min(1.0, max(0.0, g * wc * wb * wl * wr))

    logger.info(
        f"LBW: hitting={checks.would_hit} p={probability:.3f} "
        f"(in_box={checks.impact_in_box} below_bails={checks.below_bails} "
        f"in_line={checks.pitched_in_line} reached={checks.reached_stumps})"
    )
    return LbwPrediction(probability=probability, impact_point=impact, would_hit_stumps=checks.would_hit)


def evaluate_checks(
    impact: Position,
    pitch: PitchPointResult,
    projection: ProjectedPath,
    calibration: Calibration,
) -> LbwChecks:
    x_min, y_min, x_max, y_max = calibration.stumps.rect
    lo, hi = calibration.inline_bounds
    return LbwChecks(
        impact_in_box=x_min <= impact.x <= x_max and y_min <= impact.y <= y_max,
        below_bails=calibration.height(impact) < calibration.stumps.bail_height,
        pitched_in_line=lo <= calibration.lateral(pitch.position) <= hi,
        reached_stumps=projection.reached,
    )


def normalized_margin(impact: Position, calibration: Calibration) -> float:
    """Signed distance inside the bail-clipped stump box over its half extent.

    Positive inside, where it is the distance to the nearest edge. Outside it
    is minus the Euclidean distance to the box, so a point off on two axes
    scores lower the further it is on either.
    """
    x_min, y_min, x_max, y_max = calibration.stumps.rect
    bail = calibration.stumps.bail_height
    distances = (
        impact.x - x_min,
        x_max - impact.x,
        impact.y - y_min,
        y_max - impact.y,
        bail - calibration.height(impact),
    )
    half_extent = 0.5 * min(x_max - x_min, y_max - y_min, bail)
    inside = min(distances)
    if inside >= 0.0:
        return inside / half_extent
    dx = max(x_min - impact.x, 0.0, impact.x - x_max)
    dy = max(y_min - impact.y, 0.0, impact.y - y_max, calibration.height(impact) - bail)
    return -math.hypot(dx, dy) / half_extent


def margin_score(margin: float, steepness: float) -> float:
    km = steepness * margin
    return 0.5 + 0.5 * km / (1.0 + abs(km))

"""Bounce (pitching point) detection over a finished track."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from configs.calibration import Calibration
from contracts import BallTrackingData, Position
from log_config.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PitchPointResult:
    index: int  # position in the track, not the frame index
    frame_index: int
    position: Position
    pitch_distance_m: float
    no_bounce: bool

    @property
    def pitch_point(self) -> Optional[Position]:
        return None if self.no_bounce else self.position


def find_pitch_point(track: Sequence[BallTrackingData], calibration: Calibration) -> PitchPointResult:
    """Locate the first descending-to-ascending reversal of vertical velocity.

    Velocities inside the tolerance band around zero count as level, so
    jitter on a flat path never registers as a bounce. Without a reversal
    the last record stands in for the pitch point and ``no_bounce`` is set.
    """
    if not track:
        raise ValueError("Cannot search an empty track for a pitch point")
    tolerance = calibration.meters_to_units(calibration.metrics.bounce_tolerance_mps)
    vertical = [calibration.vertical_component(r.velocity.vx, r.velocity.vy) for r in track]

    for i in range(1, len(track)):
        if vertical[i - 1] < -tolerance and vertical[i] >= -tolerance:
            return _result(track, i, calibration, no_bounce=False)

    logger.info("No bounce detected; using last tracked position as the pitch substitute")
    return _result(track, len(track) - 1, calibration, no_bounce=True)


def _result(
    track: Sequence[BallTrackingData], index: int, calibration: Calibration, no_bounce: bool
) -> PitchPointResult:
    record = track[index]
    remaining = calibration.stumps.plane_offset - calibration.along(record.position)
    return PitchPointResult(
        index=index,
        frame_index=record.frame_index,
        position=record.position,
        pitch_distance_m=calibration.units_to_meters(remaining),
        no_bounce=no_bounce,
    )

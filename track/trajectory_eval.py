"""Evaluation helpers for tracked segments."""

from __future__ import annotations

from typing import Iterable, Optional

from contracts import TrackSegment
from log_config.logger import get_logger

logger = get_logger(__name__)


def log_segment_summary(
    segments: Iterable[TrackSegment],
    selected: Optional[TrackSegment] = None,
) -> None:
    segment_list = list(segments)
    if not segment_list:
        logger.info("track.segment_summary segments=0")
        return
    for segment in segment_list:
        records = segment.records
        duration_ms = records[-1].timestamp_ms - records[0].timestamp_ms if records else 0.0
        logger.info(
            f"track.segment_summary segment={segment.segment_index} "
            f"frames={segment.start_frame}-{records[-1].frame_index} records={len(segment)} "
            f"accepted={segment.accepted_count} duration_ms={duration_ms:.1f} "
            f"mean_confidence={_mean_confidence(segment):.3f} "
            f"selected={'yes' if selected is segment else 'no'}"
        )


def _mean_confidence(segment: TrackSegment) -> float:
    if not segment.records:
        return 0.0
    return sum(r.confidence for r in segment.records) / len(segment.records)


__all__ = ["log_segment_summary"]

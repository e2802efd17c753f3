"""Tracking interfaces and track state containers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from contracts import BallCandidate, BallTrackingData, TrackBoundary, TrackSegment
from detect.detector import DetectionContext


class TrackerPhase(Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    LOST = "lost"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class TrackerUpdate:
    phase: TrackerPhase
    record: Optional[BallTrackingData] = None
    boundary: Optional[TrackBoundary] = None
    accepted: bool = False


class Tracker(ABC):
    @abstractmethod
    def update(
        self,
        frame_index: int,
        timestamp_ms: float,
        candidate: Optional[BallCandidate],
    ) -> TrackerUpdate:
        """Advance one frame with the detector output (or None if missing)."""

    @abstractmethod
    def finalize(self) -> List[TrackSegment]:
        """Close any open segment and return every segment found."""

    def context(self) -> Optional[DetectionContext]:
        return None


def select_primary_segment(segments: Iterable[TrackSegment]) -> Optional[TrackSegment]:
    """Longest segment wins; ties go to the earliest start frame."""
    best: Optional[TrackSegment] = None
    for segment in segments:
        if not segment.records:
            continue
        if best is None or len(segment) > len(best):
            best = segment
        elif len(segment) == len(best) and segment.start_frame < best.start_frame:
            best = segment
    return best

"""Scripted detector for simulated pipeline runs."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from contracts import BallCandidate, Frame

from .detector import BallDetector, DetectionContext
from .filters import apply_continuity_filter


class ScriptedDetector(BallDetector):
    """Replays precomputed candidates keyed by frame index."""

    name = "scripted"

    def __init__(self, candidates: Mapping[int, Optional[BallCandidate]]) -> None:
        self._candidates: Dict[int, Optional[BallCandidate]] = dict(candidates)

    def detect(
        self, frame: Frame, context: Optional[DetectionContext] = None
    ) -> Optional[BallCandidate]:
        candidate = self._candidates.get(frame.frame_index)
        if candidate is None:
            return None
        kept = apply_continuity_filter([candidate], context)
        return kept[0] if kept else None

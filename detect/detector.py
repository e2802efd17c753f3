"""Ball detector contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from contracts import BallCandidate, Frame, Position


@dataclass(frozen=True)
class DetectionContext:
    """Soft continuity prior handed to a detector by its caller.

    The detector never keeps this between calls; the tracker builds a new one
    per frame from its own state.
    """

    last_position_px: Optional[Position] = None
    frames_since: int = 1
    max_displacement_px: float = float("inf")


class BallDetector(ABC):
    """Stateless per-frame detector returning zero or one ball candidate."""

    name: str = "detector"

    @abstractmethod
    def detect(
        self, frame: Frame, context: Optional[DetectionContext] = None
    ) -> Optional[BallCandidate]:
        """Return the ball candidate for ``frame`` or None on a miss."""

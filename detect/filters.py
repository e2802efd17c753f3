from __future__ import annotations

from typing import Optional, Sequence

from contracts import BallCandidate
from detect.config import FilterConfig
from detect.detector import DetectionContext
from detect.types import BlobDetection


def apply_area_filter(
    detections: list[BlobDetection], config: FilterConfig
) -> list[BlobDetection]:
    output = []
    for det in detections:
        if det.area < config.min_area:
            continue
        if config.max_area is not None and det.area > config.max_area:
            continue
        output.append(det)
    return output


def apply_circularity_filter(
    detections: list[BlobDetection], config: FilterConfig
) -> list[BlobDetection]:
    return [det for det in detections if det.circularity >= config.min_circularity]


def split_blurred(
    detections: list[BlobDetection], config: FilterConfig
) -> tuple[list[BlobDetection], list[BlobDetection]]:
    """Separate sharp blobs from motion-smeared ones."""
    sharp = []
    blurred = []
    for det in detections:
        if det.elongation > config.max_elongation:
            blurred.append(det)
        else:
            sharp.append(det)
    return sharp, blurred


def apply_continuity_filter(
    candidates: Sequence[BallCandidate], context: Optional[DetectionContext]
) -> list[BallCandidate]:
    if context is None or context.last_position_px is None:
        return list(candidates)
    reach = context.max_displacement_px * max(context.frames_since, 1)
    return [
        cand
        for cand in candidates
        if cand.position.distance_to(context.last_position_px) <= reach
    ]


def resolve_single(
    candidates: Sequence[BallCandidate], ambiguity_ratio: float
) -> Optional[BallCandidate]:
    """Return the best candidate, or None when two candidates are too close to call."""
    if not candidates:
        return None
    ranked = sorted(candidates, key=lambda cand: cand.confidence, reverse=True)
    best = ranked[0]
    if len(ranked) > 1 and ranked[1].confidence >= ambiguity_ratio * best.confidence:
        return None
    return best

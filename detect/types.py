from __future__ import annotations

from dataclasses import dataclass

from contracts import BallCandidate, Position


@dataclass
class BlobDetection:
    centroid: tuple[float, float]
    area: float
    perimeter: float
    radius: float
    circularity: float
    elongation: float = 1.0
    fill_ratio: float = 1.0

    @property
    def score(self) -> float:
        return min(1.0, max(self.circularity * self.fill_ratio, 0.0))


def to_candidate(blob: BlobDetection) -> BallCandidate:
    return BallCandidate(
        position=Position(float(blob.centroid[0]), float(blob.centroid[1])),
        confidence=float(blob.score),
        radius_px=float(blob.radius),
    )

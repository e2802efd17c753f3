"""Core data contracts for frames, detection, tracking, and delivery results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Frame:
    frame_index: int
    timestamp_ms: float
    image: Any
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def distance_to(self, other: "Position") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Velocity:
    vx: float
    vy: float

    @property
    def magnitude(self) -> float:
        return math.hypot(self.vx, self.vy)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.vx, self.vy)


@dataclass(frozen=True)
class BallCandidate:
    """Single detector output for one frame, in pixel coordinates."""

    position: Position
    confidence: float
    radius_px: float = 0.0


@dataclass(frozen=True)
class BallTrackingData:
    frame_index: int
    timestamp_ms: float
    position: Position
    velocity: Velocity
    confidence: float
    interpolated: bool = False

    def __post_init__(self) -> None:
        if self.frame_index < 0:
            raise ValueError(f"frame_index must be >= 0, got {self.frame_index}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")

    def to_record(self) -> Dict[str, Any]:
        return {
            "frameIndex": self.frame_index,
            "timestampMs": self.timestamp_ms,
            "position.x": self.position.x,
            "position.y": self.position.y,
            "velocity.x": self.velocity.vx,
            "velocity.y": self.velocity.vy,
            "confidence": self.confidence,
            "interpolated": self.interpolated,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "BallTrackingData":
        return cls(
            frame_index=int(record["frameIndex"]),
            timestamp_ms=float(record["timestampMs"]),
            position=Position(float(record["position.x"]), float(record["position.y"])),
            velocity=Velocity(float(record["velocity.x"]), float(record["velocity.y"])),
            confidence=float(record["confidence"]),
            interpolated=bool(record["interpolated"]),
        )


@dataclass(frozen=True)
class TrackBoundary:
    """Marker emitted by the tracker when a segment closes."""

    segment_index: int
    frame_index: int
    reason: str


@dataclass(frozen=True)
class TrackSegment:
    segment_index: int
    records: Tuple[BallTrackingData, ...]

    def __post_init__(self) -> None:
        for prev, cur in zip(self.records, self.records[1:]):
            if cur.frame_index <= prev.frame_index:
                raise ValueError(
                    f"frame_index must strictly increase: {prev.frame_index} -> {cur.frame_index}"
                )
            if cur.timestamp_ms < prev.timestamp_ms:
                raise ValueError(
                    f"timestamps must not decrease: {prev.timestamp_ms} -> {cur.timestamp_ms}"
                )

    def __len__(self) -> int:
        return len(self.records)

    @property
    def start_frame(self) -> int:
        return self.records[0].frame_index if self.records else -1

    @property
    def accepted_count(self) -> int:
        return sum(1 for record in self.records if not record.interpolated)


class BallType(str, Enum):
    INSWINGER = "inswinger"
    OUTSWINGER = "outswinger"
    STRAIGHT = "straight"
    YORKER = "yorker"
    BOUNCER = "bouncer"


@dataclass(frozen=True)
class LbwPrediction:
    probability: float
    impact_point: Position
    would_hit_stumps: bool

    def __post_init__(self) -> None:
        if not 0.0 <= self.probability <= 1.0:
            raise ValueError(f"probability must be in [0, 1], got {self.probability}")


@dataclass(frozen=True)
class AnalysisResults:
    speed: float
    max_speed: float
    pitch_point: Optional[Position]
    pitch_distance: float
    swing_angle: float
    spin_rate: float
    ball_type: BallType
    lbw_prediction: LbwPrediction
    trajectory: Tuple[Position, ...]
    no_bounce: bool = False
    projected_path: Tuple[Position, ...] = field(default_factory=tuple)

    def to_record(self) -> Dict[str, Any]:
        return {
            "speed": self.speed,
            "maxSpeed": self.max_speed,
            "pitchPoint.x": self.pitch_point.x if self.pitch_point else None,
            "pitchPoint.y": self.pitch_point.y if self.pitch_point else None,
            "pitchDistance": self.pitch_distance,
            "swingAngle": self.swing_angle,
            "spinRate": self.spin_rate,
            "ballType": self.ball_type.value,
            "lbwPrediction.probability": self.lbw_prediction.probability,
            "lbwPrediction.impactPoint.x": self.lbw_prediction.impact_point.x,
            "lbwPrediction.impactPoint.y": self.lbw_prediction.impact_point.y,
            "lbwPrediction.wouldHitStumps": self.lbw_prediction.would_hit_stumps,
            "trajectory": [[p.x, p.y] for p in self.trajectory],
            "noBounce": self.no_bounce,
            "projectedPath": [[p.x, p.y] for p in self.projected_path],
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "AnalysisResults":
        pitch_point = None
        if record.get("pitchPoint.x") is not None:
            pitch_point = Position(float(record["pitchPoint.x"]), float(record["pitchPoint.y"]))
        return cls(
            speed=float(record["speed"]),
            max_speed=float(record["maxSpeed"]),
            pitch_point=pitch_point,
            pitch_distance=float(record["pitchDistance"]),
            swing_angle=float(record["swingAngle"]),
            spin_rate=float(record["spinRate"]),
            ball_type=BallType(record["ballType"]),
            lbw_prediction=LbwPrediction(
                probability=float(record["lbwPrediction.probability"]),
                impact_point=Position(
                    float(record["lbwPrediction.impactPoint.x"]),
                    float(record["lbwPrediction.impactPoint.y"]),
                ),
                would_hit_stumps=bool(record["lbwPrediction.wouldHitStumps"]),
            ),
            trajectory=tuple(Position(float(x), float(y)) for x, y in record["trajectory"]),
            no_bounce=bool(record.get("noBounce", False)),
            projected_path=tuple(
                Position(float(x), float(y)) for x, y in record.get("projectedPath", [])
            ),
        )

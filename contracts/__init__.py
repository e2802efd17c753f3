"""Shared data contracts for delivery analysis."""

from .types import (
    AnalysisResults,
    BallCandidate,
    BallTrackingData,
    BallType,
    Frame,
    LbwPrediction,
    Position,
    TrackBoundary,
    TrackSegment,
    Velocity,
)

__all__ = [
    "AnalysisResults",
    "BallCandidate",
    "BallTrackingData",
    "BallType",
    "Frame",
    "LbwPrediction",
    "Position",
    "TrackBoundary",
    "TrackSegment",
    "Velocity",
]

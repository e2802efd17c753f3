"""Ball state estimation."""

from .kalman_tracker import KalmanBallTracker
from .tracker import Tracker, TrackerPhase, TrackerUpdate, select_primary_segment

__all__ = [
    "KalmanBallTracker",
    "Tracker",
    "TrackerPhase",
    "TrackerUpdate",
    "select_primary_segment",
]

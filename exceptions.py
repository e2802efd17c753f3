"""Custom exception classes for DRS-TrackAI."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Named outcomes of an analysis, fatal or not."""

    DETECTION_MISS = "DETECTION_MISS"
    TRACK_LOST = "TRACK_LOST"
    INSUFFICIENT_TRACK_LENGTH = "INSUFFICIENT_TRACK_LENGTH"
    INVALID_CALIBRATION = "INVALID_CALIBRATION"
    NO_BOUNCE_DETECTED = "NO_BOUNCE_DETECTED"
    CANCELLED = "CANCELLED"


class DrsTrackError(Exception):
    """Base exception for all DRS-TrackAI errors."""

    kind: Optional[ErrorKind] = None


class CalibrationError(DrsTrackError):
    """Base exception for calibration-related errors."""

    kind = ErrorKind.INVALID_CALIBRATION


class InvalidCalibrationError(CalibrationError):
    """Raised when calibration is missing, malformed or contradictory."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)


class DetectionError(DrsTrackError):
    """Raised when a detector cannot process a frame at all."""

    pass


class AnalysisError(DrsTrackError):
    """Base exception for analysis failures."""

    pass


class InsufficientTrackLengthError(AnalysisError):
    """Raised when no track segment is long enough to compute metrics."""

    kind = ErrorKind.INSUFFICIENT_TRACK_LENGTH

    def __init__(self, track_length: int, min_length: int):
        self.track_length = track_length
        self.min_length = min_length
        super().__init__(
            f"Track has {track_length} frames, at least {min_length} required"
        )


class AnalysisCancelledError(AnalysisError):
    """Raised when an analysis job is cancelled between frames."""

    kind = ErrorKind.CANCELLED

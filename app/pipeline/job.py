"""Analysis job: frames in, tracking data and delivery results out."""

from __future__ import annotations

import threading
import time
from contextlib import closing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple, Union

from app.pipeline.analysis.engine import compute_analysis
from app.pipeline.detection.worker_pool import DetectionWorkerPool
from configs.calibration import Calibration, calibration_from_dict
from contracts import AnalysisResults, BallCandidate, BallTrackingData, Frame
from detect.detector import BallDetector
from exceptions import (
    AnalysisCancelledError,
    DrsTrackError,
    ErrorKind,
    InsufficientTrackLengthError,
)
from log_config.logger import get_logger, log_performance
from track.kalman_tracker import KalmanBallTracker
from track.tracker import TrackerPhase, select_primary_segment
from track.trajectory_eval import log_segment_summary

logger = get_logger(__name__)


class JobStatus(Enum):
    COMPLETED = "completed"
    UNAVAILABLE = "unavailable"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AnalysisOutcome:
    status: JobStatus
    tracking_data: Tuple[BallTrackingData, ...] = ()
    results: Optional[AnalysisResults] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    segments_found: int = 0
    detection_misses: int = 0
    detector_errors: int = 0
    error: Optional[DrsTrackError] = None

    def raise_for_status(self) -> None:
        """Re-raise the failure behind a non-completed outcome."""
        if self.error is not None:
            raise self.error


class AnalysisJob:
    """One analysis run over one video's frames.

    ``cancel`` may be called from any thread. Cancellation is observed
    between frames; queued frames are released, the tracker is discarded and
    the outcome carries no tracking data.
    """

    def __init__(
        self,
        frames: Iterable[Frame],
        calibration: Union[Calibration, Dict[str, Any]],
        detector: BallDetector,
        workers: int = 0,
        queue_size: int = 8,
    ):
        """Initialize analysis job.

        Args:
            frames: Decoded frames in increasing frame order
            calibration: Calibration, or a raw mapping validated here
            detector: Per-frame ball detector
            workers: Detection worker threads; 0 detects on the calling
                thread with the tracker's continuity prior
            queue_size: Bounded queue depth for the worker pool

        Raises:
            InvalidCalibrationError: If a raw calibration mapping is invalid
        """
        if not isinstance(calibration, Calibration):
            calibration = calibration_from_dict(calibration)
        if workers < 0:
            raise ValueError(f"workers must be >= 0, got {workers}")
        self._frames = frames
        self._calibration = calibration
        self._detector = detector
        self._workers = workers
        self._queue_size = queue_size
        self._cancel = threading.Event()
        self._detector_errors = 0

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        if not self._cancel.is_set():
            logger.info("Analysis cancellation requested")
        self._cancel.set()

    def run(self) -> AnalysisOutcome:
        start = time.perf_counter()
        tracker: Optional[KalmanBallTracker] = KalmanBallTracker(self._calibration)
        misses = 0
        frames_seen = 0

        with closing(self._detections(tracker)) as detections:
            for frame, candidate in detections:
                if self._cancel.is_set():
                    break
                frames_seen += 1
                if candidate is None:
                    misses += 1
                update = tracker.update(frame.frame_index, frame.timestamp_ms, candidate)
                if update.boundary is not None and update.boundary.reason == "lost":
                    logger.info(f"{ErrorKind.TRACK_LOST.value} at frame {frame.frame_index}")
                if update.phase == TrackerPhase.FINALIZED:
                    break

        if self._cancel.is_set():
            tracker = None
            error = AnalysisCancelledError(f"Analysis cancelled after {frames_seen} frame(s)")
            return AnalysisOutcome(
                status=JobStatus.CANCELLED,
                error_kind=error.kind,
                message=str(error),
                detection_misses=misses,
                detector_errors=self._detector_errors,
                error=error,
            )

        segments = tracker.finalize()
        selected = select_primary_segment(segments)
        log_segment_summary(segments, selected)
        track = selected.records if selected is not None else ()
        logger.info(
            f"Tracked {frames_seen} frame(s): {len(segments)} segment(s), "
            f"{misses} {ErrorKind.DETECTION_MISS.value.lower()} frame(s)"
        )

        try:
            results = compute_analysis(track, self._calibration)
        except InsufficientTrackLengthError as e:
            return AnalysisOutcome(
                status=JobStatus.UNAVAILABLE,
                tracking_data=track,
                error_kind=e.kind,
                message=str(e),
                segments_found=len(segments),
                detection_misses=misses,
                detector_errors=self._detector_errors,
                error=e,
            )
        finally:
            log_performance("analysis_job", (time.perf_counter() - start) * 1000.0, threshold_ms=5000.0)

        return AnalysisOutcome(
            status=JobStatus.COMPLETED,
            tracking_data=track,
            results=results,
            error_kind=ErrorKind.NO_BOUNCE_DETECTED if results.no_bounce else None,
            segments_found=len(segments),
            detection_misses=misses,
            detector_errors=self._detector_errors,
        )

    def _detections(self, tracker: KalmanBallTracker) -> Iterator[Tuple[Frame, Optional[BallCandidate]]]:
        if self._workers == 0:
            for frame in self._frames:
                if self._cancel.is_set():
                    return
                yield frame, self._detect_inline(frame, tracker)
            return

        pool = DetectionWorkerPool(self._detector, worker_count=self._workers, queue_size=self._queue_size)
        try:
            with closing(pool.process(self._frames, cancel_event=self._cancel)) as results:
                for result in results:
                    yield result.frame, result.candidate
        finally:
            self._detector_errors = pool.error_count

    def _detect_inline(self, frame: Frame, tracker: KalmanBallTracker) -> Optional[BallCandidate]:
        try:
            return self._detector.detect(frame, tracker.context())
        except Exception as e:
            self._detector_errors += 1
            logger.error(
                f"Detection failed on frame {frame.frame_index} "
                f"(error #{self._detector_errors}): {e.__class__.__name__}: {e}"
            )
            return None

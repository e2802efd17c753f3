"""Kalman ball tracker with gating, gap interpolation and segment bookkeeping."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from configs.calibration import Calibration
from contracts import (
    BallCandidate,
    BallTrackingData,
    Position,
    TrackBoundary,
    TrackSegment,
    Velocity,
)
from detect.detector import DetectionContext
from log_config.logger import get_logger
from track import kalman
from track.kalman import KalmanState
from track.tracker import Tracker, TrackerPhase, TrackerUpdate

logger = get_logger(__name__)

# Fastest recorded deliveries are a little over 45 m/s.
MAX_BALL_SPEED_MPS = 50.0
INITIAL_ACCELERATION_SIGMA_MPS2 = 20.0


@dataclass
class _AcceptedFix:
    position: Tuple[float, float]
    timestamp_ms: float
    raw_velocity: Optional[Tuple[float, float]] = None


class KalmanBallTracker(Tracker):
    """Single-owner sequential state estimator.

    Not thread-safe: exactly one consumer feeds frames in strictly
    increasing frame order.
    """

    def __init__(self, calibration: Calibration) -> None:
        self._calibration = calibration
        self._config = calibration.tracker
        self._phase = TrackerPhase.IDLE
        self._state: Optional[KalmanState] = None
        self._last_frame_index: Optional[int] = None
        self._last_timestamp_ms: Optional[float] = None
        self._last_fix: Optional[_AcceptedFix] = None
        self._records: List[BallTrackingData] = []
        self._segments: List[TrackSegment] = []
        self._segment_index = 0
        self._miss_run = 0
        self._frames_lost = 0
        self._max_accel_units = calibration.meters_to_units(self._config.max_acceleration_mps2)
        self._process_noise = self._config.process_noise / calibration.meters_per_unit**2

    @property
    def phase(self) -> TrackerPhase:
        return self._phase

    @property
    def segments(self) -> List[TrackSegment]:
        return list(self._segments)

    def context(self) -> Optional[DetectionContext]:
        if self._phase != TrackerPhase.TRACKING or not self._records:
            return None
        last = self._records[-1]
        u, v = self._calibration.to_pixels(last.position)
        return DetectionContext(
            last_position_px=Position(u, v),
            frames_since=self._miss_run + 1,
            max_displacement_px=self._calibration.meters_to_units(MAX_BALL_SPEED_MPS) / self._calibration.fps,
        )

    def update(
        self,
        frame_index: int,
        timestamp_ms: float,
        candidate: Optional[BallCandidate],
    ) -> TrackerUpdate:
        if self._phase == TrackerPhase.FINALIZED:
            return TrackerUpdate(phase=self._phase)
        if self._last_frame_index is not None and frame_index <= self._last_frame_index:
            raise ValueError(
                f"Frames must arrive in increasing order: {frame_index} after {self._last_frame_index}"
            )
        dt = self._elapsed_s(timestamp_ms)
        self._last_frame_index = frame_index
        self._last_timestamp_ms = timestamp_ms

        if self._phase == TrackerPhase.IDLE:
            if self._confident(candidate):
                return self._start_segment(frame_index, timestamp_ms, candidate, carry=False)
            return TrackerUpdate(phase=self._phase)

        if self._phase == TrackerPhase.LOST:
            self._frames_lost += 1
            if self._confident(candidate):
                logger.info(f"Track reacquired at frame {frame_index} after {self._frames_lost} frame(s)")
                return self._start_segment(frame_index, timestamp_ms, candidate, carry=True)
            if self._frames_lost >= self._config.reacquisition_window:
                logger.info(f"Reacquisition window expired at frame {frame_index}; tracker finalized")
                self._phase = TrackerPhase.FINALIZED
            return TrackerUpdate(phase=self._phase)

        return self._track(frame_index, timestamp_ms, dt, candidate)

    def finalize(self) -> List[TrackSegment]:
        if self._phase == TrackerPhase.TRACKING:
            self._close_segment("end_of_video")
        if self._phase != TrackerPhase.FINALIZED:
            logger.debug(f"Tracker finalized from {self._phase.value} with {len(self._segments)} segment(s)")
        self._phase = TrackerPhase.FINALIZED
        return self.segments

    def _track(
        self,
        frame_index: int,
        timestamp_ms: float,
        dt: float,
        candidate: Optional[BallCandidate],
    ) -> TrackerUpdate:
        predicted = kalman.predict(self._state, dt, self._process_noise)
        accepted = False
        if self._confident(candidate):
            z = self._to_plane(candidate)
            meas_var = self._config.measurement_sigma_px**2 / max(candidate.confidence, 1e-3)
            if self._within_gate(predicted, z, meas_var) and self._plausible(z, timestamp_ms):
                self._state = kalman.update(predicted, z, meas_var)
                accepted = True

        if accepted:
            self._miss_run = 0
            self._remember_fix(self._to_plane(candidate), timestamp_ms)
            record = self._make_record(frame_index, timestamp_ms, candidate.confidence, interpolated=False)
        else:
            self._state = predicted
            self._miss_run += 1
            confidence = self._records[-1].confidence * self._config.confidence_decay
            record = self._make_record(frame_index, timestamp_ms, confidence, interpolated=True)
        self._records.append(record)

        if self._miss_run > self._config.max_interpolated_run:
            boundary = self._close_segment("lost")
            self._phase = TrackerPhase.LOST
            self._frames_lost = 0
            logger.info(
                f"Track lost at frame {frame_index} after {self._miss_run} interpolated frame(s)"
            )
            return TrackerUpdate(phase=self._phase, record=record, boundary=boundary)

        if (
            accepted
            and self._config.finalize_at_stumps
            and self._calibration.along(record.position) >= self._calibration.stumps.plane_offset
        ):
            boundary = self._close_segment("stumps_plane")
            self._phase = TrackerPhase.FINALIZED
            logger.info(f"Ball reached the stumps plane at frame {frame_index}; tracker finalized")
            return TrackerUpdate(phase=self._phase, record=record, boundary=boundary, accepted=True)

        return TrackerUpdate(phase=self._phase, record=record, accepted=accepted)

    def _start_segment(
        self,
        frame_index: int,
        timestamp_ms: float,
        candidate: BallCandidate,
        carry: bool,
    ) -> TrackerUpdate:
        z = self._to_plane(candidate)
        velocity = (0.0, 0.0)
        acceleration = (0.0, 0.0)
        if carry and self._state is not None:
            velocity = self._state.velocity
            acceleration = self._state.acceleration
        cal = self._calibration
        self._state = kalman.initial_state(
            position=z,
            velocity=velocity,
            acceleration=acceleration,
            position_var=self._config.measurement_sigma_px**2,
            velocity_var=cal.meters_to_units(self._config.initial_velocity_sigma_mps) ** 2,
            acceleration_var=cal.meters_to_units(INITIAL_ACCELERATION_SIGMA_MPS2) ** 2,
        )
        self._phase = TrackerPhase.TRACKING
        self._segment_index += 1
        self._records = []
        self._miss_run = 0
        self._last_fix = _AcceptedFix(position=z, timestamp_ms=timestamp_ms)
        record = self._make_record(frame_index, timestamp_ms, candidate.confidence, interpolated=False)
        self._records.append(record)
        logger.debug(f"Segment {self._segment_index} started at frame {frame_index}")
        return TrackerUpdate(phase=self._phase, record=record, accepted=True)

    def _close_segment(self, reason: str) -> TrackBoundary:
        records = list(self._records)
        while records and records[-1].interpolated:
            records.pop()
        if records:
            self._segments.append(TrackSegment(segment_index=self._segment_index, records=tuple(records)))
            logger.debug(f"Segment {self._segment_index} closed ({reason}) with {len(records)} record(s)")
        boundary = TrackBoundary(
            segment_index=self._segment_index,
            frame_index=self._last_frame_index if self._last_frame_index is not None else 0,
            reason=reason,
        )
        self._records = []
        return boundary

    def _confident(self, candidate: Optional[BallCandidate]) -> bool:
        return candidate is not None and candidate.confidence >= self._config.acceptance_threshold

    def _within_gate(self, predicted: KalmanState, z: Tuple[float, float], meas_var: float) -> bool:
        y, S = kalman.innovation(predicted, z, meas_var)
        d2 = kalman.mahalanobis_sq(y, S)
        if d2 > self._config.gate_sigma**2:
            logger.debug(f"Candidate outside gate (d^2={d2:.2f})")
            return False
        return True

    def _plausible(self, z: Tuple[float, float], timestamp_ms: float) -> bool:
        """Reject candidates implying an impossible acceleration since the last fix."""
        fix = self._last_fix
        if fix is None or fix.raw_velocity is None:
            return True
        dt = max((timestamp_ms - fix.timestamp_ms) / 1000.0, 1e-6)
        vx = (z[0] - fix.position[0]) / dt
        vy = (z[1] - fix.position[1]) / dt
        accel = math.hypot(vx - fix.raw_velocity[0], vy - fix.raw_velocity[1]) / dt
        if accel > self._max_accel_units:
            logger.debug(
                f"Candidate rejected: implied acceleration "
                f"{self._calibration.units_to_meters(accel):.0f} m/s^2"
            )
            return False
        return True

    def _remember_fix(self, z: Tuple[float, float], timestamp_ms: float) -> None:
        fix = self._last_fix
        raw_velocity = None
        if fix is not None:
            dt = max((timestamp_ms - fix.timestamp_ms) / 1000.0, 1e-6)
            raw_velocity = ((z[0] - fix.position[0]) / dt, (z[1] - fix.position[1]) / dt)
        self._last_fix = _AcceptedFix(position=z, timestamp_ms=timestamp_ms, raw_velocity=raw_velocity)

    def _elapsed_s(self, timestamp_ms: float) -> float:
        if self._last_timestamp_ms is None:
            return 1.0 / self._calibration.fps
        dt = (timestamp_ms - self._last_timestamp_ms) / 1000.0
        if dt <= 0:
            return 1.0 / self._calibration.fps
        return dt

    def _to_plane(self, candidate: BallCandidate) -> Tuple[float, float]:
        return self._calibration.to_plane(candidate.position.x, candidate.position.y).as_tuple()

    def _make_record(
        self,
        frame_index: int,
        timestamp_ms: float,
        confidence: float,
        interpolated: bool,
    ) -> BallTrackingData:
        x, y = self._state.position
        vx, vy = self._state.velocity
        return BallTrackingData(
            frame_index=frame_index,
            timestamp_ms=timestamp_ms,
            position=Position(x, y),
            velocity=Velocity(vx, vy),
            confidence=min(1.0, max(0.0, float(confidence))),
            interpolated=interpolated,
        )

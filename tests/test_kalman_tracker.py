"""Tests for the Kalman ball tracker state machine."""

import unittest

import pytest

from contracts import BallCandidate, Position, TrackSegment
from track import KalmanBallTracker, TrackerPhase, select_primary_segment
from trajectory.sim import SimConfig, simulate_delivery


def _run(tracker, delivery, frames=None):
    updates = []
    for i, t in enumerate(delivery.timestamps_ms):
        if frames is not None and i >= frames:
            break
        updates.append(tracker.update(i, t, delivery.candidates[i]))
    return updates


class TestKalmanBallTracker(unittest.TestCase):
    """Tracker behaviour on simulated deliveries."""

    @pytest.fixture(autouse=True)
    def _calibration(self, calibration_factory):
        self.calibration = calibration_factory({"tracker": {"finalize_at_stumps": False}})

    def test_idle_until_confident_candidate(self):
        tracker = KalmanBallTracker(self.calibration)
        weak = BallCandidate(Position(100.0, 200.0), confidence=0.2)
        update = tracker.update(0, 0.0, weak)
        self.assertEqual(update.phase, TrackerPhase.IDLE)
        self.assertIsNone(update.record)
        update = tracker.update(1, 16.7, None)
        self.assertEqual(update.phase, TrackerPhase.IDLE)

    def test_clean_delivery_produces_single_segment(self):
        delivery = simulate_delivery(self.calibration, SimConfig(frames=40))
        tracker = KalmanBallTracker(self.calibration)
        _run(tracker, delivery)
        segments = tracker.finalize()
        self.assertEqual(len(segments), 1)
        records = segments[0].records
        self.assertEqual(len(records), 40)
        frames = [r.frame_index for r in records]
        self.assertEqual(frames, sorted(set(frames)))
        for record in records:
            self.assertGreaterEqual(record.confidence, 0.0)
            self.assertLessEqual(record.confidence, 1.0)
            self.assertFalse(record.interpolated)

    def test_filtered_positions_follow_truth(self):
        delivery = simulate_delivery(self.calibration, SimConfig(frames=40, noise_px=1.0))
        tracker = KalmanBallTracker(self.calibration)
        _run(tracker, delivery)
        records = tracker.finalize()[0].records
        # Skip the first frames while velocity converges.
        for record in records[5:25]:
            truth = delivery.truth[record.frame_index]
            self.assertLess(record.position.distance_to(truth), 6.0)

    def test_short_gap_is_interpolated(self):
        delivery = simulate_delivery(self.calibration, SimConfig(frames=40, dropout_frames=(10, 11, 12)))
        tracker = KalmanBallTracker(self.calibration)
        _run(tracker, delivery)
        segments = tracker.finalize()
        self.assertEqual(len(segments), 1)
        by_frame = {r.frame_index: r for r in segments[0].records}
        for frame in (10, 11, 12):
            self.assertTrue(by_frame[frame].interpolated)
        self.assertFalse(by_frame[13].interpolated)
        # Confidence decays across the gap.
        self.assertLess(by_frame[11].confidence, by_frame[10].confidence)
        self.assertLess(by_frame[12].confidence, by_frame[11].confidence)

    def test_long_gap_loses_then_reacquires(self):
        delivery = simulate_delivery(
            self.calibration, SimConfig(frames=45, dropout_frames=tuple(range(15, 25)))
        )
        tracker = KalmanBallTracker(self.calibration)
        phases = [u.phase for u in _run(tracker, delivery)]
        self.assertIn(TrackerPhase.LOST, phases)
        segments = tracker.finalize()
        self.assertEqual(len(segments), 2)
        first, second = segments
        # Trailing extrapolated records are not part of a closed segment.
        self.assertEqual(first.records[-1].frame_index, 14)
        self.assertFalse(first.records[-1].interpolated)
        self.assertEqual(second.start_frame, 25)
        self.assertIs(select_primary_segment(segments), second)

    def test_reacquisition_window_expiry_finalizes(self):
        delivery = simulate_delivery(
            self.calibration, SimConfig(frames=60, dropout_frames=tuple(range(15, 60)))
        )
        tracker = KalmanBallTracker(self.calibration)
        updates = _run(tracker, delivery)
        self.assertEqual(updates[-1].phase, TrackerPhase.FINALIZED)
        self.assertEqual(len(tracker.finalize()), 1)

    def test_outlier_is_rejected(self):
        delivery = simulate_delivery(self.calibration, SimConfig(frames=40))
        truth = delivery.candidates[20]
        delivery.candidates[20] = BallCandidate(
            Position(truth.position.x + 150.0, truth.position.y - 120.0), confidence=0.95
        )
        tracker = KalmanBallTracker(self.calibration)
        updates = _run(tracker, delivery)
        self.assertFalse(updates[20].accepted)
        self.assertTrue(updates[20].record.interpolated)
        self.assertTrue(updates[21].accepted)
        self.assertLess(updates[20].record.position.distance_to(delivery.truth[20]), 10.0)

    def test_frames_must_increase(self):
        tracker = KalmanBallTracker(self.calibration)
        tracker.update(5, 83.3, BallCandidate(Position(100.0, 200.0), 0.9))
        with self.assertRaises(ValueError):
            tracker.update(5, 83.3, None)
        with self.assertRaises(ValueError):
            tracker.update(4, 66.7, None)


def test_tracker_finalizes_at_stumps_plane(calibration) -> None:
    delivery = simulate_delivery(calibration, SimConfig(frames=60))
    tracker = KalmanBallTracker(calibration)
    last = None
    for i, t in enumerate(delivery.timestamps_ms):
        last = tracker.update(i, t, delivery.candidates[i])
        if last.phase == TrackerPhase.FINALIZED:
            break
    assert last.phase == TrackerPhase.FINALIZED
    assert last.boundary is not None and last.boundary.reason == "stumps_plane"
    segment = tracker.finalize()[0]
    assert calibration.along(segment.records[-1].position) >= 0.0
    assert segment.records[-1].frame_index < 59


def test_context_offered_only_while_tracking(calibration) -> None:
    tracker = KalmanBallTracker(calibration)
    assert tracker.context() is None
    tracker.update(0, 0.0, BallCandidate(Position(100.0, 200.0), 0.9))
    context = tracker.context()
    assert context is not None
    assert context.last_position_px == Position(100.0, 200.0)
    assert context.max_displacement_px > 0


def test_longest_segment_selected_with_earliest_tie_break(track_factory) -> None:
    a = TrackSegment(1, tuple(track_factory([(0, 0)] * 3, [(1, 0)] * 3, start_frame=0)))
    b = TrackSegment(2, tuple(track_factory([(0, 0)] * 3, [(1, 0)] * 3, start_frame=10)))
    c = TrackSegment(3, tuple(track_factory([(0, 0)] * 2, [(1, 0)] * 2, start_frame=20)))
    assert select_primary_segment([b, a, c]) is a
    assert select_primary_segment([]) is None

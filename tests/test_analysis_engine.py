"""End-to-end analysis of simulated deliveries."""

import pytest

from app.pipeline.analysis import compute_analysis
from exceptions import ErrorKind, InsufficientTrackLengthError
from track import KalmanBallTracker, select_primary_segment
from trajectory.sim import SimConfig, simulate_delivery


def _track(calibration, config):
    delivery = simulate_delivery(calibration, config)
    tracker = KalmanBallTracker(calibration)
    for i, t in enumerate(delivery.timestamps_ms):
        tracker.update(i, t, delivery.candidates[i])
    return delivery, select_primary_segment(tracker.finalize()).records


def test_bounced_delivery(calibration) -> None:
    delivery, track = _track(calibration, SimConfig(noise_px=0.5))
    results = compute_analysis(track, calibration)
    assert not results.no_bounce
    # Within three frames of the simulated bounce.
    assert results.pitch_point.x == pytest.approx(delivery.truth[30].x, abs=3 * 25.0)
    assert results.pitch_distance == pytest.approx(5.0, abs=1.6)
    assert results.speed == pytest.approx(108.0, rel=0.15)
    assert results.max_speed >= results.speed
    assert results.spin_rate >= 0.0
    assert 0.0 <= results.lbw_prediction.probability <= 1.0
    assert results.trajectory == tuple(r.position for r in track)
    assert results.projected_path[0] == results.pitch_point


def test_full_toss_has_no_pitch_point(calibration) -> None:
    _, track = _track(calibration, SimConfig(bounce_frame=None))
    results = compute_analysis(track, calibration)
    assert results.no_bounce
    assert results.pitch_point is None


def test_analysis_is_pure(calibration) -> None:
    _, track = _track(calibration, SimConfig(noise_px=1.0))
    assert compute_analysis(track, calibration) == compute_analysis(track, calibration)


@pytest.mark.parametrize("length", [0, 1, 9])
def test_short_track_rejected(calibration, length) -> None:
    _, track = _track(calibration, SimConfig())
    with pytest.raises(InsufficientTrackLengthError) as exc_info:
        compute_analysis(track[:length], calibration)
    assert exc_info.value.kind == ErrorKind.INSUFFICIENT_TRACK_LENGTH
    assert exc_info.value.track_length == length

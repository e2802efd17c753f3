"""Tests for the post-bounce projection to the stumps plane."""

import dataclasses
import math

import pytest

from contracts import Position
from trajectory.pitch_point import PitchPointResult, find_pitch_point
from trajectory.predictor import MAX_PROJECTION_S, _time_to_plane, predict_path


def _delivery(track_factory, post_vy=60.0, post_vx=1500.0, frames=40, bounce=30):
    """Descend at -300 units/s onto y=100 at ``bounce``, then rebound."""
    positions = []
    velocities = []
    for i in range(frames):
        x = 100.0 + 25.0 * i
        if i < bounce:
            positions.append((x, 100.0 + 300.0 * (bounce - i) / 60.0))
            velocities.append((1500.0, -300.0))
        else:
            positions.append((x, 100.0 + post_vy * (i - bounce) / 60.0))
            velocities.append((post_vx, post_vy))
    return track_factory(positions, velocities)


def test_projection_reaches_stumps_plane(calibration, track_factory) -> None:
    track = _delivery(track_factory)
    pitch = find_pitch_point(track, calibration)
    projection = predict_path(track, pitch, calibration)
    assert projection.reached
    # 250 units to the stumps at 1500 units/s.
    assert projection.time_to_impact_s == pytest.approx(1.0 / 6.0)
    assert calibration.along(projection.impact_point) == pytest.approx(0.0, abs=1e-6)
    assert projection.impact_point.y == pytest.approx(110.0)
    assert projection.path[0] == pitch.position
    assert projection.path[-1] == projection.impact_point
    assert len(projection.path) == calibration.metrics.projection_samples


def test_projection_is_deterministic(calibration, track_factory) -> None:
    track = _delivery(track_factory)
    pitch = find_pitch_point(track, calibration)
    assert predict_path(track, pitch, calibration, 3.0) == predict_path(track, pitch, calibration, 3.0)


def test_turn_rotates_launch_velocity(calibration, track_factory) -> None:
    track = _delivery(track_factory)
    pitch = find_pitch_point(track, calibration)
    straight = predict_path(track, pitch, calibration)
    turned = predict_path(track, pitch, calibration, turn_deg=10.0)
    assert turned.reached
    assert turned.impact_point.y > straight.impact_point.y
    assert calibration.along(turned.impact_point) == pytest.approx(0.0, abs=1e-6)


def test_turn_ignored_without_bounce(calibration, track_factory) -> None:
    track = _delivery(track_factory)
    pitch = dataclasses.replace(find_pitch_point(track, calibration), no_bounce=True)
    assert predict_path(track, pitch, calibration, 10.0) == predict_path(track, pitch, calibration)


def test_receding_ball_never_reaches(calibration, track_factory) -> None:
    track = _delivery(track_factory, post_vx=-1500.0)
    pitch = find_pitch_point(track, calibration)
    projection = predict_path(track, pitch, calibration)
    assert not projection.reached
    assert math.isinf(projection.time_to_impact_s)
    assert projection.impact_point == pitch.position
    assert projection.path == (pitch.position,)


def test_slow_ball_beyond_horizon_is_unreached(calibration, track_factory) -> None:
    track = _delivery(track_factory, post_vx=50.0)
    pitch = find_pitch_point(track, calibration)
    assert 250.0 / 50.0 > MAX_PROJECTION_S
    assert not predict_path(track, pitch, calibration).reached


def test_pitch_past_plane_impacts_immediately(calibration, track_factory) -> None:
    track = _delivery(track_factory)
    beyond = Position(1120.0, 100.0)
    pitch = PitchPointResult(index=30, frame_index=30, position=beyond, pitch_distance_m=-0.4, no_bounce=False)
    projection = predict_path(track, pitch, calibration)
    assert projection.reached
    assert projection.time_to_impact_s == 0.0
    assert projection.impact_point == beyond


@pytest.mark.parametrize(
    "start,speed,accel,expected",
    [
        (-10.0, 10.0, 0.0, 1.0),
        (-10.0, 0.0, 20.0, 1.0),
        (-10.0, 0.0, 0.0, None),
        (-10.0, 10.0, -100.0, None),
        (-100.0, 10.0, 0.0, None),
        (5.0, -1.0, 0.0, 0.0),
    ],
)
def test_time_to_plane(start, speed, accel, expected) -> None:
    result = _time_to_plane(start, speed, accel)
    if expected is None:
        assert result is None
    else:
        assert result == pytest.approx(expected)

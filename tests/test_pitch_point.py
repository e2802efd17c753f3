import pytest

from trajectory.pitch_point import find_pitch_point


def _bounce_track(track_factory, bounce_frame=30, frames=60, vx=1500.0, vy=300.0):
    positions = []
    velocities = []
    y = 100.0 + vy * bounce_frame / 60.0
    for i in range(frames):
        v = -vy if i < bounce_frame else vy
        positions.append((100.0 + vx * i / 60.0, y))
        velocities.append((vx, v))
        y += v / 60.0
    return track_factory(positions, velocities)


def test_clean_bounce_found_at_reversal(calibration, track_factory) -> None:
    track = _bounce_track(track_factory)
    result = find_pitch_point(track, calibration)
    assert not result.no_bounce
    assert abs(result.frame_index - 30) <= 1
    assert result.pitch_point == track[result.index].position


def test_pitch_distance_measured_to_stumps(calibration, track_factory) -> None:
    track = _bounce_track(track_factory)
    result = find_pitch_point(track, calibration)
    # x = 100 + 25 * 30 = 850, stumps at 1100, 0.02 m per unit
    assert result.pitch_distance_m == pytest.approx(5.0)


def test_constant_velocity_has_no_bounce(calibration, track_factory) -> None:
    positions = [(10.0 * i / 60.0, 150.0) for i in range(60)]
    track = track_factory(positions, [(10.0, 0.0)] * 60)
    result = find_pitch_point(track, calibration)
    assert result.no_bounce
    assert result.pitch_point is None
    assert result.index == len(track) - 1
    assert result.position == track[-1].position


def test_jitter_inside_tolerance_is_not_a_bounce(calibration, track_factory) -> None:
    # 0.5 m/s tolerance is 25 units/s at 0.02 m/unit.
    velocities = [(1500.0, -10.0 if i % 2 else 10.0) for i in range(40)]
    positions = [(25.0 * i, 150.0) for i in range(40)]
    result = find_pitch_point(track_factory(positions, velocities), calibration)
    assert result.no_bounce


def test_first_reversal_wins(calibration, track_factory) -> None:
    velocities = [(1500.0, -300.0)] * 10 + [(1500.0, 200.0)] * 5 + [(1500.0, -300.0)] * 5 + [(1500.0, 200.0)] * 5
    positions = [(25.0 * i, 150.0) for i in range(len(velocities))]
    result = find_pitch_point(track_factory(positions, velocities), calibration)
    assert result.frame_index == 10


def test_empty_track_rejected(calibration) -> None:
    with pytest.raises(ValueError):
        find_pitch_point([], calibration)

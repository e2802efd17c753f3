"""Tests for the LBW decision and its probability model."""

import dataclasses

import pytest

from contracts import Position
from metrics.lbw import decide_lbw, margin_score, normalized_margin
from trajectory.pitch_point import find_pitch_point
from trajectory.predictor import predict_path


def _delivery(track_factory, pitch_y=100.0, post_vy=60.0, confidence=0.9):
    positions = []
    velocities = []
    for i in range(40):
        x = 100.0 + 25.0 * i
        if i < 30:
            positions.append((x, pitch_y + 300.0 * (30 - i) / 60.0))
            velocities.append((1500.0, -300.0))
        else:
            positions.append((x, pitch_y + post_vy * (i - 30) / 60.0))
            velocities.append((1500.0, post_vy))
    return track_factory(positions, velocities, confidence=confidence)


def _decide(track, calibration):
    pitch = find_pitch_point(track, calibration)
    projection = predict_path(track, pitch, calibration)
    return pitch, projection, decide_lbw(track, pitch, projection, calibration)


def test_ball_hitting_stumps(calibration, track_factory) -> None:
    _, _, prediction = _decide(_delivery(track_factory), calibration)
    assert prediction.would_hit_stumps
    assert 0.5 < prediction.probability < 1.0
    assert prediction.impact_point.x == pytest.approx(1100.0)


def test_pitched_outside_line_is_not_out(calibration, track_factory) -> None:
    _, _, inside = _decide(_delivery(track_factory), calibration)
    _, _, outside = _decide(_delivery(track_factory, pitch_y=110.0), calibration)
    assert not outside.would_hit_stumps
    ratio = calibration.lbw.outside_line_factor
    assert outside.probability == pytest.approx(inside.probability * ratio)


def test_ball_over_the_bails(calibration, track_factory) -> None:
    _, _, prediction = _decide(_delivery(track_factory, post_vy=300.0), calibration)
    # Impact at 50 units above the ground line, bails at 35.5.
    assert not prediction.would_hit_stumps
    assert prediction.probability < 0.5


def test_no_bounce_is_penalized(calibration, track_factory) -> None:
    track = _delivery(track_factory)
    pitch, projection, bounced = _decide(track, calibration)
    full_toss = decide_lbw(track, dataclasses.replace(pitch, no_bounce=True), projection, calibration)
    assert full_toss.probability == pytest.approx(bounced.probability * (1.0 - calibration.lbw.no_bounce_penalty))


def test_unreached_projection_cannot_hit(calibration, track_factory) -> None:
    track = _delivery(track_factory)
    pitch, projection, _ = _decide(track, calibration)
    unreached = dataclasses.replace(projection, reached=False)
    prediction = decide_lbw(track, pitch, unreached, calibration)
    assert not prediction.would_hit_stumps


def test_low_track_confidence_lowers_probability(calibration, track_factory) -> None:
    _, _, confident = _decide(_delivery(track_factory, confidence=0.95), calibration)
    _, _, shaky = _decide(_delivery(track_factory, confidence=0.3), calibration)
    assert shaky.probability < confident.probability
    assert shaky.would_hit_stumps == confident.would_hit_stumps


def test_score_decreases_moving_out_of_box(calibration) -> None:
    scores = [
        margin_score(normalized_margin(Position(x, 110.0), calibration), calibration.lbw.margin_steepness)
        for x in (1100.0, 1103.0, 1106.0, 1110.0, 1130.0)
    ]
    assert scores == sorted(scores, reverse=True)
    assert len(set(scores)) == len(scores)
    assert all(0.0 < s < 1.0 for s in scores)


def test_score_keeps_falling_when_off_on_two_axes(calibration) -> None:
    # Above the bails and wide of off stump at once.
    near = normalized_margin(Position(1110.0, 200.0), calibration)
    far = normalized_margin(Position(1130.0, 200.0), calibration)
    assert far < near < 0.0
    steepness = calibration.lbw.margin_steepness
    assert margin_score(far, steepness) < margin_score(near, steepness)


def test_score_falls_along_a_diagonal(calibration) -> None:
    margins = [normalized_margin(Position(1104.0 + d, 135.5 + d), calibration) for d in (0.0, 2.0, 5.0, 20.0, 80.0)]
    assert margins[0] == pytest.approx(0.0)
    assert all(a > b for a, b in zip(margins, margins[1:]))


def test_margin_is_zero_on_the_edge(calibration) -> None:
    assert normalized_margin(Position(1096.0, 110.0), calibration) == pytest.approx(0.0)
    assert margin_score(0.0, 4.0) == pytest.approx(0.5)

"""Tests for the playback frame clock."""

import threading

import pytest

from app.playback import SUPPORTED_SPEEDS, FrameClock


def test_tick_advances_and_stops_at_end() -> None:
    seen = []
    clock = FrameClock(frame_count=3, on_frame=seen.append)
    assert clock.tick()
    assert not clock.tick()
    assert not clock.tick()
    assert clock.current_frame == 2
    assert seen == [1, 2]


def test_interval_follows_speed() -> None:
    clock = FrameClock(frame_count=10, base_fps=60.0, speed=0.25)
    assert clock.interval_s == pytest.approx(1.0 / 15.0)
    clock.set_speed(2.0)
    assert clock.interval_s == pytest.approx(1.0 / 120.0)


@pytest.mark.parametrize("speed", [0.0, 0.3, 4.0])
def test_unsupported_speed_rejected(speed) -> None:
    with pytest.raises(ValueError):
        FrameClock(frame_count=10, speed=speed)
    clock = FrameClock(frame_count=10)
    with pytest.raises(ValueError):
        clock.set_speed(speed)


def test_supported_speeds_include_slow_motion() -> None:
    assert 0.1 in SUPPORTED_SPEEDS and 1.0 in SUPPORTED_SPEEDS


def test_seek_and_step_are_clamped() -> None:
    clock = FrameClock(frame_count=5)
    assert clock.seek(10) == 4
    assert clock.step(-2) == 2
    assert clock.seek(-3) == 0
    clock.seek(3)
    clock.reset()
    assert clock.current_frame == 0
    assert not clock.is_playing


def test_playback_reaches_last_frame() -> None:
    done = threading.Event()

    def on_frame(index):
        if index == 5:
            done.set()

    clock = FrameClock(frame_count=6, base_fps=240.0, speed=2.0, on_frame=on_frame)
    clock.start()
    try:
        assert done.wait(timeout=2.0)
    finally:
        clock.cancel()
    assert clock.current_frame == 5
    assert not clock.is_playing


def test_pause_holds_position() -> None:
    clock = FrameClock(frame_count=10000, base_fps=240.0, speed=2.0)
    clock.start()
    clock.pause()
    # Let an in-flight tick land before sampling.
    threading.Event().wait(0.02)
    held = clock.current_frame
    threading.Event().wait(0.05)
    assert clock.current_frame == held
    clock.cancel()


def test_start_after_cancel_raises() -> None:
    clock = FrameClock(frame_count=10)
    clock.cancel()
    with pytest.raises(RuntimeError):
        clock.start()


def test_start_at_end_restarts_from_first_frame() -> None:
    clock = FrameClock(frame_count=4)
    clock.seek(3)
    clock.start()
    clock.pause()
    assert clock.current_frame <= 1
    clock.cancel()

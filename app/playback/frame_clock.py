"""Cancellable frame clock driving slow-motion playback."""

from __future__ import annotations

import threading
from typing import Callable, Optional, Tuple

from log_config.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_SPEEDS: Tuple[float, ...] = (0.1, 0.25, 0.5, 1.0, 2.0)


class FrameClock:
    """Advances a frame cursor at ``base_fps * speed`` on a daemon thread.

    Each instance owns its cursor and timer; nothing is shared between
    clocks. ``on_frame`` is called with the new index after every change
    of position, from the clock thread while playing and from the caller's
    thread for seek, step and reset.

    Example:
        >>> clock = FrameClock(frame_count=120, speed=0.25, on_frame=print)
        >>> clock.start()
        >>> clock.pause()
    """

    def __init__(
        self,
        frame_count: int,
        base_fps: float = 60.0,
        speed: float = 0.25,
        on_frame: Optional[Callable[[int], None]] = None,
    ):
        if frame_count < 1:
            raise ValueError(f"frame_count must be >= 1, got {frame_count}")
        if base_fps <= 0:
            raise ValueError(f"base_fps must be > 0, got {base_fps}")
        self._check_speed(speed)
        self._frame_count = frame_count
        self._base_fps = base_fps
        self._speed = speed
        self._on_frame = on_frame
        self._index = 0
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._playing = False
        self._cancelled = False
        self._thread: Optional[threading.Thread] = None

    @property
    def current_frame(self) -> int:
        with self._lock:
            return self._index

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return self._playing

    @property
    def interval_s(self) -> float:
        return 1.0 / (self._base_fps * self._speed)

    def start(self) -> None:
        with self._lock:
            if self._cancelled:
                raise RuntimeError("FrameClock was cancelled")
            if self._playing:
                return
            if self._index >= self._frame_count - 1:
                self._index = 0
            self._playing = True
        if self._thread is None or not self._thread.is_alive():
            self._thread = threading.Thread(target=self._run, name="frame-clock", daemon=True)
            self._thread.start()
        self._wake.set()
        logger.debug(f"Playback started at {self._speed}x from frame {self.current_frame}")

    def pause(self) -> None:
        with self._lock:
            self._playing = False
        self._wake.set()

    def set_speed(self, speed: float) -> None:
        self._check_speed(speed)
        self._speed = speed
        self._wake.set()

    def seek(self, index: int) -> int:
        with self._lock:
            self._index = max(0, min(index, self._frame_count - 1))
            index = self._index
        self._notify(index)
        return index

    def step(self, delta: int = 1) -> int:
        """Move by ``delta`` frames while paused; playback is paused first."""
        self.pause()
        return self.seek(self.current_frame + delta)

    def reset(self) -> None:
        self.pause()
        self.seek(0)

    def tick(self) -> bool:
        """Advance one frame; returns False once the last frame is reached."""
        with self._lock:
            if self._index >= self._frame_count - 1:
                self._playing = False
                return False
            self._index += 1
            index = self._index
            at_end = index >= self._frame_count - 1
            if at_end:
                self._playing = False
        self._notify(index)
        return not at_end

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            self._playing = False
        self._wake.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)
        self._thread = None

    def _run(self) -> None:
        while True:
            with self._lock:
                if self._cancelled:
                    return
                playing = self._playing
            if not playing:
                self._wake.wait()
                self._wake.clear()
                continue
            # A wake-up here means pause, speed change or cancel; re-check state.
            if self._wake.wait(timeout=self.interval_s):
                self._wake.clear()
                continue
            self.tick()

    def _notify(self, index: int) -> None:
        if self._on_frame is not None:
            self._on_frame(index)

    @staticmethod
    def _check_speed(speed: float) -> None:
        if speed not in SUPPORTED_SPEEDS:
            raise ValueError(f"Unsupported playback speed {speed}; expected one of {SUPPORTED_SPEEDS}")

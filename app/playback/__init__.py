"""Playback control."""

from .frame_clock import SUPPORTED_SPEEDS, FrameClock

__all__ = ["FrameClock", "SUPPORTED_SPEEDS"]

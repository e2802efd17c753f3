"""Shared fixtures: a side-on calibration where plane units equal pixels."""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional

import pytest

from configs.calibration import Calibration, calibration_from_dict
from contracts import BallTrackingData, Position, Velocity

# 1 unit = 2 cm; stumps stand at x=1100 on a ground line at y=100.
BASE_CALIBRATION: Dict[str, Any] = {
    "meters_per_unit": 0.02,
    "fps": 60,
    "origin_px": [0, 0],
    "image_y_down": False,
    "pitch_axis": [1, 0],
    "vertical_axis": [0, 1],
    "stumps": {
        "reference": [1100, 100],
        "rect": [1096, 100, 1104, 135.5],
        "bail_height": 35.5,
    },
    "inline_bounds": [-5, 5],
}


def make_calibration(overrides: Optional[Dict[str, Any]] = None) -> Calibration:
    data = copy.deepcopy(BASE_CALIBRATION)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key].update(value)
        else:
            data[key] = value
    return calibration_from_dict(data)


def make_track(positions, velocities, confidence: float = 0.9, fps: float = 60.0, start_frame: int = 0):
    """Build BallTrackingData records from parallel position/velocity lists."""
    return [
        BallTrackingData(
            frame_index=start_frame + i,
            timestamp_ms=(start_frame + i) * 1000.0 / fps,
            position=Position(float(p[0]), float(p[1])),
            velocity=Velocity(float(v[0]), float(v[1])),
            confidence=confidence,
        )
        for i, (p, v) in enumerate(zip(positions, velocities))
    ]


@pytest.fixture
def calibration() -> Calibration:
    return make_calibration()


@pytest.fixture
def calibration_factory():
    return make_calibration


@pytest.fixture
def track_factory():
    return make_track


@pytest.fixture
def calibration_data() -> Dict[str, Any]:
    return copy.deepcopy(BASE_CALIBRATION)

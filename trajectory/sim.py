"""Synthetic delivery simulator for tests and offline checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np

from configs.calibration import Calibration
from contracts import BallCandidate, Frame, Position

GRAVITY_MPS2 = 9.81


@dataclass(frozen=True)
class SimConfig:
    frames: int = 60
    release_distance_m: float = 20.0  # along the pitch axis, before the stumps
    release_height_m: float = 2.0
    speed_mps: float = 30.0
    bounce_frame: Optional[int] = 30  # None simulates a full toss
    restitution: float = 0.5
    full_toss_arrival_m: float = 0.5
    noise_px: float = 0.0
    dropout_prob: float = 0.0
    outlier_prob: float = 0.0
    dropout_frames: Tuple[int, ...] = ()
    confidence: float = 0.95
    seed: int = 7


@dataclass(frozen=True)
class SimulatedDelivery:
    truth: List[Position]  # plane coordinates, one per frame
    candidates: Dict[int, Optional[BallCandidate]]  # pixel coordinates
    timestamps_ms: List[float] = field(default_factory=list)

    def frames(self, width: int = 0, height: int = 0) -> List[Frame]:
        return [
            Frame(frame_index=i, timestamp_ms=t, image=None, width=width, height=height)
            for i, t in enumerate(self.timestamps_ms)
        ]


def simulate_delivery(calibration: Calibration, config: SimConfig = SimConfig()) -> SimulatedDelivery:
    """Ballistic descent, an optional bounce, then the rise toward the stumps.

    Positions are generated in metres along the pitch and vertical axes and
    mapped through the calibration, so the same config yields a consistent
    track under any scale or orientation.
    """
    rng = np.random.default_rng(config.seed)
    dt = 1.0 / calibration.fps
    ref = np.array(calibration.stumps.reference, dtype=float)
    axis = np.array(calibration.pitch_axis)
    up = np.array(calibration.vertical_axis)

    if config.bounce_frame is not None:
        t_b = config.bounce_frame * dt
        vy0 = (0.5 * GRAVITY_MPS2 * t_b * t_b - config.release_height_m) / t_b
        vy_bounce = -config.restitution * (vy0 - GRAVITY_MPS2 * t_b)
    else:
        # Full toss: choose the launch angle that arrives at stump height.
        t_b = None
        t_stumps = config.release_distance_m / config.speed_mps
        vy0 = (
            config.full_toss_arrival_m - config.release_height_m + 0.5 * GRAVITY_MPS2 * t_stumps * t_stumps
        ) / t_stumps
        vy_bounce = 0.0

    truth: List[Position] = []
    candidates: Dict[int, Optional[BallCandidate]] = {}
    timestamps: List[float] = []
    for i in range(config.frames):
        t = i * dt
        along_m = -config.release_distance_m + config.speed_mps * t
        if t_b is None or t <= t_b:
            height_m = config.release_height_m + vy0 * t - 0.5 * GRAVITY_MPS2 * t * t
        else:
            s = t - t_b
            height_m = vy_bounce * s - 0.5 * GRAVITY_MPS2 * s * s
        point = ref + calibration.meters_to_units(along_m) * axis + calibration.meters_to_units(height_m) * up
        position = Position(float(point[0]), float(point[1]))
        truth.append(position)
        timestamps.append(i * calibration.frame_period_ms)

        if i in config.dropout_frames or rng.random() < config.dropout_prob:
            candidates[i] = None
            continue
        u, v = calibration.to_pixels(position)
        if rng.random() < config.outlier_prob:
            u += rng.choice([-1.0, 1.0]) * rng.uniform(80.0, 160.0)
            v += rng.choice([-1.0, 1.0]) * rng.uniform(80.0, 160.0)
        elif config.noise_px > 0:
            u += rng.normal(0.0, config.noise_px)
            v += rng.normal(0.0, config.noise_px)
        candidates[i] = BallCandidate(position=Position(float(u), float(v)), confidence=config.confidence)
    return SimulatedDelivery(truth=truth, candidates=candidates, timestamps_ms=timestamps)


def render_ball_frame(
    width: int,
    height: int,
    centers_px: List[Tuple[float, float]],
    radius_px: int = 6,
    color_bgr: Tuple[int, int, int] = (30, 30, 200),
) -> np.ndarray:
    """Draw filled balls on a dark green background."""
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:] = (40, 90, 40)
    for u, v in centers_px:
        cv2.circle(image, (int(round(u)), int(round(v))), radius_px, color_bgr, thickness=-1)
    return image

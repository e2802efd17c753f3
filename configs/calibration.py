"""Calibration loading for delivery analysis."""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from configs.validator import validate_calibration
from contracts import Position
from detect.config import DetectorConfig
from exceptions import InvalidCalibrationError
from log_config.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CALIBRATION_PATH = Path(__file__).with_name("default_calibration.yaml")

Vector = Tuple[float, float]

# Swing is measured only when the lateral axis is at least 60 degrees from vertical.
MAX_LATERAL_VERTICAL_COS = 0.5


@dataclass(frozen=True)
class StumpGeometry:
    reference: Vector  # stump base centre, plane units
    rect: Tuple[float, float, float, float]  # x_min, y_min, x_max, y_max
    bail_height: float  # above reference, plane units
    plane_offset: float = 0.0  # along-axis offset of the stumps plane from reference


@dataclass(frozen=True)
class ClassificationThresholds:
    min_swing_deg: float = 1.5
    yorker_max_pitch_distance_m: float = 1.5
    bouncer_vertical_speed_mps: float = 6.0


@dataclass(frozen=True)
class TrackerConfig:
    acceptance_threshold: float = 0.5
    gate_sigma: float = 3.5
    max_interpolated_run: int = 5
    reacquisition_window: int = 10
    confidence_decay: float = 0.8
    max_acceleration_mps2: float = 2000.0
    measurement_sigma_px: float = 3.0
    process_noise: float = 4.0e6  # white-jerk spectral density, m^2/s^5
    initial_velocity_sigma_mps: float = 50.0
    min_track_length: int = 10
    finalize_at_stumps: bool = True


@dataclass(frozen=True)
class MetricsConfig:
    release_window: int = 3
    direction_window: int = 3
    post_bounce_window: int = 3
    bounce_tolerance_mps: float = 0.5
    curvature_to_rpm: float = 150000.0
    spin_smoothing_window: int = 7
    swing_deviation_coefficient: float = 0.5
    projection_samples: int = 20
    batter_handedness: str = "right"


@dataclass(frozen=True)
class LbwConfig:
    margin_steepness: float = 4.0
    confidence_floor: float = 0.5
    no_bounce_penalty: float = 0.25
    outside_line_factor: float = 0.25
    unreached_factor: float = 0.1


@dataclass(frozen=True)
class Calibration:
    meters_per_unit: float
    fps: float
    stumps: StumpGeometry
    inline_bounds: Tuple[float, float]  # lateral min/max relative to stumps.reference
    origin_px: Vector = (0.0, 0.0)
    image_y_down: bool = True
    pitch_axis: Vector = (1.0, 0.0)
    vertical_axis: Vector = (0.0, 1.0)
    thresholds: ClassificationThresholds = ClassificationThresholds()
    tracker: TrackerConfig = TrackerConfig()
    metrics: MetricsConfig = MetricsConfig()
    lbw: LbwConfig = LbwConfig()
    detector: Optional[DetectorConfig] = None

    def __post_init__(self) -> None:
        # Axes are stored normalized so every projection is a plain dot product.
        object.__setattr__(self, "pitch_axis", _normalize(self.pitch_axis))
        object.__setattr__(self, "vertical_axis", _normalize(self.vertical_axis))

    @property
    def lateral_axis(self) -> Vector:
        ax, ay = self.pitch_axis
        return (-ay, ax)

    @property
    def swing_observable(self) -> bool:
        """Whether lateral motion can be told apart from vertical motion in the plane.

        In a side-on view the lateral axis coincides with vertical, so any
        turn of the path is gravity and swing cannot be measured.
        """
        lx, ly = self.lateral_axis
        ux, uy = self.vertical_axis
        return abs(lx * ux + ly * uy) <= MAX_LATERAL_VERTICAL_COS

    @property
    def horizontal_lateral_axis(self) -> Vector:
        """Lateral axis with its vertical component removed."""
        lx, ly = self.lateral_axis
        ux, uy = self.vertical_axis
        c = lx * ux + ly * uy
        return _normalize((lx - c * ux, ly - c * uy))

    @property
    def frame_period_ms(self) -> float:
        return 1000.0 / self.fps

    def to_plane(self, u: float, v: float) -> Position:
        """Map a pixel coordinate into the analysis plane (y up-positive)."""
        x = u - self.origin_px[0]
        y = v - self.origin_px[1]
        if self.image_y_down:
            y = -y
        return Position(x, y)

    def to_pixels(self, position: Position) -> Tuple[float, float]:
        y = -position.y if self.image_y_down else position.y
        return position.x + self.origin_px[0], y + self.origin_px[1]

    def along(self, position: Position) -> float:
        rx, ry = self.stumps.reference
        return (position.x - rx) * self.pitch_axis[0] + (position.y - ry) * self.pitch_axis[1]

    def lateral(self, position: Position) -> float:
        rx, ry = self.stumps.reference
        nx, ny = self.lateral_axis
        return (position.x - rx) * nx + (position.y - ry) * ny

    def height(self, position: Position) -> float:
        rx, ry = self.stumps.reference
        return (position.x - rx) * self.vertical_axis[0] + (position.y - ry) * self.vertical_axis[1]

    def vertical_component(self, vx: float, vy: float) -> float:
        return vx * self.vertical_axis[0] + vy * self.vertical_axis[1]

    def units_to_meters(self, value: float) -> float:
        return value * self.meters_per_unit

    def meters_to_units(self, value: float) -> float:
        return value / self.meters_per_unit


def _normalize(vector: Vector) -> Vector:
    norm = math.hypot(vector[0], vector[1])
    if norm == 0.0:
        raise InvalidCalibrationError(f"Axis vector must be non-zero, got {vector}")
    return (vector[0] / norm, vector[1] / norm)


def _check_semantics(data: Dict[str, Any]) -> None:
    """Reject calibrations that pass the schema but contradict themselves."""
    problems: List[str] = []
    x_min, y_min, x_max, y_max = data["stumps"]["rect"]
    if x_min >= x_max or y_min >= y_max:
        problems.append(f"stumps -> rect: min must be below max, got {data['stumps']['rect']}")
    lo, hi = data["inline_bounds"]
    if lo >= hi:
        problems.append(f"inline_bounds: min must be below max, got {data['inline_bounds']}")
    for key in ("pitch_axis", "vertical_axis"):
        if math.hypot(*data[key]) == 0.0:
            problems.append(f"{key}: must be a non-zero vector")
    if not problems:
        pitch = _normalize(tuple(data["pitch_axis"]))
        vertical = _normalize(tuple(data["vertical_axis"]))
        # A vertical axis parallel to the pitch axis leaves no height information.
        if abs(pitch[0] * vertical[1] - pitch[1] * vertical[0]) < 1e-6:
            problems.append("vertical_axis: must not be parallel to pitch_axis")
    if problems:
        for msg in problems:
            logger.error(f"  - {msg}")
        raise InvalidCalibrationError(
            f"Calibration is contradictory: {'; '.join(problems)}",
            validation_errors=problems,
        )


def calibration_from_dict(data: Dict[str, Any]) -> Calibration:
    """Validate and build a Calibration from a plain mapping.

    Args:
        data: Parsed calibration document (not modified)

    Returns:
        Frozen Calibration instance

    Raises:
        InvalidCalibrationError: If calibration is missing values or contradictory
    """
    data = copy.deepcopy(data)
    validate_calibration(data)
    _check_semantics(data)

    try:
        stumps_data = data["stumps"]
        stumps = StumpGeometry(
            reference=tuple(float(v) for v in stumps_data["reference"]),
            rect=tuple(float(v) for v in stumps_data["rect"]),
            bail_height=float(stumps_data["bail_height"]),
            plane_offset=float(stumps_data["plane_offset"]),
        )
        detector = DetectorConfig.from_dict(data["detector"]) if data.get("detector") else None
        calibration = Calibration(
            meters_per_unit=float(data["meters_per_unit"]),
            fps=float(data["fps"]),
            stumps=stumps,
            inline_bounds=(float(data["inline_bounds"][0]), float(data["inline_bounds"][1])),
            origin_px=tuple(float(v) for v in data["origin_px"]),
            image_y_down=bool(data["image_y_down"]),
            pitch_axis=tuple(float(v) for v in data["pitch_axis"]),
            vertical_axis=tuple(float(v) for v in data["vertical_axis"]),
            thresholds=ClassificationThresholds(**data["thresholds"]),
            tracker=TrackerConfig(**data["tracker"]),
            metrics=MetricsConfig(**data["metrics"]),
            lbw=LbwConfig(**data["lbw"]),
            detector=detector,
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Failed to construct calibration: {e}")
        raise InvalidCalibrationError(f"Failed to construct calibration: {e}")

    logger.info(
        f"Calibration loaded: {calibration.meters_per_unit:.4f} m/unit @ {calibration.fps:g}fps, "
        f"pitch axis {calibration.pitch_axis}"
    )
    return calibration


def load_calibration(path: Path = DEFAULT_CALIBRATION_PATH) -> Calibration:
    """Load and validate calibration from a YAML file.

    Args:
        path: Path to calibration file

    Returns:
        Validated Calibration instance

    Raises:
        InvalidCalibrationError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    logger.info(f"Loading calibration from {path}")
    if not path.exists():
        raise InvalidCalibrationError(f"Calibration file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML calibration: {e}")
        raise InvalidCalibrationError(f"Failed to parse calibration file: {e}")
    return calibration_from_dict(data)

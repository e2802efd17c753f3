"""Calibration validation using JSON Schema."""

from __future__ import annotations

import copy
from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import InvalidCalibrationError
from log_config.logger import get_logger

logger = get_logger(__name__)

_POINT = {
    "type": "array",
    "items": {"type": "number"},
    "minItems": 2,
    "maxItems": 2,
}

# JSON Schema for calibration YAML documents
CALIBRATION_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["meters_per_unit", "fps", "stumps", "inline_bounds"],
    "properties": {
        "meters_per_unit": {"type": "number", "exclusiveMinimum": 0},
        "fps": {"type": "number", "exclusiveMinimum": 0, "maximum": 1000},
        "origin_px": dict(_POINT, default=[0.0, 0.0]),
        "image_y_down": {"type": "boolean", "default": True},
        "pitch_axis": dict(_POINT, default=[1.0, 0.0]),
        "vertical_axis": dict(_POINT, default=[0.0, 1.0]),
        "stumps": {
            "type": "object",
            "required": ["reference", "rect", "bail_height"],
            "properties": {
                "reference": _POINT,
                "plane_offset": {"type": "number", "default": 0.0},
                "rect": {
                    "type": "array",
                    "items": {"type": "number"},
                    "minItems": 4,
                    "maxItems": 4,
                },
                "bail_height": {"type": "number", "exclusiveMinimum": 0},
            },
        },
        "inline_bounds": {
            "type": "array",
            "items": {"type": "number"},
            "minItems": 2,
            "maxItems": 2,
        },
        "thresholds": {
            "type": "object",
            "default": {},
            "properties": {
                "min_swing_deg": {"type": "number", "minimum": 0, "default": 1.5},
                "yorker_max_pitch_distance_m": {"type": "number", "minimum": 0, "default": 1.5},
                "bouncer_vertical_speed_mps": {"type": "number", "exclusiveMinimum": 0, "default": 6.0},
            },
        },
        "tracker": {
            "type": "object",
            "default": {},
            "properties": {
                "acceptance_threshold": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.5},
                "gate_sigma": {"type": "number", "exclusiveMinimum": 0, "default": 3.5},
                "max_interpolated_run": {"type": "integer", "minimum": 1, "default": 5},
                "reacquisition_window": {"type": "integer", "minimum": 1, "default": 10},
                "confidence_decay": {"type": "number", "exclusiveMinimum": 0, "maximum": 1.0, "default": 0.8},
                "max_acceleration_mps2": {"type": "number", "exclusiveMinimum": 0, "default": 2000.0},
                "measurement_sigma_px": {"type": "number", "exclusiveMinimum": 0, "default": 3.0},
                "process_noise": {"type": "number", "exclusiveMinimum": 0, "default": 4.0e6},
                "initial_velocity_sigma_mps": {"type": "number", "exclusiveMinimum": 0, "default": 50.0},
                "min_track_length": {"type": "integer", "minimum": 2, "default": 10},
                "finalize_at_stumps": {"type": "boolean", "default": True},
            },
        },
        "metrics": {
            "type": "object",
            "default": {},
            "properties": {
                "release_window": {"type": "integer", "minimum": 1, "default": 3},
                "direction_window": {"type": "integer", "minimum": 1, "default": 3},
                "post_bounce_window": {"type": "integer", "minimum": 1, "default": 3},
                "bounce_tolerance_mps": {"type": "number", "minimum": 0, "default": 0.5},
                "curvature_to_rpm": {"type": "number", "minimum": 0, "default": 150000.0},
                "spin_smoothing_window": {"type": "integer", "minimum": 3, "default": 7},
                "swing_deviation_coefficient": {"type": "number", "default": 0.5},
                "projection_samples": {"type": "integer", "minimum": 2, "default": 20},
                "batter_handedness": {"type": "string", "enum": ["right", "left"], "default": "right"},
            },
        },
        "lbw": {
            "type": "object",
            "default": {},
            "properties": {
                "margin_steepness": {"type": "number", "exclusiveMinimum": 0, "default": 4.0},
                "confidence_floor": {"type": "number", "exclusiveMinimum": 0, "maximum": 1.0, "default": 0.5},
                "no_bounce_penalty": {"type": "number", "minimum": 0, "exclusiveMaximum": 1.0, "default": 0.25},
                "outside_line_factor": {"type": "number", "exclusiveMinimum": 0, "exclusiveMaximum": 1.0, "default": 0.25},
                "unreached_factor": {"type": "number", "exclusiveMinimum": 0, "exclusiveMaximum": 1.0, "default": 0.1},
            },
        },
        "detector": {
            "type": "object",
            "properties": {
                "min_area": {"type": "integer", "minimum": 1},
                "max_area": {"type": ["integer", "null"]},
                "min_circularity": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                "max_elongation": {"type": "number", "minimum": 1.0},
                "ambiguity_ratio": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                "hsv_ranges": {
                    "type": "array",
                    "items": {
                        "type": "array",
                        "items": {"type": "array", "items": {"type": "integer"}, "minItems": 3, "maxItems": 3},
                        "minItems": 2,
                        "maxItems": 2,
                    },
                },
            },
        },
    },
}


def extend_with_default(validator_class):
    """Extend JSON Schema validator to set default values."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        if isinstance(instance, dict):
            for prop, subschema in properties.items():
                if "default" in subschema:
                    instance.setdefault(prop, copy.deepcopy(subschema["default"]))

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_calibration(data: Dict[str, Any]) -> None:
    """Validate a calibration document against JSON Schema, filling defaults in place.

    Args:
        data: Calibration dictionary

    Raises:
        InvalidCalibrationError: If calibration is invalid
    """
    if not isinstance(data, dict):
        raise InvalidCalibrationError("Calibration document must be a mapping")
    try:
        validator = DefaultValidatingValidator(CALIBRATION_SCHEMA)
        errors = list(validator.iter_errors(data))
    except jsonschema.exceptions.SchemaError as e:
        logger.error(f"Invalid schema: {e}")
        raise InvalidCalibrationError(f"Invalid schema definition: {e}")

    if errors:
        error_messages = []
        for error in errors:
            path = " -> ".join(str(p) for p in error.path) if error.path else "root"
            error_messages.append(f"{path}: {error.message}")

        logger.error(f"Calibration validation failed with {len(errors)} errors")
        for msg in error_messages:
            logger.error(f"  - {msg}")

        raise InvalidCalibrationError(
            f"Calibration validation failed with {len(errors)} error(s): {'; '.join(error_messages)}",
            validation_errors=error_messages,
        )

    logger.debug("Calibration schema validation passed")


__all__ = ["validate_calibration", "CALIBRATION_SCHEMA"]

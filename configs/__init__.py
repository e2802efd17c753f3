"""Calibration loading and validation."""

from .calibration import Calibration, calibration_from_dict, load_calibration

__all__ = ["Calibration", "calibration_from_dict", "load_calibration"]

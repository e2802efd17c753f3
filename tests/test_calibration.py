"""Tests for calibration loading, defaults and validation."""

import copy
import math

import pytest
import yaml

from configs.calibration import DEFAULT_CALIBRATION_PATH, calibration_from_dict, load_calibration
from contracts import Position
from exceptions import ErrorKind, InvalidCalibrationError


def test_default_calibration_loads() -> None:
    calibration = load_calibration(DEFAULT_CALIBRATION_PATH)
    assert calibration.fps == 60
    assert calibration.detector is not None
    assert calibration.tracker.min_track_length == 10
    assert calibration.stumps.bail_height == pytest.approx(40.0)


def test_missing_sections_are_filled_with_defaults(calibration) -> None:
    assert calibration.thresholds.min_swing_deg == pytest.approx(1.5)
    assert calibration.lbw.margin_steepness == pytest.approx(4.0)
    assert calibration.metrics.batter_handedness == "right"
    assert calibration.stumps.plane_offset == 0.0
    assert calibration.detector is None


def test_input_mapping_is_not_modified(calibration_data) -> None:
    original = copy.deepcopy(calibration_data)
    calibration_from_dict(calibration_data)
    assert calibration_data == original


def test_missing_required_field_is_reported(calibration_data) -> None:
    data = calibration_data
    del data["meters_per_unit"]
    with pytest.raises(InvalidCalibrationError) as exc_info:
        calibration_from_dict(data)
    assert exc_info.value.kind == ErrorKind.INVALID_CALIBRATION
    assert any("meters_per_unit" in msg for msg in exc_info.value.validation_errors)


@pytest.mark.parametrize(
    "overrides",
    [
        {"meters_per_unit": 0},
        {"fps": -60},
        {"inline_bounds": [5, -5]},
        {"pitch_axis": [0, 0]},
        {"vertical_axis": [2, 0]},
        {"metrics": {"batter_handedness": "both"}},
        {"tracker": {"confidence_decay": 1.5}},
    ],
)
def test_invalid_calibration_rejected(calibration_factory, overrides) -> None:
    with pytest.raises(InvalidCalibrationError):
        calibration_factory(overrides)


def test_degenerate_stump_rectangle_rejected(calibration_factory) -> None:
    with pytest.raises(InvalidCalibrationError, match="rect"):
        calibration_factory({"stumps": {"rect": [1104, 100, 1096, 135]}})


def test_load_calibration_missing_file(tmp_path) -> None:
    with pytest.raises(InvalidCalibrationError, match="not found"):
        load_calibration(tmp_path / "absent.yaml")


def test_load_calibration_unparsable_yaml(tmp_path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("stumps: [unclosed")
    with pytest.raises(InvalidCalibrationError, match="parse"):
        load_calibration(path)


def test_load_calibration_roundtrip_from_yaml(tmp_path, calibration_data) -> None:
    path = tmp_path / "venue.yaml"
    path.write_text(yaml.safe_dump(calibration_data))
    calibration = load_calibration(path)
    assert calibration.meters_per_unit == pytest.approx(0.02)


def test_pixel_to_plane_flips_image_rows() -> None:
    calibration = load_calibration(DEFAULT_CALIBRATION_PATH)
    plane = calibration.to_plane(100.0, 700.0)
    assert plane == Position(100.0, 20.0)
    assert calibration.to_pixels(plane) == pytest.approx((100.0, 700.0))


def test_axes_are_normalized(calibration_factory) -> None:
    calibration = calibration_factory({"pitch_axis": [3, 4], "vertical_axis": [-4, 3]})
    assert math.hypot(*calibration.pitch_axis) == pytest.approx(1.0)
    assert calibration.lateral_axis == pytest.approx((-0.8, 0.6))


def test_projections_are_relative_to_stump_reference(calibration) -> None:
    point = Position(1000.0, 120.0)
    assert calibration.along(point) == pytest.approx(-100.0)
    assert calibration.height(point) == pytest.approx(20.0)
    assert calibration.units_to_meters(calibration.along(point)) == pytest.approx(-2.0)


def test_side_on_view_cannot_observe_swing(calibration) -> None:
    assert calibration.lateral_axis == pytest.approx((0.0, 1.0))
    assert not calibration.swing_observable
    assert not load_calibration(DEFAULT_CALIBRATION_PATH).swing_observable


def test_behind_view_observes_swing(calibration_factory) -> None:
    calibration = calibration_factory({"vertical_axis": [1, 0.2]})
    assert calibration.swing_observable
    axis = calibration.horizontal_lateral_axis
    assert math.hypot(*axis) == pytest.approx(1.0)
    # Perpendicular to vertical and on the same side as the lateral axis.
    assert axis[0] * calibration.vertical_axis[0] + axis[1] * calibration.vertical_axis[1] == pytest.approx(0.0, abs=1e-9)
    assert axis[0] * calibration.lateral_axis[0] + axis[1] * calibration.lateral_axis[1] > 0

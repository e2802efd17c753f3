"""Post-tracking trajectory stages: pitch point and projection."""

from trajectory.pitch_point import PitchPointResult, find_pitch_point
from trajectory.predictor import ProjectedPath, predict_path

__all__ = [
    "PitchPointResult",
    "ProjectedPath",
    "find_pitch_point",
    "predict_path",
]

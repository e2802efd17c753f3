"""Detection module."""

from .detector import BallDetector, DetectionContext
from .classical_detector import ClassicalDetector
from .ml_detector import MlDetector
from .simple_detector import ScriptedDetector

__all__ = [
    "BallDetector",
    "DetectionContext",
    "ClassicalDetector",
    "MlDetector",
    "ScriptedDetector",
]

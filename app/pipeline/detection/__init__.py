"""Parallel detection."""

from .worker_pool import DetectionResult, DetectionWorkerPool

__all__ = ["DetectionResult", "DetectionWorkerPool"]

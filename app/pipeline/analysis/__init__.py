"""Post-tracking analysis."""

from .engine import compute_analysis

__all__ = ["compute_analysis"]

"""Delivery metrics, classification and the LBW decision."""

from metrics.classification import classify_ball_type
from metrics.delivery import DeliveryMetrics, compute_delivery_metrics
from metrics.lbw import LbwChecks, decide_lbw

__all__ = [
    "DeliveryMetrics",
    "LbwChecks",
    "classify_ball_type",
    "compute_delivery_metrics",
    "decide_lbw",
]

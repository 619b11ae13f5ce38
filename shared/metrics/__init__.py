"""Metrics module using Prometheus."""

from .prometheus_metrics import (
    ApiMetrics,
    setup_metrics,
    get_metrics_handler,
)

__all__ = [
    "ApiMetrics",
    "setup_metrics",
    "get_metrics_handler",
]

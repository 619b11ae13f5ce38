"""Prometheus metrics definitions and helpers.

Provides HTTP and storage metric definitions for the employee API.
"""

from typing import Callable, Optional

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    CollectorRegistry,
)


class ApiMetrics:
    """HTTP request and storage operation metrics."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        """Initialize API metrics.

        Args:
            registry: Prometheus registry to use (a private one when omitted,
                so that several app instances can coexist in one process)
        """
        self.registry = registry if registry is not None else CollectorRegistry()

        # Requests served
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=self.registry,
        )

        # Request latency
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry,
        )

        self.http_requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method"],
            registry=self.registry,
        )

        # Storage calls by outcome (ok or the storage error code)
        self.storage_operations_total = Counter(
            "storage_operations_total",
            "Total storage operations",
            ["backend", "operation", "outcome"],
            registry=self.registry,
        )

        self.storage_operation_duration_seconds = Histogram(
            "storage_operation_duration_seconds",
            "Time spent in storage operations",
            ["backend", "operation"],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
            registry=self.registry,
        )


def setup_metrics(registry: Optional[CollectorRegistry] = None) -> ApiMetrics:
    """Setup and return the metric instance.

    Returns:
        ApiMetrics bound to the given (or a new) registry
    """
    return ApiMetrics(registry)


def get_metrics_handler(metrics: ApiMetrics) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(metrics.registry)

    return metrics_handler

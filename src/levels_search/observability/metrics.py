"""Prometheus metrics for index, remove and query operations."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


OPERATION_COUNT = Counter(
    "levels_operations_total",
    "Index operations by outcome",
    ["operation", "status"],
)

OPERATION_LATENCY = Histogram(
    "levels_operation_latency_seconds",
    "Index operation latency in seconds",
    ["operation"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

QUERY_RESULTS = Histogram(
    "levels_query_results",
    "Number of ids returned per query",
    buckets=(0, 1, 5, 10, 50, 100, 500, 1000),
)

QUERY_CODES = Histogram(
    "levels_query_codes",
    "Distinct phonetic codes scanned per query",
    buckets=(0, 1, 2, 3, 5, 8, 13),
)


@contextmanager
def track_operation(operation: str) -> Generator[None, None, None]:
    """Record latency and an ok/error outcome for ``operation``."""
    start = time.perf_counter()
    status = "error"
    try:
        yield
        status = "ok"
    finally:
        OPERATION_LATENCY.labels(operation=operation).observe(time.perf_counter() - start)
        OPERATION_COUNT.labels(operation=operation, status=status).inc()


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST

"""Observability module: structured logging, tracing spans and metrics."""

from levels_search.observability.context import get_trace_context, log_context, set_trace_context, trace_context
from levels_search.observability.logging import JsonFormatter, configure_logging
from levels_search.observability.metrics import (
    OPERATION_COUNT,
    OPERATION_LATENCY,
    QUERY_CODES,
    QUERY_RESULTS,
    get_metrics,
    get_metrics_content_type,
    track_operation,
)
from levels_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "OPERATION_COUNT",
    "OPERATION_LATENCY",
    "QUERY_CODES",
    "QUERY_RESULTS",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "log_context",
    "set_trace_context",
    "trace_context",
    "track_operation",
]

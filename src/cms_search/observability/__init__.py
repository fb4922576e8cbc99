"""Observability module for structured logging, metrics and tracing."""

from cms_search.observability.context import (
    Correlation,
    bind_span,
    current_correlation,
    get_trace_context,
    restore_correlation,
    set_trace_context,
    tenant_scope,
)
from cms_search.observability.logging import JsonFormatter, configure_logging
from cms_search.observability.metrics import (
    CACHE_ERRORS,
    INDEX_DOC_COUNT,
    INDEX_OPERATIONS,
    SEARCH_COUNT,
    SEARCH_LATENCY,
    BridgedCounter,
    BridgedGauge,
    BridgedHistogram,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from cms_search.observability.tracing import engine_span, get_tracer, init_tracing


__all__ = [
    "CACHE_ERRORS",
    "INDEX_DOC_COUNT",
    "INDEX_OPERATIONS",
    "SEARCH_COUNT",
    "SEARCH_LATENCY",
    "BridgedCounter",
    "BridgedGauge",
    "BridgedHistogram",
    "Correlation",
    "JsonFormatter",
    "bind_span",
    "configure_logging",
    "current_correlation",
    "engine_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "restore_correlation",
    "set_trace_context",
    "tenant_scope",
    "track_latency",
]

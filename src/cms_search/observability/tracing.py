"""OpenTelemetry spans around engine operations.

The engine only creates spans; exporters and processors belong to the host
process, which attaches them to the provider returned by ``init_tracing``.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

from cms_search.observability.context import bind_span, restore_correlation


if TYPE_CHECKING:
    from collections.abc import Generator

    from opentelemetry.trace import Span, Tracer

    from cms_search.config import ObservabilityConfig

logger = logging.getLogger(__name__)

SPAN_PREFIX = "cms_search"

_tracer_state: dict[str, Tracer | None] = {"tracer": None}


def init_tracing(observability: ObservabilityConfig | None = None) -> TracerProvider:
    """Register a tracer provider tagged with the service resource attributes."""
    attributes = {"service.name": observability.service_name if observability else "cms-search"}
    if observability:
        attributes.update(observability.resource_attributes)
    provider = TracerProvider(resource=Resource.create(attributes))
    trace.set_tracer_provider(provider)
    _tracer_state["tracer"] = provider.get_tracer(SPAN_PREFIX)
    logger.info("Tracing initialized for service: %s", attributes["service.name"])
    return provider


def get_tracer() -> Tracer:
    """Tracer from ``init_tracing``, or the global (possibly no-op) one."""
    if _tracer_state["tracer"] is None:
        _tracer_state["tracer"] = trace.get_tracer(SPAN_PREFIX)
    return _tracer_state["tracer"]  # type: ignore[return-value]


@contextmanager
def engine_span(operation: str, *, tenant: str | None = None, **attributes: Any) -> Generator[Span, None, None]:
    """Open a ``cms_search.<operation>`` span and point log correlation at it.

    Attributes are namespaced under ``cms_search.`` and None values are
    dropped. An exception escaping the block marks the span as failed. The
    previous span id is restored for logging once the block exits.
    """
    span_attributes = {f"{SPAN_PREFIX}.{key}": value for key, value in attributes.items() if value is not None}
    if tenant:
        span_attributes[f"{SPAN_PREFIX}.tenant"] = tenant

    with get_tracer().start_as_current_span(f"{SPAN_PREFIX}.{operation}", attributes=span_attributes) as span:
        span_context = span.get_span_context()
        if not span_context.is_valid:
            yield span
            return
        token = bind_span(format(span_context.span_id, "016x"))
        try:
            yield span
        finally:
            restore_correlation(token)

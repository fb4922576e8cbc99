"""Search engine metrics, exposed to Prometheus and mirrored into OpenTelemetry.

Each metric owns a Prometheus collector (scraped through ``get_metrics``)
and lazily creates an OpenTelemetry instrument with the same name, so a host
that configures an OTel meter provider gets the same series without extra
wiring.
"""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING, Any, ClassVar

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator, Sequence

    from opentelemetry.metrics import Meter
    from opentelemetry.sdk.metrics.export import MetricReader

    from cms_search.config import ObservabilityConfig


_otel_state: dict[str, Any] = {"provider": None, "meter": None}


def init_metrics(
    observability: ObservabilityConfig | None = None,
    metric_readers: Sequence[MetricReader] = (),
) -> MeterProvider:
    """Install the OpenTelemetry meter provider once; later calls return the same provider."""
    if isinstance(_otel_state["provider"], MeterProvider):
        return _otel_state["provider"]

    attributes = {"service.name": observability.service_name if observability else "cms-search"}
    if observability:
        attributes.update(observability.resource_attributes)
    provider = MeterProvider(resource=Resource.create(attributes), metric_readers=list(metric_readers))
    otel_metrics.set_meter_provider(provider)
    _otel_state.update(provider=provider, meter=otel_metrics.get_meter("cms_search"))
    return provider


def _meter() -> Meter:
    if _otel_state["meter"] is None:
        init_metrics()
    return _otel_state["meter"]


class _BridgedMetric:
    prometheus_type: ClassVar[type]
    otel_factory: ClassVar[str]

    def __init__(self, name: str, documentation: str, labelnames: Sequence[str], **prometheus_kwargs: Any) -> None:
        self.name = name
        self.documentation = documentation
        self.prometheus = self.prometheus_type(name, documentation, list(labelnames), **prometheus_kwargs)
        self._instrument = None

    @property
    def instrument(self):
        if self._instrument is None:
            create = getattr(_meter(), self.otel_factory)
            self._instrument = create(self.name, description=self.documentation)
        return self._instrument


class BridgedCounter(_BridgedMetric):
    prometheus_type = Counter
    otel_factory = "create_counter"

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        self.prometheus.labels(**labels).inc(amount)
        self.instrument.add(amount, labels)


class BridgedHistogram(_BridgedMetric):
    prometheus_type = Histogram
    otel_factory = "create_histogram"

    def observe(self, value: float, **labels: str) -> None:
        self.prometheus.labels(**labels).observe(value)
        self.instrument.record(value, labels)


class BridgedGauge(_BridgedMetric):
    """Absolute gauge; OpenTelemetry receives the change since the last ``set``."""

    prometheus_type = Gauge
    otel_factory = "create_up_down_counter"

    def __init__(self, name: str, documentation: str, labelnames: Sequence[str]) -> None:
        super().__init__(name, documentation, labelnames)
        self._last: dict[tuple[tuple[str, str], ...], float] = {}

    def set(self, value: float, **labels: str) -> None:
        self.prometheus.labels(**labels).set(value)
        series = tuple(sorted(labels.items()))
        delta = value - self._last.get(series, 0.0)
        if delta:
            self.instrument.add(delta, labels)
        self._last[series] = value


SEARCH_LATENCY = BridgedHistogram(
    "cms_search_query_latency_seconds",
    "Time to answer a search query, cache hits included",
    ["tenant"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

SEARCH_COUNT = BridgedCounter(
    "cms_search_queries_total",
    "Search queries answered, by outcome",
    ["tenant", "status"],
)

INDEX_OPERATIONS = BridgedCounter(
    "cms_search_index_operations_total",
    "Index mutations by document kind, operation and outcome",
    ["kind", "operation", "status"],
)

CACHE_ERRORS = BridgedCounter(
    "cms_search_cache_errors_total",
    "Cache calls that failed, timed out or returned unreadable data",
    ["operation"],
)

INDEX_DOC_COUNT = BridgedGauge(
    "cms_search_index_documents",
    "Documents currently in the forward index",
    ["kind"],
)


@contextmanager
def track_latency(histogram: BridgedHistogram, **labels: str) -> Generator[None, None, None]:
    """Observe the wall time of the block, even when it raises."""
    started = time.perf_counter()
    try:
        yield
    finally:
        histogram.observe(time.perf_counter() - started, **labels)


def get_metrics() -> bytes:
    """Prometheus text exposition of every registered metric."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST

"""Correlation ids carried across awaits so every log line can be tied to a span and tenant."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
import secrets
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Generator


@dataclass(frozen=True)
class Correlation:
    trace_id: str
    span_id: str
    tenant: str | None = None

    def as_dict(self) -> dict[str, str]:
        fields = {"trace_id": self.trace_id, "span_id": self.span_id}
        if self.tenant:
            fields["tenant"] = self.tenant
        return fields


_current: ContextVar[Correlation | None] = ContextVar("cms_search_correlation", default=None)


def _fresh() -> Correlation:
    # Same widths as OpenTelemetry ids: 128-bit trace, 64-bit span
    return Correlation(trace_id=secrets.token_hex(16), span_id=secrets.token_hex(8))


def current_correlation() -> Correlation:
    """Return the active correlation ids, starting a new trace when none is bound."""
    correlation = _current.get()
    if correlation is None:
        correlation = _fresh()
        _current.set(correlation)
    return correlation


def get_trace_context() -> dict[str, str]:
    return current_correlation().as_dict()


def set_trace_context(trace_id: str, span_id: str, tenant: str | None = None) -> None:
    """Adopt ids propagated by the host (e.g. from an incoming request)."""
    _current.set(Correlation(trace_id=trace_id, span_id=span_id, tenant=tenant))


def bind_span(span_id: str) -> Token[Correlation | None]:
    """Point log correlation at a new span within the same trace.

    Pass the returned token to ``restore_correlation`` when the span ends.
    """
    return _current.set(replace(current_correlation(), span_id=span_id))


def restore_correlation(token: Token[Correlation | None]) -> None:
    _current.reset(token)


@contextmanager
def tenant_scope(tenant_id: str | None) -> Generator[None, None, None]:
    """Tag every log record emitted inside the block with ``tenant_id``."""
    if not tenant_id:
        yield
        return
    token = _current.set(replace(current_correlation(), tenant=tenant_id))
    try:
        yield
    finally:
        _current.reset(token)

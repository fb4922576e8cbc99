"""Structured JSON logging correlated with traces and tenants.

Search logs tend to carry user-typed queries and document text, so string
fields are clipped and credential-like keys masked before serialization.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import sys
from typing import TYPE_CHECKING, Any

import orjson

from cms_search.observability.context import current_correlation


if TYPE_CHECKING:
    from cms_search.config import Settings


# Attributes every LogRecord has; anything else was passed through ``extra=``
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_SENSITIVE_KEYS = frozenset({"password", "token", "api_key", "secret", "authorization", "cache_url"})

_PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _to_json(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        try:
            return sorted(value)
        except TypeError:
            return list(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, BaseException):
        return f"{value.__class__.__name__}: {value}"
    return str(value)


class JsonFormatter(logging.Formatter):
    """One JSON object per line with trace, span and tenant ids."""

    def __init__(self, *, max_message_length: int = 2000, max_field_length: int = 500) -> None:
        super().__init__()
        self.max_message_length = max_message_length
        self.max_field_length = max_field_length

    def format(self, record: logging.LogRecord) -> str:
        correlation = current_correlation()
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "component": record.name.rpartition(".")[2],
            "message": self._clip(record.getMessage(), self.max_message_length),
            "trace_id": correlation.trace_id,
            "span_id": correlation.span_id,
        }
        if correlation.tenant:
            entry["tenant"] = correlation.tenant
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(self._extra_fields(record))
        return orjson.dumps(entry, default=_to_json).decode("utf-8")

    def _extra_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            if key.lower() in _SENSITIVE_KEYS:
                fields[key] = "[REDACTED]"
            elif isinstance(value, str):
                fields[key] = self._clip(value, self.max_field_length)
            else:
                fields[key] = value
        return fields

    @staticmethod
    def _clip(text: str, limit: int) -> str:
        return text if len(text) <= limit else f"{text[:limit]}..."


def configure_logging(
    settings: Settings,
    *,
    logger_levels: dict[str, str] | None = None,
) -> None:
    """Install a single stdout handler on the root logger.

    ``settings.log_level`` sets the root level and ``settings.log_json``
    picks JSON or plain text. ``logger_levels`` overrides individual
    loggers, e.g. ``{"cms_search.search": "debug"}``.
    """
    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if settings.log_json else logging.Formatter(_PLAIN_FORMAT))
    root.handlers[:] = [handler]

    # The OpenTelemetry SDK warns on every export when no collector is configured
    logging.getLogger("opentelemetry").setLevel(logging.ERROR)

    for name, level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(level.upper())

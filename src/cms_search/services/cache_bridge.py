"""Cache bridge between the in-memory index and an external key-value cache.

The cache is never authoritative: snapshots only warm a fresh process and
query/suggestion entries only save recomputation. Every call is bounded by
a timeout, and any failure is logged, counted and turned into a cache miss.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
import glob
import hashlib
import logging
from typing import Any, TypeVar

import orjson
from pydantic import TypeAdapter, ValidationError

from cms_search.adapters.cache import CacheBackend
from cms_search.config import Settings
from cms_search.domain.model import SearchDocument
from cms_search.domain.search import SearchOptions, SearchPage
from cms_search.exceptions import CacheFailure
from cms_search.observability.metrics import CACHE_ERRORS


logger = logging.getLogger(__name__)

T = TypeVar("T")

SNAPSHOT_VERSION = 1
_ALL_TENANTS = "all"
_documents_adapter = TypeAdapter(list[SearchDocument])
_suggestions_adapter = TypeAdapter(list[str])


def _digest(payload: Any) -> str:
    return hashlib.sha256(orjson.dumps(payload, option=orjson.OPT_SORT_KEYS)).hexdigest()[:32]


def query_cache_key(query: str, options: SearchOptions, generation: int) -> str:
    """Canonical cache key for a (query, options) pair at an index generation.

    Filter order does not change the key, and the tenant stays readable so
    tenant-scoped entries can be purged by pattern.
    """
    options_payload = options.model_dump(mode="json")
    options_payload["filters"] = sorted(
        options_payload["filters"], key=lambda item: orjson.dumps(item, option=orjson.OPT_SORT_KEYS)
    )
    tenant = options.tenant_id or _ALL_TENANTS
    return f"search:{tenant}:{generation}:{_digest({'query': query, 'options': options_payload})}"


def suggestion_cache_key(query: str, tenant_id: str | None, limit: int, generation: int) -> str:
    tenant = tenant_id or _ALL_TENANTS
    return f"suggestions:{tenant}:{generation}:{_digest({'query': query.lower(), 'limit': limit})}"


class CacheBridge:
    """Serializes index snapshots and cached results to a ``CacheBackend``."""

    def __init__(self, backend: CacheBackend | None, settings: Settings) -> None:
        self.backend = backend
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.backend is not None

    async def _guard(self, operation: str, key: str, call: Awaitable[T], default: T) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.settings.cache_timeout_seconds)
        except Exception as exc:
            failure = CacheFailure(operation, key, detail=f"{exc.__class__.__name__}: {exc}")
            logger.warning("Cache %s failed for %s: %s", operation, key, failure)
            CACHE_ERRORS.inc(operation=operation)
            return default

    async def _get(self, key: str) -> bytes | None:
        if self.backend is None:
            return None
        return await self._guard("get", key, self.backend.get(key), None)

    async def _set(self, key: str, value: bytes, ttl_seconds: int) -> bool:
        if self.backend is None:
            return False

        async def _store() -> bool:
            await self.backend.set(key, value, ttl_seconds)
            return True

        return await self._guard("set", key, _store(), False)

    async def snapshot(self, documents: list[SearchDocument]) -> bool:
        """Write the forward index to the cache; postings are rebuilt on restore."""
        payload = orjson.dumps(
            {
                "version": SNAPSHOT_VERSION,
                "documents": [document.model_dump(mode="json") for document in documents],
            }
        )
        stored = await self._set(self.settings.snapshot_key, payload, self.settings.snapshot_ttl_seconds)
        if stored:
            logger.debug("Snapshot stored with %d documents", len(documents))
        return stored

    async def restore(self) -> list[SearchDocument] | None:
        """Read the snapshot back; None when absent, expired or unreadable."""
        key = self.settings.snapshot_key
        raw = await self._get(key)
        if raw is None:
            return None
        try:
            payload = orjson.loads(raw)
            if payload.get("version") != SNAPSHOT_VERSION:
                raise ValueError(f"unsupported snapshot version {payload.get('version')!r}")
            return _documents_adapter.validate_python(payload["documents"])
        except (orjson.JSONDecodeError, ValidationError, ValueError, KeyError, AttributeError) as exc:
            failure = CacheFailure("restore", key, detail=f"{exc.__class__.__name__}: {exc}")
            logger.warning("Ignoring unreadable index snapshot: %s", failure)
            CACHE_ERRORS.inc(operation="restore")
            return None

    async def cache_query(self, key: str, page: SearchPage, ttl_seconds: int | None = None) -> bool:
        ttl = ttl_seconds or self.settings.query_cache_ttl_seconds
        return await self._set(key, orjson.dumps(page.model_dump(mode="json")), ttl)

    async def cached_query(self, key: str) -> SearchPage | None:
        raw = await self._get(key)
        if raw is None:
            return None
        try:
            return SearchPage.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError) as exc:
            logger.warning("Discarding corrupt cached result %s: %s", key, exc)
            CACHE_ERRORS.inc(operation="decode")
            return None

    async def cache_suggestions(self, key: str, suggestions: list[str]) -> bool:
        return await self._set(key, orjson.dumps(suggestions), self.settings.suggestion_cache_ttl_seconds)

    async def cached_suggestions(self, key: str) -> list[str] | None:
        raw = await self._get(key)
        if raw is None:
            return None
        try:
            return _suggestions_adapter.validate_python(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError) as exc:
            logger.warning("Discarding corrupt cached suggestions %s: %s", key, exc)
            CACHE_ERRORS.inc(operation="decode")
            return None

    async def invalidate_tenant(self, tenant_id: str) -> int:
        """Purge cached queries and suggestions that may contain the tenant's documents."""
        if self.backend is None:
            return 0
        escaped = glob.escape(tenant_id)
        patterns = [
            f"search:{escaped}:*",
            f"suggestions:{escaped}:*",
            f"search:{_ALL_TENANTS}:*",
            f"suggestions:{_ALL_TENANTS}:*",
        ]
        removed = 0
        for pattern in patterns:
            removed += await self._guard("invalidate", pattern, self.backend.invalidate_pattern(pattern), 0) or 0
        logger.info("Invalidated %d cached entries for tenant %s", removed, tenant_id)
        return removed

    async def health_check(self) -> bool:
        if self.backend is None:
            return False
        return bool(await self._guard("health", "-", self.backend.health_check(), False))

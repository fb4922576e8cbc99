"""SearchEngine - the single owner of the in-memory search index.

Host services construct one engine per process, call ``initialize()`` on
startup (warm from the cache snapshot) and ``close()`` on shutdown (flush a
final snapshot). Index mutations and queries are synchronous critical
sections; the only awaits are cache calls, which can fail without affecting
the answer.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
import logging
import time
from typing import Any

from pydantic import TypeAdapter, ValidationError

from cms_search.adapters.cache import CacheBackend
from cms_search.config import Settings
from cms_search.domain.model import ContentRecord, DocumentKind, MediaRecord, SearchDocument, make_doc_id
from cms_search.domain.reports import HealthReport, IndexStats, SearchAnalytics, TokenFrequency
from cms_search.domain.search import (
    BulkIndexEntry,
    BulkIndexSummary,
    OperationResult,
    SearchOptions,
    SearchPage,
)
from cms_search.exceptions import IndexingFailure
from cms_search.observability import (
    INDEX_DOC_COUNT,
    INDEX_OPERATIONS,
    SEARCH_COUNT,
    SEARCH_LATENCY,
    engine_span,
    tenant_scope,
    track_latency,
)
from cms_search.search.analytics import AnalyticsCollector
from cms_search.search.indexer import DocumentIndexer
from cms_search.search.query_engine import QueryEngine
from cms_search.search.suggestions import rank_suggestions
from cms_search.services.cache_bridge import CacheBridge, query_cache_key, suggestion_cache_key


logger = logging.getLogger(__name__)

_bulk_entry_adapter = TypeAdapter(BulkIndexEntry)

# Rough per-structure overheads used for the memory estimate in index stats
DOCUMENT_OVERHEAD_BYTES = 1000
TOKEN_OVERHEAD_BYTES = 100
POSTING_REF_BYTES = 8


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SearchEngine:
    """Multi-tenant full-text search over content and media documents."""

    def __init__(
        self,
        settings: Settings | None = None,
        cache: CacheBackend | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.settings = settings or Settings()
        self.indexer = DocumentIndexer(clock=clock)
        self.query_engine = QueryEngine(self.indexer, self.settings)
        self.analytics = AnalyticsCollector(max_tracked_queries=self.settings.max_tracked_queries, clock=clock)
        self.cache = CacheBridge(cache, self.settings)
        self._clock = clock
        self._last_optimization: datetime | None = None

    async def __aenter__(self) -> SearchEngine:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> bool:
        """Hydrate the index from the cache snapshot. Returns True when one was loaded."""
        documents = await self.cache.restore()
        if documents is None:
            logger.info("No index snapshot available, starting with an empty index")
            return False
        count = self.indexer.load(documents)
        self._refresh_document_gauge()
        logger.info("Search index restored from snapshot (%d documents)", count)
        return True

    async def close(self) -> None:
        """Flush a final snapshot so the next process can warm up."""
        if self.cache.enabled:
            await self.snapshot()

    async def snapshot(self) -> bool:
        return await self.cache.snapshot(self.indexer.documents())

    # ------------------------------------------------------------------
    # Index mutation (called by the content and media services)
    # ------------------------------------------------------------------

    async def index_content(self, record: ContentRecord | Mapping[str, Any]) -> OperationResult[None]:
        return await self._index("content", record)

    async def update_content(self, record: ContentRecord | Mapping[str, Any]) -> OperationResult[None]:
        return await self._index("content", record, operation="update")

    async def remove_content(self, content_id: str) -> OperationResult[None]:
        return await self._remove("content", content_id)

    async def index_media(self, record: MediaRecord | Mapping[str, Any]) -> OperationResult[None]:
        return await self._index("media", record)

    async def update_media(self, record: MediaRecord | Mapping[str, Any]) -> OperationResult[None]:
        return await self._index("media", record, operation="update")

    async def remove_media(self, media_id: str) -> OperationResult[None]:
        return await self._remove("media", media_id)

    def _index_record(self, kind: DocumentKind, record: ContentRecord | MediaRecord | Mapping[str, Any]) -> str:
        """Validate, derive and upsert one record; returns its composite id."""
        try:
            if kind == "content":
                document = self.indexer.build_content_document(ContentRecord.model_validate(record))
            else:
                document = self.indexer.build_media_document(MediaRecord.model_validate(record))
        except ValidationError as exc:
            entity_id = record.get("id", "?") if isinstance(record, Mapping) else getattr(record, "id", "?")
            raise IndexingFailure(make_doc_id(kind, str(entity_id)), "invalid_record", detail=str(exc)) from exc
        self.indexer.upsert(document)
        return document.doc_id

    async def _index(
        self,
        kind: DocumentKind,
        record: ContentRecord | MediaRecord | Mapping[str, Any],
        *,
        operation: str = "index",
    ) -> OperationResult[None]:
        with engine_span(operation, kind=kind):
            try:
                doc_id = self._index_record(kind, record)
            except IndexingFailure as exc:
                logger.error("Failed to %s %s %s: %s", operation, kind, exc.doc_id, exc)
                INDEX_OPERATIONS.inc(kind=kind, operation=operation, status="error")
                return OperationResult.fail(f"Failed to {operation} {kind}")

        INDEX_OPERATIONS.inc(kind=kind, operation=operation, status="ok")
        self._refresh_document_gauge()
        logger.debug("%s indexed for search: %s", kind.capitalize(), doc_id)
        await self._after_mutation()
        return OperationResult.ok()

    async def _remove(self, kind: DocumentKind, entity_id: str) -> OperationResult[None]:
        doc_id = make_doc_id(kind, entity_id)
        with engine_span("remove", kind=kind):
            removed = self.indexer.remove(doc_id)

        INDEX_OPERATIONS.inc(kind=kind, operation="remove", status="ok")
        if removed is not None:
            self._refresh_document_gauge()
            await self._after_mutation()
        logger.debug("%s removed from search index: %s", kind.capitalize(), entity_id)
        return OperationResult.ok()

    async def _after_mutation(self) -> None:
        if self.settings.snapshot_on_write:
            await self.snapshot()

    def _refresh_document_gauge(self) -> None:
        counts = Counter(document.kind for document in self.indexer.documents())
        for kind in ("content", "media"):
            INDEX_DOC_COUNT.set(counts.get(kind, 0), kind=kind)

    async def bulk_index(
        self,
        entries: Iterable[BulkIndexEntry | Mapping[str, Any]],
    ) -> OperationResult[BulkIndexSummary]:
        """Index many records, counting per-entry failures without stopping.

        The snapshot is refreshed once at the end instead of per document.
        """
        summary = BulkIndexSummary()
        for raw_entry in entries:
            try:
                entry = _bulk_entry_adapter.validate_python(raw_entry)
                self._index_record(entry.kind, entry.record)
            except (ValidationError, IndexingFailure) as exc:
                logger.error("Bulk index entry rejected: %s", exc)
                INDEX_OPERATIONS.inc(kind="unknown", operation="bulk", status="error")
                summary.failed += 1
                continue
            INDEX_OPERATIONS.inc(kind=entry.kind, operation="bulk", status="ok")
            summary.indexed += 1

        self._refresh_document_gauge()
        if summary.indexed:
            await self._after_mutation()
        logger.info("Bulk index completed: %d indexed, %d failed", summary.indexed, summary.failed)
        return OperationResult.ok(summary)

    async def reindex_tenant(self, tenant_id: str) -> OperationResult[int]:
        """Purge every document of a tenant plus its cached queries and suggestions.

        The host re-feeds the tenant's records afterwards. Safe to re-run.
        """
        logger.info("Starting reindex for tenant: %s", tenant_id)
        with tenant_scope(tenant_id), engine_span("reindex_tenant", tenant=tenant_id):
            removed = self.indexer.remove_tenant(tenant_id)

        self._refresh_document_gauge()
        await self.cache.invalidate_tenant(tenant_id)
        await self.snapshot()
        logger.info("Reindexed search data for tenant %s (removed %d documents)", tenant_id, len(removed))
        return OperationResult.ok(len(removed))

    async def optimize_index(self) -> OperationResult[int]:
        """Compact empty posting sets; returns how many were dropped."""
        logger.info("Starting search index optimization")
        dropped = self.indexer.compact()
        self._last_optimization = self._clock()
        await self.snapshot()
        logger.info("Search index optimization completed (%d empty postings dropped)", dropped)
        return OperationResult.ok(dropped)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        options: SearchOptions | Mapping[str, Any] | None = None,
    ) -> OperationResult[SearchPage]:
        """Run a ranked, filtered, paginated query.

        Cached pages are served when the index has not changed since they
        were computed; a cache outage only means recomputation.
        """
        try:
            options = options if isinstance(options, SearchOptions) else SearchOptions.model_validate(options or {})
        except ValidationError as exc:
            logger.warning("Rejected search options: %s", exc)
            return OperationResult.fail("Invalid search options")

        tenant_label = options.tenant_id or "all"
        started = time.perf_counter()
        with (
            tenant_scope(options.tenant_id),
            engine_span("search", tenant=options.tenant_id, fuzzy=options.fuzzy, kind=options.kind),
            track_latency(SEARCH_LATENCY, tenant=tenant_label),
        ):
            key = query_cache_key(query, options, self.indexer.generation)
            page = await self.cache.cached_query(key)
            if page is not None:
                page = page.model_copy(update={"search_time_ms": (time.perf_counter() - started) * 1000})
            else:
                try:
                    page = self.query_engine.execute(query, options)
                except Exception as exc:
                    logger.error("Search failed for %r: %s", query, exc, exc_info=True)
                    SEARCH_COUNT.inc(tenant=tenant_label, status="error")
                    return OperationResult.fail("Search failed")

                await self.cache.cache_query(key, page)

            if options.suggest:
                page = page.model_copy(
                    update={"suggestions": self._compute_suggestions(query, options.tenant_id, None)}
                )

        if query.strip():
            self.analytics.record_search(
                query,
                page.total,
                tenant_id=options.tenant_id,
                doc_ids=[hit.document.doc_id for hit in page.results],
            )
        SEARCH_COUNT.inc(tenant=tenant_label, status="ok")
        return OperationResult.ok(page)

    def _compute_suggestions(self, query: str, tenant_id: str | None, limit: int | None) -> list[str]:
        return rank_suggestions(
            query,
            self.analytics.query_history(tenant_id),
            self.indexer.forward.documents(tenant_id),
            self.settings.default_suggestion_limit if limit is None else limit,
        )

    async def get_suggestions(
        self,
        query: str,
        tenant_id: str | None = None,
        limit: int | None = None,
    ) -> OperationResult[list[str]]:
        """Autocomplete suggestions from past queries and document fields."""
        if limit is None:
            limit = self.settings.default_suggestion_limit
        elif limit < 0:
            return OperationResult.fail("Invalid suggestion limit")
        elif limit == 0:
            return OperationResult.ok([])
        key = suggestion_cache_key(query, tenant_id, limit, self.indexer.generation)
        cached = await self.cache.cached_suggestions(key)
        if cached is not None:
            return OperationResult.ok(cached)

        try:
            suggestions = self._compute_suggestions(query, tenant_id, limit)
        except Exception as exc:
            logger.error("Failed to get search suggestions for %r: %s", query, exc, exc_info=True)
            return OperationResult.fail("Failed to get search suggestions")

        await self.cache.cache_suggestions(key, suggestions)
        return OperationResult.ok(suggestions)

    async def get_search_analytics(self, tenant_id: str | None = None) -> OperationResult[SearchAnalytics]:
        try:
            analytics = self.analytics.snapshot(
                tenant_id,
                top_n=self.settings.analytics_top_n,
                trend_days=self.settings.trend_days,
                resolve=self.indexer.forward.get,
            )
        except Exception as exc:
            logger.error("Failed to get search analytics: %s", exc, exc_info=True)
            return OperationResult.fail("Failed to get search analytics")
        return OperationResult.ok(analytics)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def get_index_stats(self) -> IndexStats:
        documents = self.indexer.documents()
        inverted = self.indexer.inverted
        kinds = Counter(document.kind for document in documents)
        text_length = sum(len(document.searchable_text) for document in documents)

        frequencies = sorted(inverted.items(), key=lambda item: (-item[1], item[0]))
        posting_refs = sum(frequency for _, frequency in frequencies)
        estimated_bytes = (
            text_length
            + len(documents) * DOCUMENT_OVERHEAD_BYTES
            + len(frequencies) * TOKEN_OVERHEAD_BYTES
            + posting_refs * POSTING_REF_BYTES
        )

        return IndexStats(
            total_items=len(documents),
            content_items=kinds.get("content", 0),
            media_items=kinds.get("media", 0),
            index_size=len(documents),
            inverted_index_size=len(frequencies),
            average_document_size=round(text_length / len(documents)) if documents else 0,
            top_tokens=[TokenFrequency(token=token, frequency=freq) for token, freq in frequencies[:10]],
            memory_usage=f"{estimated_bytes / 1024 / 1024:.2f}MB",
        )

    async def health_check(self) -> HealthReport:
        """Report ``unhealthy`` for an empty index, ``degraded`` when the cache is down."""
        cache_connected = await self.cache.health_check()
        index_size = len(self.indexer.forward)

        status = "healthy"
        if self.cache.enabled and not cache_connected:
            status = "degraded"
        if index_size == 0:
            status = "unhealthy"

        return HealthReport(
            status=status,
            index_size=index_size,
            cache_connected=cache_connected,
            last_optimization=self._last_optimization,
        )

    def get_document(self, kind: DocumentKind, entity_id: str) -> SearchDocument | None:
        """Return the indexed document for an entity, if present."""
        return self.indexer.forward.get(make_doc_id(kind, entity_id))


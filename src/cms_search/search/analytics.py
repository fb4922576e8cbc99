"""Search usage analytics collected from real query traffic.

Counters are kept globally and per tenant. The number of distinct queries
(and documents) tracked per bucket is capped; once the cap is hit the least
frequent entry is evicted, so the statistics stay approximate for the long
tail but memory stays bounded.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
import threading

from cms_search.domain.model import SearchDocument
from cms_search.domain.reports import PopularContent, QueryCount, SearchAnalytics, TrendPoint


_DAILY_RETENTION_DAYS = 90


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _bounded_increment(counter: Counter, key: str, limit: int, amount: int = 1) -> None:
    counter[key] += amount
    if len(counter) > limit:
        victim = min((item for item in counter.items() if item[0] != key), key=lambda item: (item[1], item[0]))
        del counter[victim[0]]


@dataclass
class _Bucket:
    total_searches: int = 0
    total_results: int = 0
    queries: Counter = field(default_factory=Counter)
    no_results: Counter = field(default_factory=Counter)
    daily: Counter = field(default_factory=Counter)
    document_hits: Counter = field(default_factory=Counter)


def _top(counter: Counter, limit: int) -> list[QueryCount]:
    ordered = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return [QueryCount(query=query, count=count) for query, count in ordered[:limit]]


class AnalyticsCollector:
    """Collects search counters and renders ``SearchAnalytics`` snapshots."""

    def __init__(self, *, max_tracked_queries: int = 10_000, clock: Callable[[], datetime] = _utcnow) -> None:
        self.max_tracked_queries = max_tracked_queries
        self._clock = clock
        self._buckets: dict[str | None, _Bucket] = {None: _Bucket()}
        self._lock = threading.Lock()

    def record_search(
        self,
        query: str,
        result_count: int,
        *,
        tenant_id: str | None = None,
        doc_ids: Iterable[str] = (),
    ) -> None:
        """Record one executed query, how many results it had and which documents it returned."""
        key = query.lower()
        today = self._clock().date()
        returned = list(doc_ids)

        with self._lock:
            buckets = [self._buckets[None]]
            if tenant_id:
                buckets.append(self._buckets.setdefault(tenant_id, _Bucket()))

            for bucket in buckets:
                bucket.total_searches += 1
                bucket.total_results += result_count
                _bounded_increment(bucket.queries, key, self.max_tracked_queries)
                if result_count == 0:
                    _bounded_increment(bucket.no_results, key, self.max_tracked_queries)
                bucket.daily[today.isoformat()] += 1
                for doc_id in returned:
                    _bounded_increment(bucket.document_hits, doc_id, self.max_tracked_queries)
                self._prune_daily(bucket, today)

    def _prune_daily(self, bucket: _Bucket, today: date) -> None:
        cutoff = (today - timedelta(days=_DAILY_RETENTION_DAYS)).isoformat()
        for day in [day for day in bucket.daily if day < cutoff]:
            del bucket.daily[day]

    def query_count(self, query: str, tenant_id: str | None = None) -> int:
        bucket = self._buckets.get(tenant_id)
        return bucket.queries.get(query.lower(), 0) if bucket else 0

    def query_history(self, tenant_id: str | None = None) -> dict[str, int]:
        """Return a copy of the lowercased query -> occurrence map."""
        with self._lock:
            bucket = self._buckets.get(tenant_id)
            return dict(bucket.queries) if bucket else {}

    @property
    def total_searches(self) -> int:
        return self._buckets[None].total_searches

    def snapshot(
        self,
        tenant_id: str | None = None,
        *,
        top_n: int = 10,
        trend_days: int = 7,
        resolve: Callable[[str], SearchDocument | None] = lambda _doc_id: None,
    ) -> SearchAnalytics:
        """Render analytics for a tenant (or all tenants when ``tenant_id`` is None).

        ``resolve`` maps a composite id to its current document so popular
        content can carry a title; documents no longer indexed are skipped.
        """
        with self._lock:
            bucket = self._buckets.get(tenant_id) or _Bucket()
            today = self._clock().date()
            trends = [
                TrendPoint(date=day.isoformat(), searches=bucket.daily.get(day.isoformat(), 0))
                for day in (today - timedelta(days=offset) for offset in range(trend_days - 1, -1, -1))
            ]
            ranked_docs = sorted(bucket.document_hits.items(), key=lambda item: (-item[1], item[0]))
            average = bucket.total_results / bucket.total_searches if bucket.total_searches else 0.0
            top_queries = _top(bucket.queries, top_n)
            no_results = _top(bucket.no_results, top_n)
            total = bucket.total_searches

        popular: list[PopularContent] = []
        for doc_id, count in ranked_docs:
            document = resolve(doc_id)
            if document is None:
                continue
            popular.append(PopularContent(id=doc_id, title=document.display_title, search_count=count))
            if len(popular) >= top_n:
                break

        return SearchAnalytics(
            total_searches=total,
            top_queries=top_queries,
            no_results_queries=no_results,
            average_results_per_query=average,
            search_trends=trends,
            popular_content=popular,
        )

    def reset(self) -> None:
        with self._lock:
            self._buckets = {None: _Bucket()}

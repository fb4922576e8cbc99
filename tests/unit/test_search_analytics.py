"""Unit tests for search usage analytics."""

from datetime import datetime, timedelta, timezone

import pytest

from cms_search.domain.model import SearchDocument
from cms_search.search.analytics import AnalyticsCollector


class MutableClock:
    """Clock whose current time can be advanced by tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _doc(doc_id: str, title: str) -> SearchDocument:
    kind, entity_id = doc_id.split(":")
    return SearchDocument(
        id=entity_id,
        kind=kind,
        tenant_id="tenant-a",
        title=title,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def collector(clock):
    return AnalyticsCollector(clock=clock)


@pytest.mark.unit
class TestRecordSearch:
    """Tests for AnalyticsCollector.record_search."""

    def test_counts_lowercased_queries(self, collector):
        collector.record_search("Report", 2)
        collector.record_search("report", 1)
        assert collector.query_count("REPORT") == 2
        assert collector.total_searches == 2

    def test_tenant_and_global_buckets(self, collector):
        collector.record_search("report", 1, tenant_id="tenant-a")
        collector.record_search("report", 1, tenant_id="tenant-b")

        assert collector.query_count("report") == 2
        assert collector.query_count("report", "tenant-a") == 1
        assert collector.query_history("tenant-b") == {"report": 1}
        assert collector.query_history("tenant-c") == {}

    def test_query_history_is_a_copy(self, collector):
        collector.record_search("report", 1)
        history = collector.query_history()
        history["report"] = 99
        assert collector.query_count("report") == 1

    def test_tracked_queries_are_bounded(self, clock):
        collector = AnalyticsCollector(max_tracked_queries=10, clock=clock)
        for _ in range(3):
            collector.record_search("popular", 1)
        for number in range(20):
            collector.record_search(f"rare{number}", 1)

        history = collector.query_history()
        assert len(history) == 10
        assert history["popular"] == 3
        assert "rare19" in history

    def test_reset(self, collector):
        collector.record_search("report", 1, tenant_id="tenant-a")
        collector.reset()
        assert collector.total_searches == 0
        assert collector.query_history("tenant-a") == {}


@pytest.mark.unit
class TestSnapshot:
    """Tests for AnalyticsCollector.snapshot."""

    def test_empty(self, collector):
        analytics = collector.snapshot()
        assert analytics.total_searches == 0
        assert analytics.average_results_per_query == 0.0
        assert analytics.top_queries == []
        assert len(analytics.search_trends) == 7
        assert all(point.searches == 0 for point in analytics.search_trends)

    def test_top_and_no_results_queries(self, collector):
        for _ in range(3):
            collector.record_search("report", 4)
        collector.record_search("budget", 2)
        collector.record_search("missing", 0)
        collector.record_search("missing", 0)

        analytics = collector.snapshot(top_n=2)

        assert [(item.query, item.count) for item in analytics.top_queries] == [("report", 3), ("missing", 2)]
        assert [(item.query, item.count) for item in analytics.no_results_queries] == [("missing", 2)]
        assert analytics.total_searches == 6
        assert analytics.average_results_per_query == pytest.approx(14 / 6)

    def test_ties_are_alphabetical(self, collector):
        collector.record_search("beta", 1)
        collector.record_search("alpha", 1)
        assert [item.query for item in collector.snapshot().top_queries] == ["alpha", "beta"]

    def test_trends_follow_real_days(self, fixed_now):
        clock = MutableClock(fixed_now - timedelta(days=2))
        collector = AnalyticsCollector(clock=clock)
        collector.record_search("report", 1)
        clock.now = fixed_now
        collector.record_search("report", 1)
        collector.record_search("budget", 1)

        trends = collector.snapshot(trend_days=3).search_trends

        assert [point.date for point in trends] == ["2026-02-27", "2026-02-28", "2026-03-01"]
        assert [point.searches for point in trends] == [1, 0, 2]

    def test_daily_counts_expire_after_retention(self, fixed_now):
        clock = MutableClock(fixed_now - timedelta(days=120))
        collector = AnalyticsCollector(clock=clock)
        collector.record_search("report", 1)
        clock.now = fixed_now
        collector.record_search("report", 1)

        trends = collector.snapshot(trend_days=90).search_trends
        assert sum(point.searches for point in trends) == 1

    def test_popular_content_from_returned_documents(self, collector):
        documents = {
            "content:1": _doc("content:1", "Quarterly Report"),
            "content:2": _doc("content:2", "Draft Notes"),
        }
        collector.record_search("report", 2, doc_ids=["content:1", "content:2"])
        collector.record_search("quarterly", 1, doc_ids=["content:1"])
        collector.record_search("gone", 1, doc_ids=["content:removed"])

        popular = collector.snapshot(resolve=documents.get).popular_content

        assert [(item.id, item.title, item.search_count) for item in popular] == [
            ("content:1", "Quarterly Report", 2),
            ("content:2", "Draft Notes", 1),
        ]

    def test_tenant_snapshot_is_scoped(self, collector):
        collector.record_search("report", 1, tenant_id="tenant-a")
        collector.record_search("budget", 0, tenant_id="tenant-b")

        analytics = collector.snapshot("tenant-b")

        assert analytics.total_searches == 1
        assert [item.query for item in analytics.top_queries] == ["budget"]
        assert collector.snapshot("unknown").total_searches == 0

    def test_snapshot_is_deterministic(self, collector):
        collector.record_search("report", 3, doc_ids=["content:1"])
        assert collector.snapshot() == collector.snapshot()

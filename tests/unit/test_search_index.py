"""Unit tests for the inverted and forward index containers."""

from datetime import datetime, timezone

import pytest

from cms_search.domain.model import SearchDocument
from cms_search.search.index import ForwardIndex, InvertedIndex


def _doc(doc_id: str, tenant_id: str = "tenant-a", text: str = "") -> SearchDocument:
    return SearchDocument(
        id=doc_id,
        kind="content",
        tenant_id=tenant_id,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        searchable_text=text,
    )


@pytest.mark.unit
class TestInvertedIndex:
    """Tests for InvertedIndex."""

    def test_add_postings_returns_distinct_tokens(self):
        index = InvertedIndex()
        assert index.add_postings("content:1", "report report finance") == 2
        assert index.postings_of("report") == {"content:1"}
        assert index.postings_of("finance") == {"content:1"}
        assert len(index) == 2

    def test_stopwords_and_short_tokens_are_not_indexed(self):
        index = InvertedIndex()
        index.add_postings("content:1", "the ox and report")
        assert "the" not in index
        assert "ox" not in index
        assert "report" in index

    def test_remove_postings_drops_empty_tokens(self):
        index = InvertedIndex()
        index.add_postings("content:1", "report finance")
        index.add_postings("content:2", "report notes")

        dropped = index.remove_postings("content:1", "report finance")

        assert dropped == 1
        assert "finance" not in index
        assert index.postings_of("report") == {"content:2"}

    def test_remove_unknown_tokens_is_noop(self):
        index = InvertedIndex()
        index.add_postings("content:1", "report")
        assert index.remove_postings("content:1", "missing tokens") == 0
        assert index.postings_of("report") == {"content:1"}

    def test_postings_of_returns_copy(self):
        index = InvertedIndex()
        index.add_postings("content:1", "report")
        postings = index.postings_of("report")
        postings.add("content:999")
        assert index.postings_of("report") == {"content:1"}

    def test_unknown_token(self):
        index = InvertedIndex()
        assert index.postings_of("missing") == set()
        assert index.document_frequency("missing") == 0

    def test_document_frequency_and_items(self):
        index = InvertedIndex()
        index.add_postings("content:1", "report finance")
        index.add_postings("content:2", "report")
        assert index.document_frequency("report") == 2
        assert dict(index.items()) == {"report": 2, "finance": 1}
        assert sorted(index.vocabulary()) == ["finance", "report"]

    def test_compact_without_empty_sets(self):
        index = InvertedIndex()
        index.add_postings("content:1", "report")
        assert index.compact() == 0
        assert len(index) == 1

    def test_clear(self):
        index = InvertedIndex()
        index.add_postings("content:1", "report")
        index.clear()
        assert len(index) == 0


@pytest.mark.unit
class TestForwardIndex:
    """Tests for ForwardIndex."""

    def test_put_and_get(self):
        index = ForwardIndex()
        document = _doc("1")
        assert index.put(document) is None
        assert index.get("content:1") == document
        assert "content:1" in index
        assert len(index) == 1

    def test_put_returns_previous(self):
        index = ForwardIndex()
        first = _doc("1", text="old")
        index.put(first)
        assert index.put(_doc("1", text="new")) == first
        assert index.get("content:1").searchable_text == "new"

    def test_pop(self):
        index = ForwardIndex()
        index.put(_doc("1"))
        assert index.pop("content:1") is not None
        assert index.pop("content:1") is None
        assert len(index) == 0

    def test_documents_scoped_by_tenant(self):
        index = ForwardIndex()
        index.put(_doc("1", tenant_id="tenant-a"))
        index.put(_doc("2", tenant_id="tenant-b"))
        assert [doc.id for doc in index.documents("tenant-b")] == ["2"]
        assert len(index.documents()) == 2

    def test_replace_all(self):
        index = ForwardIndex()
        index.put(_doc("1"))
        index.replace_all([_doc("2"), _doc("3")])
        assert "content:1" not in index
        assert len(index) == 2

    def test_clear(self):
        index = ForwardIndex()
        index.put(_doc("1"))
        index.clear()
        assert len(index) == 0

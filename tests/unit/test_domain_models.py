"""Unit tests for domain records, filters and result envelopes."""

from datetime import datetime, timedelta, timezone

from pydantic import TypeAdapter, ValidationError
import pytest

from cms_search.domain import (
    AuthorFilter,
    BulkIndexEntry,
    CategoriesFilter,
    ContentRecord,
    DateRangeFilter,
    MediaEntry,
    MediaTypeFilter,
    OperationResult,
    Pagination,
    SearchDocument,
    SearchOptions,
    StatusFilter,
    TagsFilter,
    make_doc_id,
)


def _document(**fields):
    defaults = {
        "id": "1",
        "kind": "content",
        "tenant_id": "tenant-a",
        "created_at": datetime(2026, 1, 15, tzinfo=timezone.utc),
    }
    defaults.update(fields)
    return SearchDocument(**defaults)


@pytest.mark.unit
class TestRecords:
    """Tests for host-provided records."""

    def test_naive_timestamps_become_utc(self):
        record = ContentRecord(id="1", tenant_id="t", created_at=datetime(2026, 1, 1, 9, 30))
        assert record.created_at.tzinfo == timezone.utc

    def test_offset_timestamps_are_converted(self):
        plus_two = timezone(timedelta(hours=2))
        record = ContentRecord(id="1", tenant_id="t", created_at=datetime(2026, 1, 1, 12, tzinfo=plus_two))
        assert record.created_at == datetime(2026, 1, 1, 10, tzinfo=timezone.utc)

    def test_unknown_fields_are_ignored(self):
        record = ContentRecord.model_validate(
            {"id": "1", "tenant_id": "t", "created_at": "2026-01-01T00:00:00Z", "seo": {"slug": "x"}}
        )
        assert record.id == "1"

    def test_tenant_is_required(self):
        with pytest.raises(ValidationError):
            ContentRecord(id="1", tenant_id="", created_at=datetime(2026, 1, 1))

    def test_records_are_immutable(self):
        record = ContentRecord(id="1", tenant_id="t", created_at=datetime(2026, 1, 1))
        with pytest.raises(ValidationError):
            record.title = "changed"


@pytest.mark.unit
class TestSearchDocument:
    """Tests for SearchDocument helpers."""

    def test_composite_id(self):
        assert _document(kind="media", id="42").doc_id == "media:42"
        assert make_doc_id("content", "42") == "content:42"

    def test_display_title_fallbacks(self):
        assert _document(title="Title", filename="f.png").display_title == "Title"
        assert _document(kind="media", original_name="Orig.png", filename="f.png").display_title == "Orig.png"
        assert _document(kind="media", filename="f.png").display_title == "f.png"
        assert _document(kind="media").display_title == "1"


@pytest.mark.unit
class TestFilters:
    """Tests for the tagged filter variants."""

    def test_parsed_from_tagged_dicts(self):
        options = SearchOptions.model_validate(
            {
                "filters": [
                    {"kind": "status", "status": "published"},
                    {"kind": "tags", "tags": ["finance"]},
                    {"kind": "date_range", "start": "2026-01-01T00:00:00Z", "end": "2026-02-01T00:00:00Z"},
                ]
            }
        )
        assert [type(item) for item in options.filters] == [StatusFilter, TagsFilter, DateRangeFilter]

    def test_unknown_filter_kind_is_rejected(self):
        with pytest.raises(ValidationError):
            SearchOptions.model_validate({"filters": [{"kind": "color", "value": "red"}]})

    def test_extra_payload_is_rejected(self):
        with pytest.raises(ValidationError):
            StatusFilter(status="draft", colour="red")

    def test_empty_tag_list_is_rejected(self):
        with pytest.raises(ValidationError):
            TagsFilter(tags=[])

    def test_inverted_date_range_is_rejected(self):
        with pytest.raises(ValidationError):
            DateRangeFilter(start=datetime(2026, 2, 1), end=datetime(2026, 1, 1))

    def test_naive_range_bounds_become_utc(self):
        date_range = DateRangeFilter(start=datetime(2026, 1, 1), end=datetime(2026, 2, 1))
        assert date_range.start.tzinfo == timezone.utc
        assert date_range.matches(_document())

    def test_matchers(self):
        document = _document(
            status="published",
            media_type="image",
            author_id="u1",
            tags=["finance"],
            categories=["reports"],
        )
        assert StatusFilter(status="published").matches(document)
        assert not StatusFilter(status="draft").matches(document)
        assert MediaTypeFilter(media_type="image").matches(document)
        assert AuthorFilter(author_id="u1").matches(document)
        assert TagsFilter(tags=["legal", "finance"]).matches(document)
        assert CategoriesFilter(categories=["reports"]).matches(document)
        assert not CategoriesFilter(categories=["news"]).matches(document)


@pytest.mark.unit
class TestSearchOptions:
    """Tests for SearchOptions validation."""

    def test_defaults(self):
        options = SearchOptions()
        assert options.kind == "all"
        assert options.filters == []
        assert options.pagination is None
        assert not options.fuzzy

    def test_unknown_option_is_rejected(self):
        with pytest.raises(ValidationError):
            SearchOptions.model_validate({"typo": True})

    @pytest.mark.parametrize("pagination", [{"page": 0}, {"limit": 0}, {"limit": 1001}])
    def test_pagination_bounds(self, pagination):
        with pytest.raises(ValidationError):
            Pagination(**pagination)

    def test_passes_checks_tenant_and_kind(self):
        document = _document(tenant_id="tenant-a")
        assert SearchOptions(tenant_id="tenant-a").passes(document)
        assert not SearchOptions(tenant_id="tenant-b").passes(document)
        assert not SearchOptions(kind="media").passes(document)


@pytest.mark.unit
class TestEnvelopes:
    """Tests for OperationResult and bulk entries."""

    def test_ok_and_fail(self):
        assert OperationResult.ok(3).data == 3
        failed = OperationResult.fail("Search failed")
        assert failed.success is False
        assert failed.error == "Search failed"
        assert failed.data is None

    def test_bulk_entry_discriminates_on_kind(self):
        entry = TypeAdapter(BulkIndexEntry).validate_python(
            {"kind": "media", "record": {"id": "m1", "tenant_id": "t", "created_at": "2026-01-01T00:00:00Z"}}
        )
        assert isinstance(entry, MediaEntry)

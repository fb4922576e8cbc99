"""Domain layer - pure data models with no infrastructure dependencies."""

from cms_search.domain.model import ContentRecord, DocumentKind, MediaRecord, SearchDocument, make_doc_id
from cms_search.domain.reports import (
    HealthReport,
    IndexStats,
    PopularContent,
    QueryCount,
    SearchAnalytics,
    TokenFrequency,
    TrendPoint,
)
from cms_search.domain.search import (
    AuthorFilter,
    BulkIndexEntry,
    BulkIndexSummary,
    CategoriesFilter,
    ContentEntry,
    DateRangeFilter,
    MediaEntry,
    MediaTypeFilter,
    OperationResult,
    Pagination,
    PaginationInfo,
    SearchFilter,
    SearchHit,
    SearchOptions,
    SearchPage,
    SortSpec,
    StatusFilter,
    TagsFilter,
)


__all__ = [
    "AuthorFilter",
    "BulkIndexEntry",
    "BulkIndexSummary",
    "CategoriesFilter",
    "ContentEntry",
    "ContentRecord",
    "DateRangeFilter",
    "DocumentKind",
    "HealthReport",
    "IndexStats",
    "MediaEntry",
    "MediaRecord",
    "MediaTypeFilter",
    "OperationResult",
    "Pagination",
    "PaginationInfo",
    "PopularContent",
    "QueryCount",
    "SearchAnalytics",
    "SearchDocument",
    "SearchFilter",
    "SearchHit",
    "SearchOptions",
    "SearchPage",
    "SortSpec",
    "StatusFilter",
    "TagsFilter",
    "TokenFrequency",
    "TrendPoint",
    "make_doc_id",
]

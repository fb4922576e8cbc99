"""Domain models for search requests and responses.

Following Cosmic Python principles:
- Value Objects are immutable (frozen=True)
- Domain logic lives in domain layer
- No infrastructure dependencies

Filters are a closed, tagged set validated when ``SearchOptions`` is built,
so the query engine never sees a loosely typed filter object.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cms_search.domain.model import ContentRecord, MediaRecord, SearchDocument


T = TypeVar("T")


class _Filter(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def matches(self, document: SearchDocument) -> bool:  # pragma: no cover - overridden
        raise NotImplementedError


class StatusFilter(_Filter):
    kind: Literal["status"] = "status"
    status: str

    def matches(self, document: SearchDocument) -> bool:
        return document.status == self.status


class MediaTypeFilter(_Filter):
    kind: Literal["media_type"] = "media_type"
    media_type: str

    def matches(self, document: SearchDocument) -> bool:
        return document.media_type == self.media_type


class AuthorFilter(_Filter):
    """Matches the content author or the media uploader."""

    kind: Literal["author"] = "author"
    author_id: str

    def matches(self, document: SearchDocument) -> bool:
        return document.author_id == self.author_id


class TagsFilter(_Filter):
    """Passes documents sharing at least one tag with the filter."""

    kind: Literal["tags"] = "tags"
    tags: list[str] = Field(min_length=1)

    def matches(self, document: SearchDocument) -> bool:
        return not set(self.tags).isdisjoint(document.tags)


class CategoriesFilter(_Filter):
    """Passes documents sharing at least one category with the filter."""

    kind: Literal["categories"] = "categories"
    categories: list[str] = Field(min_length=1)

    def matches(self, document: SearchDocument) -> bool:
        return not set(self.categories).isdisjoint(document.categories)


class DateRangeFilter(_Filter):
    """Inclusive creation-date window."""

    kind: Literal["date_range"] = "date_range"
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _normalize(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _check_order(self) -> DateRangeFilter:
        if self.start > self.end:
            raise ValueError("date_range start must not be after end")
        return self

    def matches(self, document: SearchDocument) -> bool:
        return self.start <= document.created_at <= self.end


SearchFilter = Annotated[
    StatusFilter | MediaTypeFilter | AuthorFilter | TagsFilter | CategoriesFilter | DateRangeFilter,
    Field(discriminator="kind"),
]

SortField = Literal["score", "created_at", "updated_at", "title", "filename", "status", "boost"]


class SortSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: SortField
    direction: Literal["asc", "desc"] = "desc"


class Pagination(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=1000)


class SearchOptions(BaseModel):
    """Validated search request options.

    ``fuzzy`` expands every query token against the whole vocabulary with an
    edit-distance scan, so its cost grows linearly with the number of distinct
    indexed tokens. Keep it off for high-volume typeahead traffic.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tenant_id: str | None = None
    kind: Literal["content", "media", "all"] = "all"
    filters: list[SearchFilter] = Field(default_factory=list)
    sort: SortSpec | None = None
    pagination: Pagination | None = None
    highlight: bool = False
    fuzzy: bool = False
    suggest: bool = False

    def passes(self, document: SearchDocument) -> bool:
        """Return True when the document satisfies tenant, kind and every filter."""
        if self.tenant_id and document.tenant_id != self.tenant_id:
            return False
        if self.kind != "all" and document.kind != self.kind:
            return False
        return all(search_filter.matches(document) for search_filter in self.filters)


class SearchHit(BaseModel):
    model_config = ConfigDict(frozen=True)

    document: SearchDocument
    score: float
    highlights: dict[str, list[str]] | None = None


class PaginationInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


class SearchPage(BaseModel):
    """One page of ranked hits plus timing information."""

    model_config = ConfigDict(frozen=True)

    results: list[SearchHit] = Field(default_factory=list)
    total: int = 0
    pagination: PaginationInfo | None = None
    search_time_ms: float = 0.0
    suggestions: list[str] | None = None


class OperationResult(BaseModel, Generic[T]):
    """Explicit success/failure envelope returned by public operations."""

    success: bool = Field(description="Whether the operation completed")
    data: T | None = Field(default=None, description="Payload on success")
    error: str | None = Field(default=None, description="Generic failure message when success is False")

    @classmethod
    def ok(cls, data: T | None = None) -> OperationResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> OperationResult[T]:
        return cls(success=False, error=error)


class ContentEntry(BaseModel):
    kind: Literal["content"] = "content"
    record: ContentRecord


class MediaEntry(BaseModel):
    kind: Literal["media"] = "media"
    record: MediaRecord


BulkIndexEntry = Annotated[ContentEntry | MediaEntry, Field(discriminator="kind")]


class BulkIndexSummary(BaseModel):
    indexed: int = 0
    failed: int = 0

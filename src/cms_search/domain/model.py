"""Domain model - records handed in by host services and the indexed document.

Records are what the CRUD services own; ``SearchDocument`` is the
forward-index value derived from them. Everything here is immutable so a
document read by a query can never change underneath it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


DocumentKind = Literal["content", "media"]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1)
    tenant_id: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value) if value is not None else None


class ContentRecord(_Record):
    """A content entry (article, page, post) as stored by the content service."""

    title: str | None = None
    body: str | None = None
    excerpt: str | None = None
    categories: list[str] = Field(default_factory=list)
    status: str | None = None
    author_id: str | None = None


class MediaRecord(_Record):
    """An uploaded media asset as stored by the media service."""

    filename: str | None = None
    original_name: str | None = None
    alt: str | None = None
    caption: str | None = None
    description: str | None = None
    media_type: str | None = None
    uploader_id: str | None = None


class SearchDocument(BaseModel):
    """Forward-index value: one searchable representation of a record.

    ``searchable_text`` and ``boost`` are derived and recomputed on every
    indexing call; ``doc_id`` is the composite ``{kind}:{id}`` key.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: DocumentKind
    tenant_id: str
    title: str | None = None
    body: str | None = None
    excerpt: str | None = None
    filename: str | None = None
    original_name: str | None = None
    alt: str | None = None
    caption: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    status: str | None = None
    media_type: str | None = None
    author_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    searchable_text: str = ""
    boost: float = 1.0

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value) if value is not None else None

    @property
    def doc_id(self) -> str:
        return make_doc_id(self.kind, self.id)

    @property
    def display_title(self) -> str:
        return self.title or self.original_name or self.filename or self.id


def make_doc_id(kind: DocumentKind, entity_id: str) -> str:
    """Build the composite index key for an entity."""
    return f"{kind}:{entity_id}"

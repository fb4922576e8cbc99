"""Document indexer: derives searchable documents and keeps both indexes in sync.

Every mutation (retract old postings, insert new postings, replace the
forward record) runs under one re-entrant lock, so the remove+add pair for a
document id is never interleaved with another writer. The lock is never held
across an ``await``; cache I/O happens after the critical section.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime, timezone
import logging
import threading

from pydantic import ValidationError

from cms_search.domain.model import ContentRecord, MediaRecord, SearchDocument, make_doc_id
from cms_search.exceptions import IndexingFailure
from cms_search.search.index import ForwardIndex, InvertedIndex


logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("title", "body", "excerpt", "filename", "original_name", "alt", "caption", "description")

CONTENT_BOOST = 1.2
PUBLISHED_BOOST = 1.5
RECENT_BOOST = 1.3  # created less than 7 days ago
FRESH_BOOST = 1.1  # created less than 30 days ago


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_searchable_text(document: SearchDocument) -> str:
    """Concatenate every textual field, tags and categories with single spaces."""
    parts = [getattr(document, name) for name in _TEXT_FIELDS]
    parts.extend(document.tags)
    parts.extend(document.categories)
    return " ".join(part for part in parts if part)


def calculate_boost(document: SearchDocument, now: datetime | None = None) -> float:
    """Return the multiplicative ranking weight for a document.

    Content outranks media, published outranks anything else, and recent
    documents get a recency tier (the most recent tier wins).
    """
    boost = 1.0
    if document.kind == "content":
        boost *= CONTENT_BOOST
    if document.status == "published":
        boost *= PUBLISHED_BOOST

    age_days = ((now or _utcnow()) - document.created_at).total_seconds() / 86400
    if age_days < 7:
        boost *= RECENT_BOOST
    elif age_days < 30:
        boost *= FRESH_BOOST
    return boost


class DocumentIndexer:
    """Owns the forward and inverted indexes and their write lock."""

    def __init__(
        self,
        forward: ForwardIndex | None = None,
        inverted: InvertedIndex | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.forward = forward or ForwardIndex()
        self.inverted = inverted or InvertedIndex()
        self._clock = clock
        self._lock = threading.RLock()
        self._generation = 0

    @property
    def generation(self) -> int:
        """Counter bumped on every mutation; part of query cache keys."""
        return self._generation

    def build_content_document(self, record: ContentRecord) -> SearchDocument:
        return self._derive(
            {
                "id": record.id,
                "kind": "content",
                "tenant_id": record.tenant_id,
                "title": record.title,
                "body": record.body,
                "excerpt": record.excerpt,
                "tags": list(record.tags),
                "categories": list(record.categories),
                "status": record.status,
                "author_id": record.author_id,
                "created_at": record.created_at,
                "updated_at": record.updated_at,
            }
        )

    def build_media_document(self, record: MediaRecord) -> SearchDocument:
        return self._derive(
            {
                "id": record.id,
                "kind": "media",
                "tenant_id": record.tenant_id,
                "filename": record.filename,
                "original_name": record.original_name,
                "alt": record.alt,
                "caption": record.caption,
                "description": record.description,
                "tags": list(record.tags),
                "media_type": record.media_type,
                "author_id": record.uploader_id,
                "created_at": record.created_at,
                "updated_at": record.updated_at,
            }
        )

    def _derive(self, fields: dict) -> SearchDocument:
        doc_id = make_doc_id(fields["kind"], fields["id"])
        try:
            draft = SearchDocument(**fields)
        except ValidationError as exc:
            raise IndexingFailure(doc_id, "invalid_document", detail=str(exc)) from exc
        return draft.model_copy(
            update={
                "searchable_text": create_searchable_text(draft),
                "boost": calculate_boost(draft, self._clock()),
            }
        )

    def upsert(self, document: SearchDocument) -> SearchDocument | None:
        """Index ``document``, replacing any previous version. Returns the replaced record."""
        doc_id = document.doc_id
        with self._lock:
            previous = self.forward.get(doc_id)
            if previous is not None:
                self.inverted.remove_postings(doc_id, previous.searchable_text)
            self.forward.put(document)
            self.inverted.add_postings(doc_id, document.searchable_text)
            self._generation += 1
        logger.debug("Indexed %s (replaced=%s)", doc_id, previous is not None)
        return previous

    def remove(self, doc_id: str) -> SearchDocument | None:
        """Remove a document and its postings. Absent ids are a no-op."""
        with self._lock:
            previous = self.forward.pop(doc_id)
            if previous is None:
                return None
            self.inverted.remove_postings(doc_id, previous.searchable_text)
            self._generation += 1
        logger.debug("Removed %s from index", doc_id)
        return previous

    def remove_tenant(self, tenant_id: str) -> list[str]:
        """Remove every document of a tenant; returns the removed composite ids."""
        with self._lock:
            removed = [doc.doc_id for doc in self.forward.documents(tenant_id)]
            for doc_id in removed:
                self.remove(doc_id)
        return removed

    def load(self, documents: Iterable[SearchDocument]) -> int:
        """Replace the whole index with ``documents`` and rebuild postings from them."""
        with self._lock:
            self.forward.replace_all(documents)
            self.inverted.clear()
            for document in self.forward.documents():
                self.inverted.add_postings(document.doc_id, document.searchable_text)
            self._generation += 1
            return len(self.forward)

    def compact(self) -> int:
        with self._lock:
            return self.inverted.compact()

    def documents(self) -> list[SearchDocument]:
        return self.forward.documents()

"""Exception hierarchy for the search engine.

Public ``SearchEngine`` operations translate these into failed
``OperationResult`` values; they only escape from the lower layers.
"""

from __future__ import annotations


class SearchEngineError(Exception):
    """Base class for expected search engine failures."""

    def __init__(self, reason: str, *, detail: str | None = None) -> None:
        self.reason = reason
        self.detail = detail
        message = reason if not detail else f"{reason}: {detail}"
        super().__init__(message)


class IndexingFailure(SearchEngineError):
    """A single document could not be tokenized or stored."""

    def __init__(self, doc_id: str, reason: str, *, detail: str | None = None) -> None:
        self.doc_id = doc_id
        super().__init__(reason, detail=detail)


class QueryFailure(SearchEngineError):
    """Candidate retrieval or scoring raised while answering a query."""


class CacheFailure(SearchEngineError):
    """The external cache rejected, timed out or corrupted an operation."""

    def __init__(self, operation: str, key: str, *, detail: str | None = None) -> None:
        self.operation = operation
        self.key = key
        super().__init__(f"cache_{operation}_failed", detail=detail)

"""In-memory inverted and forward indexes.

The forward index (composite id -> ``SearchDocument``) is the source of
truth; the inverted index (token -> set of composite ids) is always
derivable from it. Neither class locks: ``DocumentIndexer`` owns the write
critical section and readers copy posting sets before iterating.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
import logging

from cms_search.domain.model import SearchDocument
from cms_search.search.tokenizer import tokenize


logger = logging.getLogger(__name__)


class InvertedIndex:
    """Token -> posting set map. A token never maps to an empty set."""

    def __init__(self) -> None:
        self._postings: dict[str, set[str]] = {}

    def __len__(self) -> int:
        return len(self._postings)

    def __contains__(self, token: object) -> bool:
        return token in self._postings

    def add_postings(self, doc_id: str, text: str) -> int:
        """Insert ``doc_id`` under every token of ``text``; returns distinct tokens added."""
        tokens = set(tokenize(text))
        for token in tokens:
            self._postings.setdefault(token, set()).add(doc_id)
        return len(tokens)

    def remove_postings(self, doc_id: str, text: str) -> int:
        """Retract ``doc_id`` from the tokens of ``text`` (the text used at insertion).

        Returns the number of token entries deleted because they became empty.
        """
        dropped = 0
        for token in set(tokenize(text)):
            doc_ids = self._postings.get(token)
            if doc_ids is None:
                continue
            doc_ids.discard(doc_id)
            if not doc_ids:
                del self._postings[token]
                dropped += 1
        return dropped

    def postings_of(self, token: str) -> set[str]:
        """Return a copy of the posting set for ``token`` (empty when unknown)."""
        return set(self._postings.get(token, ()))

    def document_frequency(self, token: str) -> int:
        return len(self._postings.get(token, ()))

    def vocabulary(self) -> list[str]:
        return list(self._postings)

    def items(self) -> Iterator[tuple[str, int]]:
        """Yield (token, document frequency) pairs over a stable copy."""
        for token, doc_ids in list(self._postings.items()):
            yield token, len(doc_ids)

    def compact(self) -> int:
        """Drop any empty posting sets; returns how many were removed."""
        empty = [token for token, doc_ids in self._postings.items() if not doc_ids]
        for token in empty:
            del self._postings[token]
        if empty:
            logger.debug("Compacted %d empty posting sets", len(empty))
        return len(empty)

    def clear(self) -> None:
        self._postings.clear()


class ForwardIndex:
    """Composite id -> full document record."""

    def __init__(self) -> None:
        self._documents: dict[str, SearchDocument] = {}

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    def get(self, doc_id: str) -> SearchDocument | None:
        return self._documents.get(doc_id)

    def put(self, document: SearchDocument) -> SearchDocument | None:
        """Store ``document`` and return the record it replaced, if any."""
        previous = self._documents.get(document.doc_id)
        self._documents[document.doc_id] = document
        return previous

    def pop(self, doc_id: str) -> SearchDocument | None:
        return self._documents.pop(doc_id, None)

    def documents(self, tenant_id: str | None = None) -> list[SearchDocument]:
        """Return a stable list of documents, optionally scoped to one tenant."""
        docs = list(self._documents.values())
        if tenant_id is None:
            return docs
        return [doc for doc in docs if doc.tenant_id == tenant_id]

    def replace_all(self, documents: Iterable[SearchDocument]) -> None:
        self._documents = {doc.doc_id: doc for doc in documents}

    def clear(self) -> None:
        self._documents.clear()

"""Query engine: candidate retrieval, filtering, scoring, sorting, pagination.

The engine is synchronous and read-only; the ``SearchEngine`` facade wraps
it with caching and analytics.
"""

from __future__ import annotations

import logging
import math
import time

from cms_search.config import Settings
from cms_search.domain.search import PaginationInfo, SearchHit, SearchOptions, SearchPage, SortSpec
from cms_search.exceptions import QueryFailure
from cms_search.search.fuzzy import expand_terms
from cms_search.search.highlight import generate_highlights
from cms_search.search.indexer import DocumentIndexer
from cms_search.search.scoring import ScoringContext, score_document
from cms_search.search.tokenizer import tokenize


logger = logging.getLogger(__name__)


def _ranked(hits: list[SearchHit]) -> list[SearchHit]:
    # Composite ids are unique, so this order is total and never depends on set iteration
    return sorted(hits, key=lambda hit: (-hit.score, hit.document.doc_id))


def sort_hits(hits: list[SearchHit], sort: SortSpec | None) -> list[SearchHit]:
    """Order hits by score, or by a document field when ``sort`` is given.

    Custom sorts break ties by score (descending) then composite id, and put
    documents without a value for the field last in either direction.
    """
    ranked = _ranked(hits)
    if sort is None or sort.field == "score":
        if sort is not None and sort.direction == "asc":
            return sorted(ranked, key=lambda hit: hit.score)
        return ranked

    present = [hit for hit in ranked if getattr(hit.document, sort.field) is not None]
    missing = [hit for hit in ranked if getattr(hit.document, sort.field) is None]
    present.sort(key=lambda hit: getattr(hit.document, sort.field), reverse=sort.direction == "desc")
    return present + missing


def paginate(hits: list[SearchHit], options: SearchOptions) -> tuple[list[SearchHit], PaginationInfo | None]:
    if options.pagination is None:
        return hits, None
    page, limit = options.pagination.page, options.pagination.limit
    offset = (page - 1) * limit
    total_pages = math.ceil(len(hits) / limit)
    info = PaginationInfo(
        page=page,
        limit=limit,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )
    return hits[offset : offset + limit], info


class QueryEngine:
    """Answers queries against a ``DocumentIndexer``'s indexes."""

    def __init__(self, indexer: DocumentIndexer, settings: Settings) -> None:
        self.indexer = indexer
        self.settings = settings

    def find_candidates(self, tokens: list[str], fuzzy: bool = False) -> set[str]:
        """Union of the posting sets of every token (and its fuzzy neighbours)."""
        inverted = self.indexer.inverted
        terms = set(tokens)
        if fuzzy:
            terms |= expand_terms(tokens, inverted.vocabulary(), self.settings.fuzzy_max_distance)

        candidates: set[str] = set()
        for term in terms:
            candidates |= inverted.postings_of(term)
        return candidates

    def execute(self, query: str, options: SearchOptions) -> SearchPage:
        """Run a query and return one page of ranked hits.

        Raises:
            QueryFailure: retrieval or scoring raised unexpectedly.
        """
        started = time.perf_counter()
        tokens = tokenize(query)
        if not tokens:
            return SearchPage(search_time_ms=(time.perf_counter() - started) * 1000)

        try:
            hits = self._score_candidates(query, tokens, options)
        except Exception as exc:
            raise QueryFailure("search_failed", detail=f"{exc.__class__.__name__}: {exc}") from exc

        ordered = sort_hits(hits, options.sort)
        page_hits, pagination = paginate(ordered, options)

        if options.highlight:
            pre_tag, post_tag = self.settings.highlight_tags()
            page_hits = [
                hit.model_copy(
                    update={
                        "highlights": generate_highlights(
                            hit.document,
                            tokens,
                            window=self.settings.highlight_window,
                            max_snippets=self.settings.max_highlights_per_field,
                            pre_tag=pre_tag,
                            post_tag=post_tag,
                        )
                    }
                )
                for hit in page_hits
            ]

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug("Query %r matched %d documents in %.2fms", query, len(ordered), elapsed_ms)
        return SearchPage(
            results=page_hits,
            total=len(ordered),
            pagination=pagination,
            search_time_ms=elapsed_ms,
        )

    def _score_candidates(self, query: str, tokens: list[str], options: SearchOptions) -> list[SearchHit]:
        forward = self.indexer.forward
        inverted = self.indexer.inverted
        context = ScoringContext(
            total_docs=len(forward),
            doc_freqs={token: inverted.document_frequency(token) for token in set(tokens)},
            title_multiplier=self.settings.title_match_multiplier,
            tag_multiplier=self.settings.tag_match_multiplier,
        )

        hits: list[SearchHit] = []
        for doc_id in self.find_candidates(tokens, options.fuzzy):
            document = forward.get(doc_id)
            if document is None or not options.passes(document):
                continue
            hits.append(SearchHit(document=document, score=score_document(document, tokens, query, context)))
        return hits

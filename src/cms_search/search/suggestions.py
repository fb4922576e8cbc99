"""Autocomplete suggestions ranked by match quality and popularity."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from cms_search.domain.model import SearchDocument
from cms_search.search.tokenizer import tokenize


EXACT_MATCH_SCORE = 100
PREFIX_SCORE = 50
CONTAINS_SCORE = 25
SHORT_TEXT_CEILING = 50
POPULARITY_WEIGHT = 5


def suggestion_score(candidate: str, query: str, popularity: int = 0) -> int:
    """Score a suggestion candidate against the typed query.

    Exact matches dominate, prefixes beat infix matches, shorter candidates
    are preferred and each past search of the candidate adds a bonus.
    """
    candidate_lower = candidate.lower()
    query_lower = query.lower()

    score = 0
    if candidate_lower == query_lower:
        score += EXACT_MATCH_SCORE
    if candidate_lower.startswith(query_lower):
        score += PREFIX_SCORE
    if query_lower in candidate_lower:
        score += CONTAINS_SCORE
    score += max(0, SHORT_TEXT_CEILING - len(candidate))
    score += popularity * POPULARITY_WEIGHT
    return score


def _document_candidates(document: SearchDocument) -> list[str]:
    fields = [document.title, document.filename, document.original_name, *document.tags, *document.categories]
    return [value for value in fields if value]


def collect_candidates(
    query: str,
    history: Mapping[str, int],
    documents: Iterable[SearchDocument],
) -> list[str]:
    """Gather candidate strings from query history and document fields.

    Historical queries qualify when searched more than once and containing
    the query; document fields qualify on substring or shared tokens.
    Duplicates are collapsed case-insensitively, keeping the first spelling.
    """
    query_lower = query.lower()
    query_tokens = set(tokenize(query))
    seen: dict[str, str] = {}

    for past_query, count in history.items():
        if count > 1 and query_lower in past_query:
            seen.setdefault(past_query, past_query)

    for document in documents:
        for candidate in _document_candidates(document):
            candidate_lower = candidate.lower()
            if candidate_lower in seen:
                continue
            if query_lower in candidate_lower or not query_tokens.isdisjoint(tokenize(candidate)):
                seen[candidate_lower] = candidate

    return list(seen.values())


def rank_suggestions(
    query: str,
    history: Mapping[str, int],
    documents: Iterable[SearchDocument],
    limit: int = 5,
) -> list[str]:
    """Return the top ``limit`` suggestions, best first (ties alphabetical)."""
    if not query.strip():
        return []
    candidates = collect_candidates(query, history, documents)
    scored = [
        (suggestion_score(candidate, query, history.get(candidate.lower(), 0)), candidate) for candidate in candidates
    ]
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [candidate for _, candidate in scored[:limit]]

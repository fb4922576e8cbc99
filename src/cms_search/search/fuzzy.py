"""Typo-tolerant term matching.

A query token matches an indexed token when at most ``max_distance``
single-character insertions, deletions or substitutions turn one into the
other. The vocabulary is scanned linearly; tokens whose length differs by
more than the allowed distance are skipped without computing anything.
"""

from __future__ import annotations

from collections.abc import Iterable


DEFAULT_MAX_DISTANCE = 2


def levenshtein_distance(a: str, b: str, max_distance: int | None = None) -> int:
    """Edit distance between ``a`` and ``b``.

    With ``max_distance`` set, the result is capped at ``max_distance + 1``
    as soon as every cell of a row exceeds the bound.

        >>> levenshtein_distance("report", "reoprt")
        2
    """
    shorter, longer = sorted((a, b), key=len)
    if not shorter:
        return len(longer)

    limit = max_distance + 1 if max_distance is not None else None
    if limit is not None and len(longer) - len(shorter) >= limit:
        return limit

    previous = list(range(len(shorter) + 1))
    for row, char in enumerate(longer, start=1):
        current = [row]
        for col, other in enumerate(shorter, start=1):
            current.append(
                min(
                    previous[col] + 1,
                    current[col - 1] + 1,
                    previous[col - 1] + (char != other),
                )
            )
        if limit is not None and min(current) >= limit:
            return limit
        previous = current
    return previous[-1]


def find_fuzzy_matches(
    query_term: str,
    vocabulary: Iterable[str],
    max_distance: int = DEFAULT_MAX_DISTANCE,
) -> list[tuple[str, int]]:
    """Vocabulary terms within ``max_distance`` edits of ``query_term``.

    Results are ``(term, distance)`` pairs ordered by distance, then term,
    so they never depend on vocabulary iteration order.
    """
    if not query_term:
        return []

    matches = []
    for term in vocabulary:
        if abs(len(term) - len(query_term)) > max_distance:
            continue
        distance = levenshtein_distance(query_term, term, max_distance)
        if distance <= max_distance:
            matches.append((term, distance))
    return sorted(matches, key=lambda pair: (pair[1], pair[0]))


def expand_terms(
    tokens: Iterable[str],
    vocabulary: Iterable[str],
    max_distance: int = DEFAULT_MAX_DISTANCE,
) -> set[str]:
    """Every vocabulary term that is a fuzzy match for at least one token."""
    terms = list(vocabulary)
    return {term for token in set(tokens) for term, _ in find_fuzzy_matches(token, terms, max_distance)}

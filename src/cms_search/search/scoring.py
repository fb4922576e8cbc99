"""TF-IDF style relevance scoring.

The functions here stay independent of the index containers so they can be
unit tested with plain numbers.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
import math

from cms_search.domain.model import SearchDocument
from cms_search.search.tokenizer import tokenize


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Return ``ln(total_docs / doc_freq)``; an unknown term counts as one document."""
    if total_docs <= 0:
        return 0.0
    return math.log(total_docs / max(doc_freq, 1))


def term_frequency(term_count: int, total_terms: int) -> float:
    if total_terms <= 0:
        return 0.0
    return term_count / total_terms


@dataclass(frozen=True)
class ScoringContext:
    """Corpus-level inputs shared by every candidate of one query."""

    total_docs: int
    doc_freqs: dict[str, int]
    title_multiplier: float = 2.0
    tag_multiplier: float = 1.5


def score_document(
    document: SearchDocument,
    query_tokens: Sequence[str],
    raw_query: str,
    context: ScoringContext,
) -> float:
    """Score one document against a tokenized query.

    Sums ``tf * idf`` over the query tokens, doubles the sum when the raw
    query appears in the title, multiplies by 1.5 when a tag contains it,
    and finally applies the document's stored boost.
    """
    doc_tokens = tokenize(document.searchable_text)
    counts = Counter(doc_tokens)

    score = 0.0
    for token in query_tokens:
        occurrences = counts.get(token, 0)
        if not occurrences:
            continue
        tf = term_frequency(occurrences, len(doc_tokens))
        score += tf * calculate_idf(context.doc_freqs.get(token, 0), context.total_docs)

    needle = raw_query.lower()
    if document.title and needle in document.title.lower():
        score *= context.title_multiplier
    if any(needle in tag.lower() for tag in document.tags):
        score *= context.tag_multiplier

    return score * document.boost

"""Text normalization shared by indexing, querying and suggestions."""

from __future__ import annotations

import re


MIN_TOKEN_LENGTH = 3

STOPWORDS = frozenset(
    {
        "the",
        "a",
        "an",
        "and",
        "or",
        "but",
        "in",
        "on",
        "at",
        "to",
        "for",
        "of",
        "with",
        "by",
        "is",
        "are",
        "was",
        "were",
        "be",
        "been",
        "have",
        "has",
        "had",
        "do",
        "does",
        "did",
        "will",
        "would",
        "could",
        "should",
        "this",
        "that",
        "these",
        "those",
        "i",
        "you",
        "he",
        "she",
        "it",
        "we",
        "they",
    }
)

_NON_WORD = re.compile(r"[^\w\s]")


def tokenize(text: str | None) -> list[str]:
    """Split text into lowercase index terms.

    Punctuation becomes whitespace, tokens shorter than three characters and
    stopwords are dropped. Order and duplicates are preserved so callers can
    count term frequencies.

    Examples:
        >>> tokenize("The Quarterly-Report, 2024!")
        ['quarterly', 'report', '2024']
    """
    if not text:
        return []
    normalized = _NON_WORD.sub(" ", text.lower())
    return [token for token in normalized.split() if len(token) >= MIN_TOKEN_LENGTH and token not in STOPWORDS]

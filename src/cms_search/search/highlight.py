"""Word-window highlighting for search hits.

For every word whose lowercase form contains a query token, a window of
``window`` words on each side is extracted and each matching word inside
the window is wrapped in the highlight markers.
"""

from __future__ import annotations

from collections.abc import Sequence

from cms_search.domain.model import SearchDocument


HIGHLIGHT_FIELDS = ("title", "body", "description")


def _is_match(word: str, tokens: Sequence[str]) -> bool:
    lowered = word.lower()
    return any(token in lowered for token in tokens)


def highlight_text(
    text: str,
    tokens: Sequence[str],
    *,
    window: int = 5,
    max_snippets: int = 3,
    pre_tag: str = "<mark>",
    post_tag: str = "</mark>",
) -> list[str]:
    """Return up to ``max_snippets`` highlighted windows from ``text``."""
    if not text or not tokens:
        return []

    words = text.split()
    snippets: list[str] = []
    for index, word in enumerate(words):
        if not _is_match(word, tokens):
            continue
        context = words[max(0, index - window) : index + window + 1]
        snippets.append(" ".join(f"{pre_tag}{w}{post_tag}" if _is_match(w, tokens) else w for w in context))
        if len(snippets) >= max_snippets:
            break
    return snippets


def generate_highlights(
    document: SearchDocument,
    tokens: Sequence[str],
    *,
    window: int = 5,
    max_snippets: int = 3,
    pre_tag: str = "<mark>",
    post_tag: str = "</mark>",
) -> dict[str, list[str]]:
    """Highlight the title, body and description fields of a document."""
    highlights: dict[str, list[str]] = {}
    for field_name in HIGHLIGHT_FIELDS:
        snippets = highlight_text(
            getattr(document, field_name) or "",
            tokens,
            window=window,
            max_snippets=max_snippets,
            pre_tag=pre_tag,
            post_tag=post_tag,
        )
        if snippets:
            highlights[field_name] = snippets
    return highlights

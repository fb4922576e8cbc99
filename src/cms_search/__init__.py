"""Embedded multi-tenant full-text search for CMS content and media."""

from cms_search.adapters.cache import CacheBackend, InMemoryCache
from cms_search.config import Settings
from cms_search.engine import SearchEngine
from cms_search.exceptions import CacheFailure, IndexingFailure, QueryFailure, SearchEngineError


__version__ = "0.1.0"

__all__ = [
    "CacheBackend",
    "CacheFailure",
    "InMemoryCache",
    "IndexingFailure",
    "QueryFailure",
    "SearchEngine",
    "SearchEngineError",
    "Settings",
]

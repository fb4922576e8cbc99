"""Service layer for cache integration."""

from .cache_bridge import CacheBridge, query_cache_key, suggestion_cache_key


__all__ = [
    "CacheBridge",
    "query_cache_key",
    "suggestion_cache_key",
]

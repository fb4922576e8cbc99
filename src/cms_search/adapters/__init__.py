"""Adapters layer - cache backend implementations."""

from .cache import CacheBackend, InMemoryCache


__all__ = [
    "CacheBackend",
    "InMemoryCache",
]

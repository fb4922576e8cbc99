"""Key-value cache backends consumed by the cache bridge.

Values are opaque ``bytes``; serialization belongs to the bridge so every
backend (in-process, Redis, memcached) stores the same payloads.
"""

from __future__ import annotations

from collections.abc import Callable
import fnmatch
import heapq
import logging
import threading
import time
from typing import Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class CacheBackend(Protocol):
    """Minimal async cache surface the search engine depends on."""

    async def get(self, key: str) -> bytes | None:  # pragma: no cover - Protocol only
        """Return the stored value, or None when missing or expired."""

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:  # pragma: no cover - Protocol only
        """Store a value that expires after ``ttl_seconds``."""

    async def delete(self, key: str) -> None:  # pragma: no cover - Protocol only
        """Remove a single key if present."""

    async def invalidate_pattern(self, pattern: str) -> int:  # pragma: no cover - Protocol only
        """Remove every key matching a glob pattern; returns the number removed."""

    async def health_check(self) -> bool:  # pragma: no cover - Protocol only
        """Return True when the backend is reachable."""


class InMemoryCache:
    """Process-local TTL cache implementing ``CacheBackend``.

    Expired entries are dropped on access, and every write first evicts
    whatever has expired, so keys that are never read again do not pile up.
    Glob patterns follow ``fnmatch`` rules, which match Redis ``KEYS``
    semantics for ``*``, ``?`` and ``[...]``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[bytes, float]] = {}
        self._expiry_heap: list[tuple[float, str]] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> bytes | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            expires_at = now + ttl_seconds
            self._entries[key] = (value, expires_at)
            heapq.heappush(self._expiry_heap, (expires_at, key))

    def _evict_expired(self, now: float) -> None:
        # Heap items for overwritten or deleted keys are skipped
        while self._expiry_heap and self._expiry_heap[0][0] <= now:
            expires_at, key = heapq.heappop(self._expiry_heap)
            entry = self._entries.get(key)
            if entry is not None and entry[1] == expires_at:
                del self._entries[key]

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def invalidate_pattern(self, pattern: str) -> int:
        now = self._clock()
        with self._lock:
            doomed = [
                key
                for key, (_, expires_at) in self._entries.items()
                if expires_at <= now or fnmatch.fnmatchcase(key, pattern)
            ]
            removed = 0
            for key in doomed:
                if fnmatch.fnmatchcase(key, pattern):
                    removed += 1
                del self._entries[key]
        if removed:
            logger.debug("Invalidated %d cache entries matching %s", removed, pattern)
        return removed

    async def health_check(self) -> bool:
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._expiry_heap.clear()

"""
In-process TTL cache.

Used for data that changes rarely and is expensive to rebuild on every
report, chiefly the tax class/rate schema.  Invalidation is time-based
only: entries expire ``ttl_seconds`` after they were written, there is no
write-through.

Examples:
    >>> cache = TTLCache(default_ttl_seconds=3600)
    >>> cache.set("tax_schema", {"Standard": []})
    >>> cache.get("tax_schema")
    {'Standard': []}

Guardrails:
    ❌ DON'T: cache without a TTL (tax rates do change)
    ✅ DO: share one instance per process and let entries expire
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any


class TTLCache:
    """Bounded in-memory cache with TTL support and LRU eviction.

    Thread-safe: the timers and API workers may read the same entry.
    """

    def __init__(
        self,
        *,
        max_size: int = 256,
        default_ttl_seconds: float | None = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store: dict[str, tuple[Any, float | None]] = {}
        self._access_order: list[str] = []
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Retrieve a value by key, ``None`` when missing or expired."""
        with self._lock:
            if key not in self._store:
                return None
            value, expires_at = self._store[key]
            if expires_at is not None and self._clock() >= expires_at:
                self._delete(key)
                return None
            self._touch(key)
            return value

    def set(self, key: str, value: Any, *, ttl_seconds: float | None = None) -> None:
        """Store a value with optional per-key TTL."""
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = (self._clock() + ttl) if ttl else None
        with self._lock:
            if key not in self._store and len(self._store) >= self._max_size and self._access_order:
                lru_key = self._access_order.pop(0)
                self._store.pop(lru_key, None)
            self._store[key] = (value, expires_at)
            self._touch(key)

    def get_or_load(self, key: str, loader: Callable[[], Any], *, ttl_seconds: float | None = None) -> Any:
        """Return the cached value or call *loader* and cache its result.

        Concurrent misses may both call *loader*; the last write wins.
        """
        value = self.get(key)
        if value is None:
            value = loader()
            self.set(key, value, ttl_seconds=ttl_seconds)
        return value

    def delete(self, key: str) -> None:
        """Remove a key from the cache."""
        with self._lock:
            self._delete(key)

    def clear(self) -> None:
        """Remove all keys."""
        with self._lock:
            self._store.clear()
            self._access_order.clear()

    def size(self) -> int:
        """Return current number of cached keys."""
        return len(self._store)

    def _touch(self, key: str) -> None:
        if key in self._access_order:
            self._access_order.remove(key)
        self._access_order.append(key)

    def _delete(self, key: str) -> None:
        self._store.pop(key, None)
        if key in self._access_order:
            self._access_order.remove(key)


__all__ = ["TTLCache"]

"""Bounded LRU cache with TTL eviction for locus lookups."""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from typing import Generic, TypeVar

V = TypeVar("V")

LOOKUP_CACHE_MAX_SIZE = 500


class BoundedTTLCache(Generic[V]):
    """Async-safe cache keyed by lower-cased name.

    Entries expire ``ttl`` seconds after being stored; the least recently
    used entry is evicted once ``maxsize`` is reached. ``None`` is a valid
    cached value (a remembered miss), so ``get`` reports presence separately.
    """

    def __init__(self, maxsize: int = LOOKUP_CACHE_MAX_SIZE, ttl: float = 3600.0):
        self._entries: OrderedDict[str, tuple[V, float]] = OrderedDict()
        self._maxsize = maxsize
        self._ttl = ttl
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> tuple[bool, V | None]:
        """Return ``(found, value)``."""
        key = key.lower()
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None

            value, stored_at = entry
            if time.monotonic() - stored_at > self._ttl:
                del self._entries[key]
                return False, None

            self._entries.move_to_end(key)
            return True, value

    async def set(self, key: str, value: V) -> None:
        key = key.lower()
        async with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self._maxsize:
                self._entries.popitem(last=False)
            self._entries[key] = (value, time.monotonic())

    def __len__(self) -> int:
        return len(self._entries)

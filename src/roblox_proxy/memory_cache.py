"""Size-bounded in-process response cache.

Eviction is arbitrary-single-entry: when a put pushes the entry count over
``max_entries``, the entry that comes first in insertion order is dropped.
This is not LRU: reads never reorder entries. Expired entries are not
removed on read; they keep reporting a miss until overwritten or evicted.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from roblox_proxy.models.cache import CacheEntry

log = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MemoryCache:
    def __init__(
        self,
        ttl: timedelta,
        max_entries: int = 1000,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` if present and not expired."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._clock()):
            return None
        return entry

    def put(self, key: str, headers: dict[str, str], body: bytes) -> CacheEntry:
        """Insert or overwrite ``key`` with a fresh ``now + ttl`` expiry."""
        entry = CacheEntry(expires_at=self._clock() + self._ttl, headers=headers, body=body)
        self._entries[key] = entry
        if len(self._entries) > self._max_entries:
            evicted = next(iter(self._entries))
            del self._entries[evicted]
            log.debug("memory_cache_evicted", key=evicted)
        return entry

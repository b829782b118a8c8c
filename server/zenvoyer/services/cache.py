"""TTL-based in-memory response cache."""

import time
import threading
from collections import OrderedDict
from typing import Any, Callable, Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    """A single cache entry with absolute expiry."""
    key: str
    value: Any
    inserted_at: float
    expires_at: float


class Cache:
    """In-memory cache with TTL expiry and an LRU capacity bound.

    Entries are replaced, never mutated. Expired entries are dropped lazily on
    read and in bulk by ``purge_expired`` (run periodically by the app).
    """

    def __init__(
        self,
        ttl: float = 300,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Get cached data if not expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            if self._clock() >= entry.expires_at:
                # Expired
                del self._entries[key]
                self.misses += 1
                return None

            self._entries.move_to_end(key)
            self.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store value under key, replacing any previous entry."""
        now = self._clock()
        entry = CacheEntry(
            key=key,
            value=value,
            inserted_at=now,
            expires_at=now + (self.ttl if ttl is None else ttl),
        )
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = entry
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def invalidate(self, key: str) -> None:
        """Invalidate a cache entry."""
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with prefix."""
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def purge_expired(self) -> int:
        """Remove all expired entries in one sweep."""
        now = self._clock()
        with self._lock:
            doomed = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict:
        """Snapshot of cache size and hit counters."""
        return {
            "size": len(self._entries),
            "maxEntries": self.max_entries,
            "ttl": self.ttl,
            "hits": self.hits,
            "misses": self.misses,
        }

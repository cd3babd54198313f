import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from typing import Any

from artisan_match.entities import CacheEntry

logger = logging.getLogger(__name__)


class BoundedCache:
    """In-process cache with a capacity bound, per-entry TTL and tag invalidation.

    Shared abstraction behind the embedding cache and the retrieval-result
    cache. Entries are evicted:

    - on read, once older than their TTL (never served stale),
    - on write, least-recently-used first among non-pinned entries when the
      cache is over capacity,
    - explicitly, by key or by tag.

    All operations take a short lock; a write only touches its own key, and
    writing the same key twice is last-writer-wins.
    """

    def __init__(
        self,
        capacity: int,
        default_ttl: float,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the cache.

        Args:
            capacity: Maximum number of non-pinned entries kept.
            default_ttl: TTL in seconds for entries stored without one.
            name: Label used in logs and stats.
            clock: Monotonic time source (injectable for tests).
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")

        self._capacity = capacity
        self._default_ttl = default_ttl
        self._name = name
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._tags: dict[str, set[str]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Any | None:
        """
        Look up a live entry.

        Args:
            key: The cache key.

        Returns:
            The cached value, or None on a miss or an expired entry.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(self._clock()):
                self._remove(key)
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def set(
        self,
        key: str,
        value: Any,
        ttl: float | None = None,
        tags: Iterable[str] = (),
        pinned: bool = False,
    ) -> None:
        """
        Store a value.

        Args:
            key: The cache key.
            value: The value to store.
            ttl: Seconds the entry may be served for. Defaults to the cache TTL.
            tags: Invalidation tags for the entry.
            pinned: Exempt the entry from capacity eviction.
        """
        entry = CacheEntry(
            key=key,
            value=value,
            created_at=self._clock(),
            ttl=ttl if ttl is not None else self._default_ttl,
            tags=frozenset(tags),
            pinned=pinned,
        )
        with self._lock:
            if key in self._entries:
                self._remove(key)
            self._entries[key] = entry
            for tag in entry.tags:
                self._tags.setdefault(tag, set()).add(key)
            self._evict_over_capacity()

    def invalidate(self, key: str) -> bool:
        """Remove one entry. Returns True if it existed."""
        with self._lock:
            if key not in self._entries:
                return False
            self._remove(key)
            return True

    def invalidate_tag(self, tag: str) -> int:
        """Remove every entry carrying a tag. Returns the number removed."""
        with self._lock:
            keys = list(self._tags.get(tag, ()))
            for key in keys:
                self._remove(key)
        if keys:
            logger.debug("%s: invalidated %d entries tagged %r", self._name, len(keys), tag)
        return len(keys)

    def clear(self) -> int:
        """Remove all entries. Returns the number removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._tags.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "name": self._name,
                "size": len(self._entries),
                "capacity": self._capacity,
                "ttl": self._default_ttl,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": self._hits / lookups if lookups else 0.0,
            }

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        for tag in entry.tags:
            keys = self._tags.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._tags[tag]

    def _evict_over_capacity(self) -> None:
        unpinned = sum(1 for entry in self._entries.values() if not entry.pinned)
        if unpinned <= self._capacity:
            return
        for key in list(self._entries):
            if unpinned <= self._capacity:
                break
            if self._entries[key].pinned:
                continue
            self._remove(key)
            self._evictions += 1
            unpinned -= 1

    @property
    def name(self) -> str:
        return self._name

    @property
    def capacity(self) -> int:
        return self._capacity

"""Cache entry domain entity."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CacheEntry:
    """Entry held by the bounded cache.

    Attributes:
        key: Cache key
        value: Cached value
        created_at: Monotonic timestamp of the write
        ttl: Seconds the entry may be served for
        tags: Invalidation tags (e.g. profile ids the value references)
        pinned: Pinned entries are never evicted for capacity
    """

    key: str
    value: Any
    created_at: float
    ttl: float
    tags: frozenset[str] = field(default_factory=frozenset)
    pinned: bool = False

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl

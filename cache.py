"""In-memory LRU cache with per-entry expiry for upstream responses."""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Hashable, List, Optional

from config import MAX_CACHE_SIZE, CACHE_DURATION, logger


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TimedLRUCache:
    """
    Bounded mapping that evicts by recency and by time-to-live.

    The OrderedDict keeps entries in last-touch order: the first item is the
    least recently used one. A hit from ``get`` or any ``set`` moves the key to
    the end. Expired entries are dropped lazily when they are read.

    An entry is expired once ``clock() >= expires_at``, so a value stored with
    ttl T is served for elapsed time < T and missed from T onwards.
    """

    def __init__(
        self,
        capacity: int = MAX_CACHE_SIZE,
        ttl: float = CACHE_DURATION,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not isinstance(capacity, int) or capacity <= 0:
            raise ValueError(f"capacity must be a positive integer, got {capacity!r}")
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl!r}")
        self.capacity = capacity
        self.ttl = ttl
        self._clock = clock
        self._entries: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now >= entry.expires_at

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the cached value for key and mark it most recently used."""
        entry = self._entries.get(key)
        if entry is None:
            return default

        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            logger.debug(f"Cache entry expired: {key}")
            return default

        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        """Store value under key, evicting the least recently used entry if full."""
        if ttl is None:
            ttl = self.ttl
        expires_at = self._clock() + ttl

        if key in self._entries:
            self._entries[key] = CacheEntry(value, expires_at)
            self._entries.move_to_end(key)
            return

        if len(self._entries) >= self.capacity:
            oldest_key, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache full, evicted: {oldest_key}")

        self._entries[key] = CacheEntry(value, expires_at)

    def delete(self, key: Hashable) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        expired = [k for k, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def keys(self) -> List[Hashable]:
        """Keys from least to most recently used. Does not touch entries."""
        return list(self._entries.keys())

    def __contains__(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not self._is_expired(entry, self._clock())

    def __len__(self) -> int:
        return len(self._entries)

"""Cache-first request manager combining the LRU cache with request coalescing."""

from typing import Any, Awaitable, Callable, Hashable, Optional

from cache import TimedLRUCache
from coalescer import CoalescingFetcher
from config import MAX_CACHE_SIZE, CACHE_DURATION, logger

_MISSING = object()


class RequestManager:
    """
    Serve values from the cache, fetching each missing key upstream only once.

    One instance is built at startup and handed to the request handlers, so
    tests can create as many independent managers as they need.
    """

    def __init__(
        self,
        cache: Optional[TimedLRUCache] = None,
        fetcher: Optional[CoalescingFetcher] = None,
        capacity: int = MAX_CACHE_SIZE,
        ttl: float = CACHE_DURATION,
    ):
        self._cache = cache if cache is not None else TimedLRUCache(capacity=capacity, ttl=ttl)
        self._fetcher = fetcher if fetcher is not None else CoalescingFetcher()

    @property
    def cache(self) -> TimedLRUCache:
        return self._cache

    @property
    def fetcher(self) -> CoalescingFetcher:
        return self._fetcher

    async def fetch(
        self,
        key: Hashable,
        producer: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None,
    ) -> Any:
        """
        Return the value for key from the cache or from a coalesced producer call.

        Args:
            key: Cache key (request path, optionally with an identity prefix)
            producer: Zero-argument callable performing the upstream call
            ttl: Override for the cache's default time-to-live, in seconds

        Returns:
            The cached or freshly produced value

        Raises:
            Whatever the producer raised; failures are never cached
        """
        cached = self._cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        async def produce_and_store():
            value = await producer()
            # Stored by the leading call only, before any waiter resumes
            self._cache.set(key, value, ttl)
            logger.info(f"Cache miss - Stored: {key}")
            return value

        return await self._fetcher.run(key, produce_and_store)

    def invalidate(self, key: Hashable) -> bool:
        """Drop a single cached key."""
        removed = self._cache.delete(key)
        if removed:
            logger.debug(f"Invalidated cache entry: {key}")
        return removed

    def clear(self) -> None:
        self._cache.clear()

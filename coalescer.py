"""Request coalescing so concurrent callers for the same key share one upstream call."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable

from config import logger


class CacheConsistencyError(AssertionError):
    """Raised when the in-flight registry no longer matches the running work."""


def _consume_exception(task: asyncio.Task) -> None:
    # Avoid "Task exception was never retrieved" when every waiter was cancelled
    if not task.cancelled():
        task.exception()


class CoalescingFetcher:
    """
    Run at most one producer per key at a time.

    The first caller for a key starts the producer as a task and registers it;
    callers arriving while it runs await the same task and observe the same
    value or exception. The key is released in the task's own ``finally``
    block, so after a failure the next call starts a fresh producer.

    Checking and registering happen without an ``await`` in between, which is
    what makes this safe on a single event loop without a lock.
    """

    def __init__(self):
        self._in_flight: Dict[Hashable, asyncio.Task] = {}

    async def run(self, key: Hashable, producer: Callable[[], Awaitable[Any]]) -> Any:
        """
        Join the in-flight call for key, or start producer() as the leader.

        Args:
            key: Deduplication key
            producer: Zero-argument callable returning an awaitable

        Returns:
            The producer's result, shared by every caller in the same wave
        """
        task = self._in_flight.get(key)
        if task is not None:
            logger.debug(f"Joining in-flight request: {key}")
        else:
            task = asyncio.ensure_future(self._run_and_release(key, producer))
            task.add_done_callback(_consume_exception)
            self._in_flight[key] = task
            logger.debug(f"Starting upstream request: {key}")

        # A cancelled caller must not cancel the work other callers share
        return await asyncio.shield(task)

    async def _run_and_release(self, key: Hashable, producer: Callable[[], Awaitable[Any]]) -> Any:
        current = asyncio.current_task()
        try:
            return await producer()
        except Exception as e:
            logger.warning(f"Upstream request failed for {key}: {e}")
            raise
        finally:
            registered = self._in_flight.get(key)
            if registered is current:
                del self._in_flight[key]
            else:
                raise CacheConsistencyError(
                    f"In-flight registry for {key!r} does not hold the settling request"
                )

    def in_flight(self, key: Hashable) -> bool:
        return key in self._in_flight

    def __len__(self) -> int:
        return len(self._in_flight)

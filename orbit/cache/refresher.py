"""
Background Refresher
Detached revalidation tasks for stale cache entries

A stale hit is answered from cache immediately; the refresh runs as an
asyncio task owned by this executor. Failures never reach the original
caller. They go to an error sink and the stale entry stays in place, so
the next access serves it again and schedules another attempt.

No single-flight de-duplication: repeated stale hits on the same key
before the first refresh finishes each schedule their own task.
A refresh that completes after its key was invalidated writes the value it
fetched before the mutation; the entry then lives for a full ttl.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Set

from loguru import logger

from orbit.cache.memory_cache import MemoryCache

Fetcher = Callable[[], Awaitable[Any]]
ErrorSink = Callable[[str, str, BaseException], None]


def log_refresh_error(key: str, tier: str, exc: BaseException) -> None:
    """Default error sink: log and move on."""
    logger.warning(f"Background refresh failed for {tier}:{key}: {exc!r}")


class BackgroundRefresher:
    """
    Executor for fire-and-forget cache refreshes.

    Holds a strong reference to every in-flight task (the event loop only
    keeps weak ones) until it completes.

    Usage:
        refresher = BackgroundRefresher()
        refresher.submit("companies:org-1:{}", fetch_companies, cache, "dynamic")
        ...
        await refresher.drain()  # on shutdown or in tests
    """

    def __init__(self, error_sink: Optional[ErrorSink] = None):
        self.error_sink = error_sink or log_refresh_error
        self._tasks: Set[asyncio.Task] = set()
        self._stats = {
            "submitted": 0,
            "succeeded": 0,
            "failed": 0,
        }

    @property
    def pending(self) -> int:
        """Number of refreshes still in flight."""
        return len(self._tasks)

    def submit(
        self,
        key: str,
        fetcher: Fetcher,
        cache: MemoryCache,
        tier: str = "",
    ) -> asyncio.Task:
        """
        Schedule a refresh of ``key`` in ``cache``.

        Must be called from inside a running event loop.

        Returns:
            The scheduled task (callers normally ignore it)
        """
        task = asyncio.get_running_loop().create_task(
            self._refresh(key, fetcher, cache, tier)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._stats["submitted"] += 1
        logger.debug(f"Scheduled background refresh for {tier}:{key}")
        return task

    async def _refresh(
        self,
        key: str,
        fetcher: Fetcher,
        cache: MemoryCache,
        tier: str,
    ) -> None:
        try:
            data = await fetcher()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._stats["failed"] += 1
            self._report(key, tier, e)
            return

        cache.set(key, data)
        self._stats["succeeded"] += 1
        logger.debug(f"Background refresh stored {tier}:{key}")

    def _report(self, key: str, tier: str, exc: BaseException) -> None:
        # A broken sink must not turn into an unretrieved task exception
        try:
            self.error_sink(key, tier, exc)
        except Exception as sink_error:
            logger.error(f"Refresh error sink raised: {sink_error!r}")

    async def drain(self) -> None:
        """Wait for every in-flight refresh, including ones they schedule."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> int:
        """Cancel every in-flight refresh. Returns the number cancelled."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        return len(tasks)

    def get_stats(self):
        """Get refresher statistics."""
        return {
            "pending": self.pending,
            **self._stats,
        }

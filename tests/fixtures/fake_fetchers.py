"""
Fake data fetchers for read-through tests.
Stand in for the data-access layer's async query wrappers.
"""

import asyncio
from typing import Any, List, Optional


class CountingFetcher:
    """
    Returns queued results in order, counting calls.

    When the queue runs out the last result is repeated.
    """

    def __init__(self, *results: Any):
        self._results: List[Any] = list(results) or [None]
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        result = self._results[min(self.calls - 1, len(self._results) - 1)]
        # Yield once like a real query would
        await asyncio.sleep(0)
        return result


class FailingFetcher:
    """Raises the given exception on every call."""

    def __init__(self, exc: Optional[Exception] = None):
        self.exc = exc or RuntimeError("database unavailable")
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        raise self.exc


class GatedFetcher:
    """Blocks until released, so tests can observe in-flight refreshes."""

    def __init__(self, result: Any):
        self.result = result
        self.calls = 0
        self.gate = asyncio.Event()

    async def __call__(self) -> Any:
        self.calls += 1
        await self.gate.wait()
        return self.result

    def release(self) -> None:
        self.gate.set()

"""
Unit tests for BackgroundRefresher.
"""

import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
from fixtures.fake_clock import ManualClock
from fixtures.fake_fetchers import CountingFetcher, FailingFetcher, GatedFetcher

from orbit.cache.memory_cache import MemoryCache, TierConfig
from orbit.cache.refresher import BackgroundRefresher, log_refresh_error


@pytest.fixture
def cache():
    return MemoryCache(TierConfig(ttl_seconds=60, max_entries=10), clock=ManualClock())


class TestBackgroundRefresher:

    def test_default_sink_is_logger(self):
        assert BackgroundRefresher().error_sink is log_refresh_error

    def test_submit_requires_running_loop(self, cache):
        with pytest.raises(RuntimeError):
            BackgroundRefresher().submit("k", CountingFetcher(1), cache)

    @pytest.mark.asyncio
    async def test_success_writes_result(self, cache):
        refresher = BackgroundRefresher()

        refresher.submit("k", CountingFetcher("fresh"), cache, "dynamic")
        await refresher.drain()

        assert cache.get("k").data == "fresh"
        assert refresher.get_stats() == {
            "pending": 0,
            "submitted": 1,
            "succeeded": 1,
            "failed": 0,
        }

    @pytest.mark.asyncio
    async def test_failure_calls_sink_and_keeps_entry(self, cache):
        errors = []
        refresher = BackgroundRefresher(
            error_sink=lambda key, tier, exc: errors.append((key, tier, exc))
        )
        cache.set("k", "old")
        error = ValueError("bad row")

        refresher.submit("k", FailingFetcher(error), cache, "query")
        await refresher.drain()

        assert errors == [("k", "query", error)]
        assert cache.get("k").data == "old"
        assert refresher.get_stats()["failed"] == 1

    @pytest.mark.asyncio
    async def test_failing_sink_is_contained(self, cache):
        def broken_sink(key, tier, exc):
            raise RuntimeError("sink exploded")

        refresher = BackgroundRefresher(error_sink=broken_sink)
        task = refresher.submit("k", FailingFetcher(), cache)
        await refresher.drain()

        assert task.done()
        assert task.exception() is None

    @pytest.mark.asyncio
    async def test_pending_tracks_in_flight_tasks(self, cache):
        refresher = BackgroundRefresher()
        gated = GatedFetcher("v")

        refresher.submit("a", gated, cache)
        refresher.submit("b", gated, cache)
        await asyncio.sleep(0)

        assert refresher.pending == 2

        gated.release()
        await refresher.drain()

        assert refresher.pending == 0
        assert cache.keys() == ["a", "b"]

    @pytest.mark.asyncio
    async def test_cancel_all(self, cache):
        refresher = BackgroundRefresher()
        refresher.submit("k", GatedFetcher("never"), cache)

        assert refresher.cancel_all() == 1
        await refresher.drain()

        assert refresher.pending == 0
        assert not cache.has("k")

    @pytest.mark.asyncio
    async def test_refresh_finishing_after_delete_writes_back(self, cache):
        refresher = BackgroundRefresher()
        cache.set("k", "old")
        gated = GatedFetcher("fetched-before-delete")

        refresher.submit("k", gated, cache)
        await asyncio.sleep(0)
        cache.delete("k")
        gated.release()
        await refresher.drain()

        assert cache.get("k") == ("fetched-before-delete", False)

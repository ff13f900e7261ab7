"""
Read-Through Cache Access
One call that serves fresh or acceptably stale data, fetching on a miss

Flow for cached_fetch(key, fetcher, tier):
1. fresh hit  -> return cached data, fetcher not called
2. stale hit  -> return cached data, refresh in the background
3. miss       -> await fetcher, store, return (errors propagate)

force_refresh=True skips the lookup and always takes path 3.

Two overlapping calls for the same absent key both fetch and both write;
the later write wins.
"""

from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from orbit.cache.tiers import CacheRegistry, CacheTier, TierLike, get_cache_registry, resolve_tier


async def cached_fetch(
    key: str,
    fetcher: Callable[[], Awaitable[Any]],
    tier: TierLike = CacheTier.DYNAMIC,
    force_refresh: bool = False,
    *,
    registry: Optional[CacheRegistry] = None,
) -> Any:
    """
    Get ``key`` from ``tier``, calling ``fetcher`` when needed.

    Args:
        key: Cache key (see orbit.cache.keys)
        fetcher: Zero-argument coroutine function producing the value
        tier: Tier to read and populate
        force_refresh: Bypass the lookup and fetch now
        registry: Registry to use (process default if None)

    Returns:
        Cached or freshly fetched data
    """
    registry = registry or get_cache_registry()
    tier = resolve_tier(tier)
    cache = registry.tier(tier)

    if not force_refresh:
        cached = cache.get(key)
        if cached is not None:
            if cached.is_stale:
                logger.debug(f"Stale hit for {tier.value}:{key}, revalidating")
                registry.refresher.submit(key, fetcher, cache, tier.value)
            else:
                logger.debug(f"Cache hit for {tier.value}:{key}")
            return cached.data

    logger.debug(f"Cache miss for {tier.value}:{key}, fetching")
    data = await fetcher()
    cache.set(key, data)
    return data

"""
Cache Maintenance
Warming, cleanup and metrics across all tiers

Used by the performance / admin endpoints:
- warm_cache: pre-load an organization's reference data into the static tier
- cleanup_expired_cache: drop entries past their stale window
- get_cache_metrics: per-tier statistics snapshot
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from loguru import logger

from orbit.cache.keys import CacheKeys
from orbit.cache.read_through import cached_fetch
from orbit.cache.tiers import CacheRegistry, CacheTier, get_cache_registry

# Loader: organization_id -> awaitable payload
Loader = Callable[[str], Awaitable[Any]]

# Reference data cached by warm_cache, by loader name
REFERENCE_DATA_KEYS: Dict[str, Callable[[str], str]] = {
    "markets": CacheKeys.markets,
    "verticals": CacheKeys.verticals,
    "pe_platforms": CacheKeys.pe_platforms,
}


async def warm_cache(
    organization_id: str,
    loaders: Mapping[str, Loader],
    *,
    registry: Optional[CacheRegistry] = None,
) -> Dict[str, Any]:
    """
    Pre-warm the static tier with an organization's reference data.

    Useful for:
    - Service startup
    - Right after an organization is created or switched to

    Loaders run concurrently through cached_fetch, so data that is already
    fresh is not fetched again. Names without a loader are skipped.

    Args:
        organization_id: Organization to warm
        loaders: Loader per reference data name (see REFERENCE_DATA_KEYS)
        registry: Registry to use (process default if None)

    Returns:
        Warming statistics
    """
    registry = registry or get_cache_registry()
    stats = {
        "total": len(REFERENCE_DATA_KEYS),
        "success": 0,
        "failed": 0,
        "skipped": 0,
    }

    names = []
    calls = []
    for name, key_builder in REFERENCE_DATA_KEYS.items():
        loader = loaders.get(name)
        if loader is None:
            stats["skipped"] += 1
            continue

        names.append(name)
        calls.append(cached_fetch(
            key_builder(organization_id),
            _bind(loader, organization_id),
            CacheTier.STATIC,
            registry=registry,
        ))

    results = await asyncio.gather(*calls, return_exceptions=True)

    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            logger.warning(f"Failed to warm {name} for organization {organization_id}: {result}")
            stats["failed"] += 1
        else:
            stats["success"] += 1

    logger.info(
        f"Cache warming complete for organization {organization_id}: "
        f"{stats['success']} loaded, "
        f"{stats['skipped']} skipped, "
        f"{stats['failed']} failed"
    )

    return stats


def _bind(loader: Loader, organization_id: str) -> Callable[[], Awaitable[Any]]:
    async def fetch() -> Any:
        return await loader(organization_id)
    return fetch


def cleanup_expired_cache(registry: Optional[CacheRegistry] = None) -> Dict[str, int]:
    """
    Drop expired entries from every tier.

    Returns:
        Number of entries removed per tier
    """
    registry = registry or get_cache_registry()
    removed = registry.purge_expired()
    logger.info(f"Cache cleanup removed {sum(removed.values())} expired entries: {removed}")
    return removed


def get_cache_metrics(registry: Optional[CacheRegistry] = None) -> Dict[str, Any]:
    """
    Snapshot of per-tier statistics.

    Returns:
        {"static": {...}, "dynamic": {...}, "user": {...}, "query": {...},
         "refresher": {...}, "timestamp": "<ISO-8601 UTC>"}
    """
    registry = registry or get_cache_registry()
    return registry.metrics()

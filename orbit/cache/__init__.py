"""
Orbit Cache System
Process-local tiered cache for organization-scoped CRM data

This module provides:
- MemoryCache: bounded LRU store with TTL and stale-while-revalidate
- CacheRegistry: the four tiers (static, dynamic, user, query)
- cached_fetch: read-through access with background revalidation
- invalidate / InvalidationPatterns: mutation-driven key eviction
- CacheKeys: deterministic key builders
- BatchCache: ordered multi-key writes
- warm_cache / cleanup_expired_cache / get_cache_metrics: maintenance

Freshness per entry (ttl=T, stale window=S, written at t=0):
- t < T          fresh, served as is
- T <= t < T+S   stale, served while a refresh runs in the background
- t >= T+S       expired, fetched again in the foreground
"""

from orbit.cache.memory_cache import (
    CacheEntry,
    CacheLookup,
    MemoryCache,
    TierConfig,
)
from orbit.cache.refresher import BackgroundRefresher, log_refresh_error
from orbit.cache.tiers import (
    DEFAULT_TIER_CONFIGS,
    CacheRegistry,
    CacheTier,
    get_cache_registry,
    reset_cache_registry,
    resolve_tier,
    set_cache_registry,
)
from orbit.cache.keys import CacheKeys, Namespace, canonical_filters
from orbit.cache.invalidation import (
    INVALIDATION_TABLE,
    ExactPattern,
    GlobPattern,
    InvalidationPatterns,
    compile_pattern,
    invalidate,
    invalidate_entity,
    patterns_for,
)
from orbit.cache.read_through import cached_fetch
from orbit.cache.batch import BatchCache
from orbit.cache.maintenance import (
    REFERENCE_DATA_KEYS,
    cleanup_expired_cache,
    get_cache_metrics,
    warm_cache,
)

__all__ = [
    # Store
    "CacheEntry",
    "CacheLookup",
    "MemoryCache",
    "TierConfig",
    # Tiers
    "DEFAULT_TIER_CONFIGS",
    "CacheRegistry",
    "CacheTier",
    "get_cache_registry",
    "reset_cache_registry",
    "resolve_tier",
    "set_cache_registry",
    # Refresh
    "BackgroundRefresher",
    "log_refresh_error",
    "cached_fetch",
    # Keys
    "CacheKeys",
    "Namespace",
    "canonical_filters",
    # Invalidation
    "INVALIDATION_TABLE",
    "ExactPattern",
    "GlobPattern",
    "InvalidationPatterns",
    "compile_pattern",
    "invalidate",
    "invalidate_entity",
    "patterns_for",
    # Batch
    "BatchCache",
    # Maintenance
    "REFERENCE_DATA_KEYS",
    "cleanup_expired_cache",
    "get_cache_metrics",
    "warm_cache",
]

"""
Cache Tiers
The four cache partitions and the registry that owns them

Tiers are chosen by how often the underlying data changes:
- static:  reference data (markets, verticals, PE platforms), 1h ttl
- dynamic: transactional lists (companies, contacts, campaigns), 5m ttl
- user:    per-identity data (profile, memberships), 15m ttl
- query:   generic query results, 10m ttl

Tiers are independent. The same key may live in several tiers and
nothing keeps them in sync.

The registry is built once at application start and handed to whatever
needs caching. get_cache_registry() provides a process-wide default for
call sites that do not receive one explicitly.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union, TYPE_CHECKING

from loguru import logger

from orbit.cache.memory_cache import CacheLookup, MemoryCache, TierConfig
from orbit.cache.refresher import BackgroundRefresher, ErrorSink

if TYPE_CHECKING:
    from orbit.config.config_loader import CacheSettings


class CacheTier(str, Enum):
    """Cache tier identifiers."""
    STATIC = "static"
    DYNAMIC = "dynamic"
    USER = "user"
    QUERY = "query"


TierLike = Union[CacheTier, str]


DEFAULT_TIER_CONFIGS: Dict[CacheTier, TierConfig] = {
    CacheTier.STATIC: TierConfig(
        ttl_seconds=60 * 60, max_entries=1000, stale_window_seconds=5 * 60,
    ),
    CacheTier.DYNAMIC: TierConfig(
        ttl_seconds=5 * 60, max_entries=500, stale_window_seconds=60,
    ),
    CacheTier.USER: TierConfig(
        ttl_seconds=15 * 60, max_entries=200, stale_window_seconds=2 * 60,
    ),
    CacheTier.QUERY: TierConfig(
        ttl_seconds=10 * 60, max_entries=300, stale_window_seconds=2 * 60,
    ),
}


def resolve_tier(tier: TierLike) -> CacheTier:
    """Normalize a tier name or enum member."""
    try:
        return CacheTier(tier)
    except ValueError:
        valid = ", ".join(t.value for t in CacheTier)
        raise ValueError(f"Unknown cache tier: {tier!r}. Must be one of: {valid}") from None


class CacheRegistry:
    """
    Owner of the four tier stores and the background refresher.

    Example:
        registry = CacheRegistry()
        registry.set("dynamic", "companies:org-1:{}", rows)
        hit = registry.get("dynamic", "companies:org-1:{}")

        # In tests, with a controllable clock
        registry = CacheRegistry(clock=fake_clock)
    """

    def __init__(
        self,
        configs: Optional[Mapping[TierLike, TierConfig]] = None,
        clock: Optional[Callable[[], float]] = None,
        error_sink: Optional[ErrorSink] = None,
    ):
        """
        Initialize the registry.

        Args:
            configs: Per-tier overrides; missing tiers use DEFAULT_TIER_CONFIGS
            clock: Time source in seconds (time.time if None)
            error_sink: Receives background refresh failures (logged if None)
        """
        merged = dict(DEFAULT_TIER_CONFIGS)
        for tier, config in (configs or {}).items():
            merged[resolve_tier(tier)] = config

        self.configs: Dict[CacheTier, TierConfig] = merged
        self.refresher = BackgroundRefresher(error_sink=error_sink)
        self._tiers: Dict[CacheTier, MemoryCache] = {
            tier: MemoryCache(config, name=tier.value, clock=clock)
            for tier, config in merged.items()
        }

        logger.info(
            "CacheRegistry initialized ("
            + ", ".join(
                f"{t.value}: ttl={c.ttl_seconds}s max={c.max_entries} "
                f"stale={c.stale_window_seconds}s"
                for t, c in merged.items()
            )
            + ")"
        )

    @classmethod
    def from_settings(
        cls,
        settings: "CacheSettings",
        clock: Optional[Callable[[], float]] = None,
        error_sink: Optional[ErrorSink] = None,
    ) -> "CacheRegistry":
        """Create a registry from the loaded configuration."""
        configs = {
            tier: TierConfig.from_dict(getattr(settings, tier.value).model_dump())
            for tier in CacheTier
        }
        return cls(configs=configs, clock=clock, error_sink=error_sink)

    def tier(self, tier: TierLike) -> MemoryCache:
        """Get the store for a tier."""
        return self._tiers[resolve_tier(tier)]

    def config_for(self, tier: TierLike) -> TierConfig:
        return self.configs[resolve_tier(tier)]

    # Per-tier convenience wrappers

    def get(self, tier: TierLike, key: str) -> Optional[CacheLookup]:
        return self.tier(tier).get(key)

    def set(
        self,
        tier: TierLike,
        key: str,
        data: Any,
        config: Optional[TierConfig] = None,
    ) -> None:
        self.tier(tier).set(key, data, config)

    def delete(self, tier: TierLike, key: str) -> bool:
        return self.tier(tier).delete(key)

    def clear(self, tier: TierLike) -> None:
        self.tier(tier).clear()
        logger.info(f"Cleared {resolve_tier(tier).value} cache")

    def keys(self, tier: TierLike) -> List[str]:
        return self.tier(tier).keys()

    def stats(self, tier: TierLike) -> Dict[str, Any]:
        return self.tier(tier).stats()

    def clear_all(self) -> None:
        """Empty every tier."""
        for store in self._tiers.values():
            store.clear()
        logger.info("Cleared all cache tiers")

    def purge_expired(self) -> Dict[str, int]:
        """Drop expired entries from every tier."""
        return {
            tier.value: store.purge_expired()
            for tier, store in self._tiers.items()
        }

    def metrics(self) -> Dict[str, Any]:
        """Per-tier stats plus a UTC timestamp."""
        metrics: Dict[str, Any] = {
            tier.value: store.stats() for tier, store in self._tiers.items()
        }
        metrics["refresher"] = self.refresher.get_stats()
        metrics["timestamp"] = datetime.now(timezone.utc).isoformat()
        return metrics


# Process-wide default registry
_global_cache_registry: Optional[CacheRegistry] = None


def get_cache_registry() -> CacheRegistry:
    """
    Get or create the default registry.

    Returns:
        CacheRegistry instance
    """
    global _global_cache_registry

    if _global_cache_registry is None:
        _global_cache_registry = CacheRegistry()

    return _global_cache_registry


def set_cache_registry(registry: Optional[CacheRegistry]) -> None:
    """Install a registry as the process-wide default (None to unset)."""
    global _global_cache_registry
    _global_cache_registry = registry


def reset_cache_registry() -> None:
    """Cancel pending refreshes and drop the default registry."""
    global _global_cache_registry

    if _global_cache_registry is not None:
        _global_cache_registry.refresher.cancel_all()
        _global_cache_registry = None

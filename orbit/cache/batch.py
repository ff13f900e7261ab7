"""
Batched cache writes.

Queued operations are applied back to back with no await in between, so
no other coroutine can observe a half-applied batch. This is ordering,
not atomicity: a failing operation leaves earlier ones applied.
"""

from typing import Any, Callable, List, Optional

from loguru import logger

from orbit.cache.tiers import CacheRegistry, CacheTier, TierLike, get_cache_registry, resolve_tier


class BatchCache:
    """
    Builder for a sequence of set/delete operations.

    Example:
        BatchCache(registry) \\
            .set(CacheKeys.company(company["id"]), company) \\
            .delete(CacheKeys.counts(org_id)) \\
            .execute()
    """

    def __init__(self, registry: Optional[CacheRegistry] = None):
        self._registry = registry
        self._operations: List[Callable[[CacheRegistry], None]] = []

    def set(self, key: str, data: Any, tier: TierLike = CacheTier.DYNAMIC) -> "BatchCache":
        tier = resolve_tier(tier)
        self._operations.append(lambda registry: registry.set(tier, key, data))
        return self

    def delete(self, key: str, tier: TierLike = CacheTier.DYNAMIC) -> "BatchCache":
        tier = resolve_tier(tier)
        self._operations.append(lambda registry: registry.delete(tier, key))
        return self

    def execute(self) -> int:
        """
        Apply queued operations in order and empty the queue.

        Returns:
            Number of operations applied
        """
        registry = self._registry or get_cache_registry()
        operations, self._operations = self._operations, []

        for operation in operations:
            operation(registry)

        logger.debug(f"Applied {len(operations)} batched cache operations")
        return len(operations)

    def __len__(self) -> int:
        return len(self._operations)

"""
Cache Invalidation
Maps domain mutations to the cache keys they make stale

A pattern is either exact (deleted by key, O(1)) or a glob containing
``*`` (matched against a snapshot of the tier's keys, O(n)). ``*`` matches
any run of characters, including ``:``, and globs are anchored at both
ends: ``stats:org-1:*`` matches ``stats:org-1:companies`` but not
``xstats:org-1:companies``.

Invalidation is tier-scoped. Data cached in several tiers must be
invalidated once per tier.
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from loguru import logger

from orbit.cache.keys import Namespace
from orbit.cache.memory_cache import MemoryCache
from orbit.cache.tiers import CacheRegistry, CacheTier, TierLike, get_cache_registry, resolve_tier

WILDCARD = "*"


@dataclass(frozen=True)
class ExactPattern:
    """Matches one key."""
    key: str

    def matches(self, key: str) -> bool:
        return key == self.key

    def apply(self, cache: MemoryCache) -> int:
        return 1 if cache.delete(self.key) else 0


@dataclass(frozen=True)
class GlobPattern:
    """Matches every key the glob covers."""
    pattern: str
    regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        parts = (re.escape(part) for part in self.pattern.split(WILDCARD))
        object.__setattr__(self, "regex", re.compile(".*".join(parts), re.DOTALL))

    def matches(self, key: str) -> bool:
        return self.regex.fullmatch(key) is not None

    def apply(self, cache: MemoryCache) -> int:
        removed = 0
        for key in cache.keys():
            if self.matches(key) and cache.delete(key):
                removed += 1
        return removed


KeyPattern = Union[ExactPattern, GlobPattern]


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> KeyPattern:
    """Compile a pattern string once; repeated calls hit the memo."""
    if WILDCARD in pattern:
        return GlobPattern(pattern)
    return ExactPattern(pattern)


class InvalidationPatterns:
    """Patterns to invalidate when an entity in an organization changes."""

    @staticmethod
    def organization(organization_id: str) -> List[str]:
        # Everything scoped to the organization
        return [
            f"{Namespace.ORGANIZATION}:{organization_id}",
            f"{Namespace.MARKETS}:{organization_id}",
            f"{Namespace.VERTICALS}:{organization_id}",
            f"{Namespace.PE_PLATFORMS}:{organization_id}",
            f"{Namespace.COMPANIES}:{organization_id}:*",
            f"{Namespace.CONTACTS}:{organization_id}:*",
            f"{Namespace.CAMPAIGNS}:{organization_id}:*",
            f"{Namespace.ACTIVITIES}:{organization_id}:*",
            f"{Namespace.STATS}:{organization_id}:*",
            f"{Namespace.COUNTS}:{organization_id}",
        ]

    @staticmethod
    def companies(organization_id: str) -> List[str]:
        return _list_with_aggregates(Namespace.COMPANIES, organization_id)

    @staticmethod
    def contacts(organization_id: str) -> List[str]:
        return _list_with_aggregates(Namespace.CONTACTS, organization_id)

    @staticmethod
    def campaigns(organization_id: str) -> List[str]:
        return _list_with_aggregates(Namespace.CAMPAIGNS, organization_id)

    @staticmethod
    def activities(organization_id: str) -> List[str]:
        return _list_with_aggregates(Namespace.ACTIVITIES, organization_id)

    @staticmethod
    def markets(organization_id: str) -> List[str]:
        return [f"{Namespace.MARKETS}:{organization_id}"]

    @staticmethod
    def verticals(organization_id: str) -> List[str]:
        return [f"{Namespace.VERTICALS}:{organization_id}"]

    @staticmethod
    def pe_platforms(organization_id: str) -> List[str]:
        return [f"{Namespace.PE_PLATFORMS}:{organization_id}"]


def _list_with_aggregates(namespace: str, organization_id: str) -> List[str]:
    """The list key, every filtered variant of it, and the org aggregates."""
    return [
        f"{namespace}:{organization_id}",
        f"{namespace}:{organization_id}:*",
        f"{Namespace.COUNTS}:{organization_id}",
        f"{Namespace.STATS}:{organization_id}:{namespace}",
    ]


INVALIDATION_TABLE: Dict[str, Callable[[str], List[str]]] = {
    "organization": InvalidationPatterns.organization,
    "companies": InvalidationPatterns.companies,
    "contacts": InvalidationPatterns.contacts,
    "campaigns": InvalidationPatterns.campaigns,
    "activities": InvalidationPatterns.activities,
    "markets": InvalidationPatterns.markets,
    "verticals": InvalidationPatterns.verticals,
    "pe_platforms": InvalidationPatterns.pe_platforms,
}


def patterns_for(entity: str, organization_id: str) -> List[str]:
    """
    Look up the invalidation patterns for a mutated entity.

    Raises:
        ValueError: if the entity has no entry in INVALIDATION_TABLE
    """
    builder = INVALIDATION_TABLE.get(entity)
    if builder is None:
        valid = ", ".join(sorted(INVALIDATION_TABLE))
        raise ValueError(f"No invalidation patterns for entity {entity!r}. Known: {valid}")
    return builder(organization_id)


def invalidate(
    patterns: Iterable[Union[str, KeyPattern]],
    tier: TierLike = CacheTier.DYNAMIC,
    *,
    registry: Optional[CacheRegistry] = None,
) -> int:
    """
    Remove every key in ``tier`` matched by ``patterns``.

    Args:
        patterns: Pattern strings or compiled patterns
        tier: Tier to sweep
        registry: Registry to use (process default if None)

    Returns:
        Number of entries removed
    """
    registry = registry or get_cache_registry()
    cache = registry.tier(tier)

    removed = 0
    for pattern in patterns:
        if isinstance(pattern, str):
            pattern = compile_pattern(pattern)
        removed += pattern.apply(cache)

    logger.debug(f"Invalidated {removed} {resolve_tier(tier).value} cache entries")
    return removed


def invalidate_entity(
    entity: str,
    organization_id: str,
    tiers: Sequence[TierLike] = (CacheTier.DYNAMIC,),
    *,
    registry: Optional[CacheRegistry] = None,
) -> int:
    """
    Invalidate everything a mutation of ``entity`` affects, tier by tier.

    Returns:
        Total number of entries removed across ``tiers``
    """
    patterns = patterns_for(entity, organization_id)
    return sum(invalidate(patterns, tier, registry=registry) for tier in tiers)

"""
Memory Cache
Bounded in-memory LRU store with TTL and stale-while-revalidate windows

Each tier of the Orbit cache is one MemoryCache. Entries carry their own
ttl / stale window so a caller may store a single key with a config that
differs from the tier default.

Freshness of an entry written at t=0 with ttl=T and stale window=S:
- t < T          fresh
- T <= t < T+S   stale (still served, caller should revalidate)
- t >= T+S       expired (purged on access, reported absent)

A ttl of 0 is a cache bypass: the entry is expired as soon as it is written.

Not thread-safe. Intended for a single asyncio event loop, where every
operation here runs to completion without suspending.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, NamedTuple, Optional, TypeVar

from loguru import logger

T = TypeVar("T")


@dataclass(frozen=True)
class TierConfig:
    """Configuration for one cache tier."""
    ttl_seconds: float
    max_entries: int
    stale_window_seconds: float = 0.0

    def __post_init__(self):
        if self.ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {self.ttl_seconds}")
        if self.stale_window_seconds < 0:
            raise ValueError(
                f"stale_window_seconds must be >= 0, got {self.stale_window_seconds}"
            )
        if self.max_entries <= 0:
            raise ValueError(f"max_entries must be > 0, got {self.max_entries}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TierConfig":
        """Create config from dictionary"""
        return cls(
            ttl_seconds=data.get("ttl_seconds", 300),
            max_entries=data.get("max_entries", 500),
            stale_window_seconds=data.get("stale_window_seconds", 0),
        )


@dataclass
class CacheEntry:
    """A cached value with its write time and freshness windows."""
    data: Any
    stored_at: float
    ttl: float
    stale_window: float = 0.0

    def age(self, now: float) -> float:
        return now - self.stored_at

    def is_stale(self, now: float) -> bool:
        return self.age(now) >= self.ttl

    def is_expired(self, now: float) -> bool:
        if self.ttl <= 0:
            return True
        return self.age(now) >= self.ttl + self.stale_window


class CacheLookup(NamedTuple):
    """Result of a successful lookup."""
    data: Any
    is_stale: bool


class MemoryCache(Generic[T]):
    """
    LRU cache with per-entry TTL and stale window.

    Uses OrderedDict for O(1) operations; the first key is the least
    recently used one.

    Example:
        cache = MemoryCache(TierConfig(ttl_seconds=300, max_entries=500,
                                       stale_window_seconds=60))
        cache.set("companies:org-1:{}", rows)
        hit = cache.get("companies:org-1:{}")
        if hit and hit.is_stale:
            ...  # serve hit.data, refresh in the background
    """

    def __init__(
        self,
        config: TierConfig,
        name: str = "memory",
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config
        self.name = name
        self._clock = clock or time.time
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._stats = {
            "hits": 0,
            "stale_hits": 0,
            "misses": 0,
            "evictions": 0,
            "expirations": 0,
        }

    def get(self, key: str) -> Optional[CacheLookup]:
        """
        Look up a key.

        Expired entries are removed and reported as a miss. Any hit, fresh
        or stale, marks the key as most recently used.

        Returns:
            CacheLookup(data, is_stale) or None if absent
        """
        entry = self._cache.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return None

        now = self._clock()
        if entry.is_expired(now):
            del self._cache[key]
            self._stats["expirations"] += 1
            self._stats["misses"] += 1
            logger.debug(f"[{self.name}] expired: {key}")
            return None

        self._cache.move_to_end(key)
        is_stale = entry.is_stale(now)
        if is_stale:
            self._stats["stale_hits"] += 1
        else:
            self._stats["hits"] += 1
        return CacheLookup(entry.data, is_stale)

    def set(self, key: str, data: T, config: Optional[TierConfig] = None) -> None:
        """
        Insert or overwrite a key.

        Args:
            key: Cache key
            data: Value to cache
            config: Freshness settings for this entry (tier default if None)
        """
        config = config or self.config
        entry = CacheEntry(
            data=data,
            stored_at=self._clock(),
            ttl=config.ttl_seconds,
            stale_window=config.stale_window_seconds,
        )

        if key in self._cache:
            self._cache.move_to_end(key)
        elif len(self._cache) >= self.config.max_entries:
            evicted, _ = self._cache.popitem(last=False)
            self._stats["evictions"] += 1
            logger.debug(f"[{self.name}] evicted LRU entry: {evicted}")

        self._cache[key] = entry

    def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it was present."""
        if key in self._cache:
            del self._cache[key]
            return True
        return False

    def clear(self) -> None:
        """Remove every entry."""
        self._cache.clear()

    def has(self, key: str) -> bool:
        """Check residency without touching recency or expiry."""
        return key in self._cache

    def keys(self) -> List[str]:
        """Snapshot of resident keys, least recently used first."""
        return list(self._cache.keys())

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [k for k, entry in self._cache.items() if entry.is_expired(now)]
        for key in expired:
            del self._cache[key]
        self._stats["expirations"] += len(expired)
        return len(expired)

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        lookups = self._stats["hits"] + self._stats["stale_hits"] + self._stats["misses"]
        served = self._stats["hits"] + self._stats["stale_hits"]

        return {
            "entry_count": len(self._cache),
            "max_entries": self.config.max_entries,
            "hits": self._stats["hits"],
            "stale_hits": self._stats["stale_hits"],
            "misses": self._stats["misses"],
            "evictions": self._stats["evictions"],
            "expirations": self._stats["expirations"],
            "hit_rate": served / lookups if lookups > 0 else 0,
        }

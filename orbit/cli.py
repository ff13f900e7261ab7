"""
Orbit Cache command-line interface

Commands:
    orbit-cache config     Show the effective tier configuration
    orbit-cache demo       Walk through read-through, stale refresh and invalidation
"""

import argparse
import asyncio
import json
import os
import sys
from typing import List, Optional

from loguru import logger


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="orbit-cache",
        description="Orbit Cache - tiered in-memory cache diagnostics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  orbit-cache config                    Show tier settings
  orbit-cache demo                      Run the cache lifecycle demo
  orbit-cache --config my.yaml config   Use a specific configuration file
        """
    )

    parser.add_argument(
        "command",
        choices=["config", "demo"],
        help="Command to run"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file"
    )

    args = parser.parse_args(argv)

    # Set config path if provided
    if args.config:
        os.environ["ORBIT_CONFIG_PATH"] = args.config

    from orbit.config.config_loader import get_config

    config = get_config()
    logger.remove()
    logger.add(sys.stderr, level=config.system.log_level)

    if args.command == "config":
        run_config(config)
    elif args.command == "demo":
        asyncio.run(run_demo(config))
    return 0


def run_config(config) -> None:
    """Print tier settings."""
    print(f"{config.system.name} {config.system.version}")
    print(json.dumps(config.cache.model_dump(), indent=2))


class _DemoClock:
    """Clock the demo advances by hand instead of sleeping."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def run_demo(config) -> None:
    """Run the cache lifecycle demo against a fake company loader."""
    from orbit.cache import (
        CacheKeys,
        CacheRegistry,
        CacheTier,
        cached_fetch,
        get_cache_metrics,
        invalidate_entity,
    )

    clock = _DemoClock()
    registry = CacheRegistry.from_settings(config.cache, clock=clock)
    dynamic = registry.config_for(CacheTier.DYNAMIC)

    calls = {"count": 0}

    async def fetch_companies():
        calls["count"] += 1
        return [{"id": f"company-{calls['count']}", "name": "Acme Corp"}]

    key = CacheKeys.companies("org-1", {"status": "active"})

    print("=" * 50)
    print("Orbit Cache Demo")
    print("=" * 50)

    data = await cached_fetch(key, fetch_companies, CacheTier.DYNAMIC, registry=registry)
    print(f"\n[t={clock.now:.0f}s] miss -> fetched {data} (fetches: {calls['count']})")

    clock.advance(dynamic.ttl_seconds / 2)
    data = await cached_fetch(key, fetch_companies, CacheTier.DYNAMIC, registry=registry)
    print(f"[t={clock.now:.0f}s] fresh hit -> {data} (fetches: {calls['count']})")

    clock.advance(dynamic.ttl_seconds / 2 + dynamic.stale_window_seconds / 2)
    data = await cached_fetch(key, fetch_companies, CacheTier.DYNAMIC, registry=registry)
    print(f"[t={clock.now:.0f}s] stale hit -> {data}, refreshing in background")
    await registry.refresher.drain()
    print(f"[t={clock.now:.0f}s] refreshed -> {registry.get(CacheTier.DYNAMIC, key)} "
          f"(fetches: {calls['count']})")

    removed = invalidate_entity("companies", "org-1", registry=registry)
    print(f"\nCompany mutated in org-1: invalidated {removed} entries")
    print(f"Lookup after invalidation: {registry.get(CacheTier.DYNAMIC, key)}")

    print("\n" + "=" * 50)
    print("Metrics")
    print("=" * 50)
    print(json.dumps(get_cache_metrics(registry), indent=2))


if __name__ == "__main__":
    sys.exit(main())

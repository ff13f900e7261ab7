"""Orbit configuration."""

from orbit.config.config_loader import (
    CacheSettings,
    Config,
    ConfigLoader,
    SystemConfig,
    TierSettings,
    get_config,
)

__all__ = [
    "CacheSettings",
    "Config",
    "ConfigLoader",
    "SystemConfig",
    "TierSettings",
    "get_config",
]

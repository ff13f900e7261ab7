"""
Configuration Loader for Orbit
Loads and manages configuration from YAML files
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from loguru import logger

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


class TierSettings(BaseModel):
    """Settings for one cache tier."""
    ttl_seconds: float
    max_entries: int
    stale_window_seconds: float = 0.0

    @field_validator("ttl_seconds", "stale_window_seconds")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @field_validator("max_entries")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be > 0")
        return value


class CacheSettings(BaseModel):
    """
    Cache tier configuration.

    Tiers are sized by how often their data changes:
    - static:  reference data, rarely invalidated
    - dynamic: transactional lists, frequently invalidated
    - user:    per-identity session data
    - query:   generic query results
    """
    static: TierSettings = Field(default_factory=lambda: TierSettings(
        ttl_seconds=3600, max_entries=1000, stale_window_seconds=300,
    ))
    dynamic: TierSettings = Field(default_factory=lambda: TierSettings(
        ttl_seconds=300, max_entries=500, stale_window_seconds=60,
    ))
    user: TierSettings = Field(default_factory=lambda: TierSettings(
        ttl_seconds=900, max_entries=200, stale_window_seconds=120,
    ))
    query: TierSettings = Field(default_factory=lambda: TierSettings(
        ttl_seconds=600, max_entries=300, stale_window_seconds=120,
    ))


class SystemConfig(BaseModel):
    """System configuration."""
    name: str = "Orbit Cache"
    version: str = "1.0.0"
    log_level: str = "INFO"


class Config(BaseModel):
    """Main configuration model."""
    system: SystemConfig = Field(default_factory=SystemConfig)
    cache: CacheSettings = Field(default_factory=CacheSettings)


class ConfigLoader:
    """Configuration loader and manager."""

    _instance: Optional['ConfigLoader'] = None
    _config: Optional[Config] = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        if self._config is None:
            self._config_path = config_path or self._find_config_path()
            self._load_config()

    def _find_config_path(self) -> Optional[str]:
        """Find configuration file path."""
        possible_paths = [
            os.environ.get("ORBIT_CONFIG_PATH", ""),
            "./config/config.yaml",
            "./config.yaml",
            str(DEFAULT_CONFIG_PATH),
        ]

        for path in possible_paths:
            if path and os.path.exists(path):
                return path

        return None

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if self._config_path is None:
            logger.warning("Configuration file not found, using defaults")
            self._config = Config()
            return

        try:
            with open(self._config_path, 'r', encoding='utf-8') as f:
                raw_config = yaml.safe_load(f) or {}

            self._config = Config(**raw_config)
            logger.info(f"Configuration loaded from {self._config_path}")

        except Exception as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
            self._config = Config()

    @property
    def config(self) -> Config:
        """Get configuration."""
        return self._config

    @property
    def config_path(self) -> Optional[str]:
        return self._config_path

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-separated key."""
        keys = key.split('.')
        value = self._config

        try:
            for k in keys:
                if hasattr(value, k):
                    value = getattr(value, k)
                elif isinstance(value, dict):
                    value = value[k]
                else:
                    return default
            return value
        except (KeyError, AttributeError):
            return default

    def reload(self) -> None:
        """Reload configuration."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Reset singleton instance."""
        cls._instance = None
        cls._config = None


def get_config() -> Config:
    """Get global configuration instance."""
    return ConfigLoader().config

"""Configuration for impactmap."""

from settings.config import (
    CONFIG_FILENAME,
    ConfigError,
    ImpactMapConfig,
    load_config,
)

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ImpactMapConfig",
    "load_config",
]

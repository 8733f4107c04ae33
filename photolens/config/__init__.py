"""Configuration management for photolens."""

from photolens.config.manager import ConfigManager, ConfigError
from photolens.config.defaults import DEFAULT_CONFIG

__all__ = ["ConfigManager", "ConfigError", "DEFAULT_CONFIG"]

"""User configuration for clubhouse."""

from .config import DEFAULT_CONFIG, AgentsSection, Config, ConfigData, ConfigError, GitSection

__all__ = ["DEFAULT_CONFIG", "AgentsSection", "Config", "ConfigData", "ConfigError", "GitSection"]

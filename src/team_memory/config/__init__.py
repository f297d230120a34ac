"""
Configuration management for the team memory server.

This package contains the pydantic configuration models, the loader that
combines YAML, .env and environment overrides, and the command-line
interface.
"""

from .config_manager import (
    AppConfig,
    ConfigManager,
    LoggingConfig,
    LogFileConfig,
    PersonalizationConfig,
    SearchConfig,
    SupermemoryConfig,
    UserConfig,
    load_config,
)

__all__ = [
    "AppConfig",
    "ConfigManager",
    "LoggingConfig",
    "LogFileConfig",
    "PersonalizationConfig",
    "SearchConfig",
    "SupermemoryConfig",
    "UserConfig",
    "load_config",
]

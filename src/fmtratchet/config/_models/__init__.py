"""Configuration models.

This module provides Pydantic models for fmtratchet configuration sections
and the main Config container class.
"""

from fmtratchet.config._models._cache import CacheConfig
from fmtratchet.config._models._common import (
    ConfigSource,
    ConfigSourceName,
    LogFormat,
    LogLevel,
)
from fmtratchet.config._models._config import Config, read_config_file
from fmtratchet.config._models._formats import FormatConfig, ProjectConfig
from fmtratchet.config._models._logging import LoggingConfig

__all__ = [
    "CacheConfig",
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "FormatConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "ProjectConfig",
    "read_config_file",
]

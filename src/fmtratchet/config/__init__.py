"""fmtratchet configuration.

This module provides the public API for fmtratchet configuration management,
including loading, validation, and typed access to configuration values.

Example:
    >>> from fmtratchet.config import Config
    >>> config = Config.load()
    >>> config.ratchet_from
    'origin/main'
"""

from fmtratchet.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG, DEFAULT_PROJECT_NAME
from ._discovery import (
    discover_sources,
    find_project_root,
    get_project_config_path,
    get_user_config_path,
)
from ._load import is_strict_mode, safe_load_config
from ._loader import (
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_pyproject_section,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    CacheConfig,
    Config,
    ConfigSource,
    ConfigSourceName,
    FormatConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    ProjectConfig,
    read_config_file,
)
from ._validation import (
    ValidationIssue,
    raise_if_validation_errors,
    validate_config,
    validate_source,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_PROJECT_NAME",
    "CacheConfig",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "FormatConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "ProjectConfig",
    "ValidationIssue",
    "deep_merge",
    "discover_sources",
    "find_project_root",
    "get_project_config_path",
    "get_user_config_path",
    "is_strict_mode",
    "parse_env_vars",
    "parse_string_value",
    "raise_if_validation_errors",
    "read_config_file",
    "read_pyproject_section",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
    "validate_config",
    "validate_source",
]

# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration container with typed access.

This module provides the main Config class that serves as the primary
interface for accessing fmtratchet configuration values.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, TypeVar, overload

from pydantic import BaseModel, ConfigDict, PrivateAttr

from fmtratchet.config._defaults import DEFAULT_CONFIG, DEFAULT_PROJECT_NAME
from fmtratchet.config._loader import (
    copy_value,
    deep_merge,
    parse_env_vars,
    read_pyproject_section,
    read_toml_file,
)
from fmtratchet.config._models._cache import CacheConfig
from fmtratchet.config._models._common import ConfigSource, ConfigSourceName
from fmtratchet.config._models._formats import FormatConfig, ProjectConfig
from fmtratchet.config._models._logging import LoggingConfig
from fmtratchet.config._validation import (
    ConfigSchema,
    parse_config,
    raise_if_validation_errors,
    validate_config,
)

if TYPE_CHECKING:
    from pathlib import Path
    from typing import Self

T = TypeVar("T")


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a configuration file, honoring the pyproject.toml layout.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    if path.name == "pyproject.toml":
        return read_pyproject_section(path)
    return read_toml_file(path)


class Config(BaseModel):
    """Configuration container with typed access.

    This class provides immutable, type-safe access to fmtratchet
    configuration. Use factory methods to create instances rather than the
    constructor.

    Example:
        >>> config = Config.from_dict({"ratchet_from": "origin/main"})
        >>> config.ratchet_from
        'origin/main'
        >>> list(config.projects)
        ['root']
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    _data: dict[str, Any] = PrivateAttr(default_factory=dict)
    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())
    _schema: ConfigSchema | None = PrivateAttr(default=None)

    def __init__(
        self,
        *,
        _data: dict[str, Any] | None = None,
        _sources: tuple[ConfigSource, ...] = (),
        _schema: ConfigSchema | None = None,
    ) -> None:
        """Initialize configuration container.

        This constructor is intended for internal use. Use factory methods
        like from_dict(), from_file(), or load() to create Config instances.

        Args:
            _data: The complete merged configuration dictionary.
            _sources: Sources that contributed to this configuration.
            _schema: The validated configuration sections.
        """
        super().__init__()
        self._data = _data if _data is not None else {}
        self._sources = _sources
        self._schema = _schema

    @classmethod
    def _build(
        cls,
        data: dict[str, Any],
        sources: tuple[ConfigSource, ...],
        *,
        source: str | None = None,
    ) -> Self:
        merged = deep_merge(DEFAULT_CONFIG, data)
        raise_if_validation_errors(validate_config(merged), source=source)
        return cls(_data=merged, _sources=sources, _schema=parse_config(merged))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary.

        Args:
            data: Dictionary of configuration values.

        Returns:
            Configuration object from the dictionary.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return cls._build(data, ())

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a specific file.

        The file may be a ``fmtratchet.toml`` or a ``pyproject.toml`` with a
        ``[tool.fmtratchet]`` table.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_config_file(path)
        source = ConfigSource(
            name=ConfigSourceName.PROJECT,
            path=path,
            exists=True,
            values=data,
        )
        return cls._build(data, (source,), source=str(path))

    @classmethod
    def load(
        cls,
        *,
        project_root: Path | None = None,
        include_env: bool = True,
        include_cli: bool = False,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Discovers all configuration sources and merges them in precedence
        order (defaults -> user -> project -> env -> cli).

        Args:
            project_root: Repository root. If None, auto-detect by searching
                upward for ``.git``.
            include_env: Include environment variables as a source.
            include_cli: Include CLI overrides.
            cli_overrides: Dict of CLI argument overrides. Only used if
                include_cli is True.

        Returns:
            Merged configuration object.

        Raises:
            ConfigLoadError: If config files cannot be loaded.
            ConfigValidationError: If merged config fails validation.
        """
        # Deferred import to avoid circular dependency
        from fmtratchet.config._discovery import discover_sources  # noqa: PLC0415

        sources = discover_sources(
            project_root=project_root,
            include_env=include_env,
            include_cli=include_cli,
            cli_overrides=cli_overrides,
        )

        # Sources are discovered highest-to-lowest, so reverse for merging
        merged: dict[str, Any] = {}
        loaded_sources: list[ConfigSource] = []

        for source in reversed(sources):
            values: dict[str, Any] = {}

            if source.name == ConfigSourceName.DEFAULT:
                values = source.values
            elif source.name == ConfigSourceName.ENV:
                values = parse_env_vars()
            elif source.name == ConfigSourceName.CLI:
                values = cli_overrides or {}
            elif source.path and source.exists:
                values = read_config_file(source.path)

            loaded_sources.append(
                ConfigSource(
                    name=source.name,
                    path=source.path,
                    exists=source.exists,
                    values=values,
                )
            )
            if values:
                merged = deep_merge(merged, values)

        return cls._build(merged, tuple(reversed(loaded_sources)))

    # =========================================================================
    # Sections
    # =========================================================================

    @property
    def sources(self) -> list[ConfigSource]:
        """Return the sources that contributed to this configuration."""
        return list(self._sources)

    @property
    def ratchet_from(self) -> str | None:
        """Return the default baseline ref, or None if ratcheting is off."""
        return self._sections.ratchet_from

    @property
    def logging(self) -> LoggingConfig:
        """Return the logging configuration section."""
        return self._sections.logging

    @property
    def cache(self) -> CacheConfig:
        """Return the task cache configuration section."""
        return self._sections.cache

    @property
    def formats(self) -> dict[str, FormatConfig]:
        """Return the configured formats by name."""
        return dict(self._sections.formats)

    @property
    def projects(self) -> dict[str, ProjectConfig]:
        """Return the configured projects by name.

        A single project named ``root`` at the repository root is returned
        when none are configured.
        """
        if not self._sections.projects:
            return {DEFAULT_PROJECT_NAME: ProjectConfig()}
        return dict(self._sections.projects)

    @property
    def _sections(self) -> ConfigSchema:
        if self._schema is None:
            return ConfigSchema()
        return self._schema

    # =========================================================================
    # Raw Access
    # =========================================================================

    @overload
    def get(self, key: str) -> Any: ...

    @overload
    def get(self, key: str, default: T) -> T: ...

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Examples:
            >>> config.get("cache.dir")
            '.fmtratchet/cache'
            >>> config.get("nonexistent", "fallback")
            'fallback'
        """
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the merged configuration dictionary."""
        return copy_value(self._data)

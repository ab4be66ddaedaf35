"""Project root and config path discovery utilities.

This module locates the repository a command runs against, and the
configuration files that apply to it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Final

import platformdirs

from fmtratchet.config._defaults import DEFAULT_CONFIG
from fmtratchet.config._models._common import ConfigSource, ConfigSourceName
from fmtratchet.exceptions import RepositoryError
from fmtratchet.repository import find_repository_root

PROJECT_CONFIG_FILE: Final = "fmtratchet.toml"
PYPROJECT_FILE: Final = "pyproject.toml"


def find_project_root(start: Path | None = None) -> Path | None:
    """Find the work tree root containing a directory, if there is one.

    Args:
        start: Directory to start searching from. Defaults to the current
            working directory.

    Returns:
        The work tree root, or None outside a Git repository.
    """
    try:
        return find_repository_root(start or Path.cwd())
    except RepositoryError:
        return None


def get_user_config_path() -> Path:
    r"""Get platform-specific user config file path.

    - Linux: ``~/.config/fmtratchet/config.toml``
    - macOS: ``~/Library/Application Support/fmtratchet/config.toml``
    - Windows: ``%APPDATA%\fmtratchet\config.toml``

    The path is returned regardless of whether the file exists.
    """
    return platformdirs.user_config_path("fmtratchet") / "config.toml"


def get_project_config_path(project_root: Path) -> Path | None:
    """Get the project configuration file of a repository.

    ``fmtratchet.toml`` wins over ``pyproject.toml``; a pyproject.toml only
    counts if it has a ``[tool.fmtratchet]`` table.

    Returns:
        Path to the file, or None if the repository has no project config.
    """
    dedicated = project_root / PROJECT_CONFIG_FILE
    if _file_exists(dedicated):
        return dedicated

    pyproject = project_root / PYPROJECT_FILE
    if _file_exists(pyproject) and _mentions_tool_table(pyproject):
        return pyproject
    return None


def _file_exists(path: Path) -> bool:
    """Check if a file exists, treating permission errors as absence."""
    try:
        return path.is_file()
    except OSError:
        return False


def _mentions_tool_table(path: Path) -> bool:
    # Cheap pre-check; the file is parsed properly when loaded
    try:
        return "tool.fmtratchet" in path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return False


def discover_sources(
    project_root: Path | None = None,
    *,
    include_env: bool = True,
    include_cli: bool = False,
    cli_overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
) -> list[ConfigSource]:
    """Discover all configuration sources.

    Sources are returned in precedence order (highest first). File-based
    sources are checked for existence; a project source is only included
    when a project root is known.

    Args:
        project_root: Repository root. If None, auto-detect by searching
            upward for ``.git``.
        include_env: Include environment variables as a source.
        include_cli: Include CLI overrides as a source.
        cli_overrides: Dictionary of CLI argument overrides. Only used
            if include_cli is True.

    Returns:
        List of ConfigSource objects in precedence order (highest first).
    """
    sources: list[ConfigSource] = []
    resolved_root = project_root if project_root else find_project_root()

    if include_cli:
        sources.append(
            ConfigSource(
                name=ConfigSourceName.CLI,
                path=None,
                exists=bool(cli_overrides),
                values=cli_overrides or {},
            )
        )

    if include_env:
        sources.append(
            ConfigSource(
                name=ConfigSourceName.ENV,
                path=None,
                exists=True,  # Values are parsed during loading
                values={},
            )
        )

    if resolved_root:
        project_path = get_project_config_path(resolved_root)
        sources.append(
            ConfigSource(
                name=ConfigSourceName.PROJECT,
                path=project_path or resolved_root / PROJECT_CONFIG_FILE,
                exists=project_path is not None,
                values={},
            )
        )

    user_path = get_user_config_path()
    sources.append(
        ConfigSource(
            name=ConfigSourceName.USER,
            path=user_path,
            exists=_file_exists(user_path),
            values={},
        )
    )

    sources.append(
        ConfigSource(
            name=ConfigSourceName.DEFAULT,
            path=None,
            exists=True,
            values=DEFAULT_CONFIG,
        )
    )

    return sources

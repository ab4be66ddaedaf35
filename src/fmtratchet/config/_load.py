"""Configuration loading with strict/lenient error handling."""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING, Any

from fmtratchet.config._loader import deep_merge
from fmtratchet.config._models import Config
from fmtratchet.exceptions import ConfigError, ConfigLoadError

if TYPE_CHECKING:
    from pathlib import Path

STRICT_CONFIG_ENV = "FMTRATCHET_STRICT_CONFIG"


def is_strict_mode() -> bool:
    """Check whether configuration errors should be fatal."""
    return os.environ.get(STRICT_CONFIG_ENV, "0") == "1"


def safe_load_config(
    *,
    config_path: Path | None = None,
    project_root: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
) -> tuple[Config, str | None]:
    """Load configuration with error handling.

    Errors are handled based on the FMTRATCHET_STRICT_CONFIG environment
    variable:
    - If unset or "0": warn to stderr and return the default config
    - If "1": re-raise as ConfigError

    When config_path is provided, the file must exist (explicit user
    request), regardless of strict mode. CLI overrides are applied on top of
    an explicit file too.

    Args:
        config_path: Explicit path to config file (--config flag).
        project_root: Repository root override (--project-root flag).
        cli_overrides: CLI argument overrides to pass to Config.load().

    Returns:
        Tuple of (Config, error_message). On success, error_message is None.
        On failure (non-strict mode), returns default Config with the message.

    Raises:
        ConfigError: If the explicit config file is missing, or loading
            fails in strict mode.
    """
    if config_path is not None and not config_path.is_file():
        msg = f"Config file not found: {config_path}"
        raise ConfigLoadError(msg, path=config_path)

    try:
        if config_path is not None:
            config = Config.from_file(config_path)
            if cli_overrides:
                config = Config.from_dict(deep_merge(config.to_dict(), cli_overrides))
            return config, None
        return (
            Config.load(
                project_root=project_root,
                include_env=True,
                include_cli=cli_overrides is not None,
                cli_overrides=cli_overrides,
            ),
            None,
        )
    except ConfigError as e:
        return _fallback(str(e), e)
    except OSError as e:
        return _fallback(f"Failed to load config: {e}", e)


def _fallback(error_msg: str, error: Exception) -> tuple[Config, str]:
    if is_strict_mode():
        if isinstance(error, ConfigError):
            raise error
        raise ConfigLoadError(error_msg) from error
    print(f"Warning: {error_msg}", file=sys.stderr)  # noqa: T201
    return Config.from_dict({}), error_msg

"""fmtratchet CLI commands."""
# pyright: reportUnusedCallResult=false

from __future__ import annotations

from typing import TYPE_CHECKING

from ._cache import app as cache_app
from ._config import app as config_app
from ._context import CLIContext, OutputFormat
from ._format import apply, check
from ._shared import (
    ExitCode,
    FormattableData,
    command_errors,
    exit_code_for,
    exit_with_error,
    format_json,
    get_error_console,
    open_workspace,
)
from ._status import key, status

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "CLIContext",
    "ExitCode",
    "FormattableData",
    "OutputFormat",
    "apply",
    "cache_app",
    "check",
    "command_errors",
    "config_app",
    "exit_code_for",
    "exit_with_error",
    "format_json",
    "get_error_console",
    "key",
    "open_workspace",
    "status",
]


def register_commands(app: App) -> None:
    app.command(check, name="check")
    app.command(apply, name="apply")
    app.command(status, name="status")
    app.command(key, name="key")
    app.command(cache_app)
    app.command(config_app)

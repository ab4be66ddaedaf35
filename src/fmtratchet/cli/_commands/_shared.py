# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes
- Mapping of library errors to exit codes
- Output formatting and console helpers
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

import orjson
from rich.markup import escape

from fmtratchet.exceptions import (
    ConfigError,
    FileAccessError,
    FmtRatchetError,
    PathOutsideRepositoryError,
    RefNotFoundError,
    RepositoryError,
    UnknownStepError,
)
from fmtratchet.workspace import Workspace

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from fmtratchet.cli._commands._context import CLIContext

# Type alias for formattable data - uses Any to match library signatures
FormattableData = dict[str, Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "command_errors",
    "exit_code_for",
    "exit_with_error",
    "format_json",
    "get_error_console",
    "open_workspace",
    "repo_path",
]


class ExitCode(IntEnum):
    """Standard exit codes for fmtratchet CLI commands."""

    SUCCESS = 0
    CHECK_FAILED = 1
    CONFIG_ERROR = 2
    RATCHET_ERROR = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5


def exit_code_for(error: BaseException) -> ExitCode:
    """Map an error raised by a command to its exit code.

    FileAccessError is an OSError as well as a ratchet error; it maps to
    IO_ERROR.
    """
    if isinstance(error, (ConfigError, UnknownStepError)):
        return ExitCode.CONFIG_ERROR
    if isinstance(error, FileAccessError):
        return ExitCode.IO_ERROR
    if isinstance(
        error, (RefNotFoundError, RepositoryError, PathOutsideRepositoryError)
    ):
        return ExitCode.RATCHET_ERROR
    if isinstance(error, OSError):
        return ExitCode.IO_ERROR
    return ExitCode.INTERNAL_ERROR


def format_json(
    data: FormattableData | list[FormattableData], *, indent: bool = True
) -> str:
    """Format data as JSON.

    Args:
        data: Data to format as JSON.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def repo_path(project_path: str, relative: str) -> str:
    """Join a project path and a project-relative path for display."""
    return f"{project_path}/{relative}" if project_path else relative


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr.

    Returns:
        Console instance writing to stderr.
    """
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to INTERNAL_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {escape(message)}")
    raise SystemExit(code)


@contextmanager
def command_errors(ctx: CLIContext) -> Iterator[None]:
    """Turn library errors raised by a command into an error line and exit code.

    Raises:
        SystemExit: If the body raises a fmtratchet error or an OSError.
    """
    try:
        yield
    except (FmtRatchetError, OSError) as e:
        code = exit_code_for(e)
        if ctx.logger is not None:
            ctx.logger.error(
                "command_failed",
                error=str(e),
                error_type=type(e).__name__,
                exit_code=int(code),
            )
        exit_with_error(str(e), code, console=ctx.error_console)


def open_workspace(ctx: CLIContext) -> Workspace:
    """Create the workspace a command operates on."""
    return Workspace(
        ctx.config,
        ctx.repository_root,
        ratchet_from=ctx.ratchet_from,
        logger=ctx.logger,
    )

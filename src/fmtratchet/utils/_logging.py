"""Logging utilities for fmtratchet.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to fmtratchet log files. Each logger is
self-contained and does not modify global structlog configuration.
"""

import logging
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]

_LOG_DIR = Path(".fmtratchet") / "logs"


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks FMTRATCHET_DEBUG first (sets DEBUG if present), then
    FMTRATCHET_LOG_LEVEL. Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("FMTRATCHET_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("FMTRATCHET_LOG_LEVEL", "info").upper(), logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, FMTRATCHET_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("FMTRATCHET_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def _create_logger(
    log_file_path: str,
    *,
    log_level: int | None = None,
    log_format: LogFormatType = "json",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger writing to the specified file.

    Args:
        log_file_path: Path to the log file (will be opened in append mode).
        log_level: Override log level (uses env vars if not specified).
        log_format: Output format, either "json" or "text".

    Returns:
        A configured FilteringBoundLogger instance.
    """
    log_path = Path(log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    effective_level = log_level if log_level is not None else _get_log_level()

    logger_factory = structlog.WriteLoggerFactory(file=log_path.open("a"))

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    wrapper_class = structlog.make_filtering_bound_logger(effective_level)

    # wrap_logger leaves the global structlog configuration untouched
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            logger_factory(),
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )


def create_silent_logger() -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger that discards everything.

    Used as the default for library classes that accept an optional logger.

    Returns:
        A FilteringBoundLogger that never emits output.
    """
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.ReturnLogger(),
            processors=[],
            wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
            context_class=dict,
        ),
    )


def get_cli_log_file(repository_root: Path) -> Path:
    """Get the default CLI log file for a repository."""
    return repository_root / _LOG_DIR / "cli.log"


def create_cli_logger(
    *,
    repository_root: Path,
    level: str = "info",
    log_format: LogFormatType = "json",
    log_file: str = "",
    command: str = "",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger for CLI commands.

    Creates a standalone structlog logger that writes structured logs to
    either a specified file or the default CLI log file at
    .fmtratchet/logs/cli.log under the repository root.

    The logger automatically binds the command name to all log entries.

    The log level can be overridden by environment variables:
    - FMTRATCHET_DEBUG: If set, enables DEBUG level logging regardless of config

    Args:
        repository_root: Root of the repository the command runs against.
        level: Log level threshold (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to log file (uses the default CLI log if empty).
            Relative paths are resolved against the repository root.
        command: Name of the CLI command for context (bound to all entries).

    Returns:
        A FilteringBoundLogger instance configured for CLI logging.
    """
    if log_file:
        effective_file = Path(log_file)
        if not effective_file.is_absolute():
            effective_file = repository_root / effective_file
    else:
        effective_file = get_cli_log_file(repository_root)
    effective_level = _log_level_from_string(level, respect_env=True)

    logger = _create_logger(
        str(effective_file),
        log_level=effective_level,
        log_format=log_format,
    )

    if command:
        return logger.bind(command=command)
    return logger

# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# pyright: reportExplicitAny=false, reportAny=false
# ruff: noqa: D415
"""Config command app for inspecting fmtratchet configuration."""

from __future__ import annotations

from typing import Annotated

from cyclopts import App, Parameter
from rich.markup import escape

from fmtratchet.cli._commands._context import CLIContext
from fmtratchet.cli._commands._shared import (
    ExitCode,
    FormattableData,
    command_errors,
    format_json,
)
from fmtratchet.config import (
    ConfigSource,
    ConfigSourceName,
    ValidationIssue,
    discover_sources,
    read_config_file,
    validate_config,
)
from fmtratchet.exceptions import ConfigLoadError

app = App(name="config", help="Inspect fmtratchet configuration", help_on_error=True)

# Sources backed by files the user edits
VALIDATABLE_SOURCES = (ConfigSourceName.PROJECT, ConfigSourceName.USER)


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------


def _validate_source_file(
    source: ConfigSource, *, strict: bool
) -> list[ValidationIssue]:
    """Validate a single config source file.

    Unknown keys are errors in strict mode and warnings otherwise.
    """
    if source.path is None:
        return []

    try:
        data = read_config_file(source.path)
    except ConfigLoadError as e:
        return [
            ValidationIssue(
                key="",
                message=f"Failed to parse file: {e}",
                expected=None,
                actual=None,
                source=source.name.value,
                severity="error",
            )
        ]

    issues: list[ValidationIssue] = []
    for issue in validate_config(data, strict=True):
        # Pydantic reports unknown keys as extra_forbidden
        is_unknown_key = "extra inputs are not permitted" in issue.message.lower()
        if is_unknown_key and not strict:
            issues.append(
                ValidationIssue(
                    key=issue.key,
                    message=f"Unknown key '{issue.key}'",
                    expected=issue.expected,
                    actual=issue.actual,
                    source=source.name.value,
                    severity="warning",
                )
            )
        else:
            issues.append(
                ValidationIssue(
                    key=issue.key,
                    message=issue.message,
                    expected=issue.expected,
                    actual=issue.actual,
                    source=source.name.value,
                    severity=issue.severity,
                )
            )
    return issues


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


@app.command(name="show")
def _show(
    *,
    sources: Annotated[
        bool,
        Parameter(name="--sources", help="Include the sources that were merged"),
    ] = False,
) -> None:
    """Show the merged configuration as JSON

    Args:
        sources: Include the sources that contributed to the configuration.
    """
    ctx = CLIContext.get_current()
    if ctx.config_error:
        ctx.error_console.print(
            f"[yellow]Warning:[/yellow] {escape(ctx.config_error)}; showing defaults"
        )

    data: FormattableData = ctx.config.to_dict()
    if sources:
        data = {
            "config": data,
            "sources": [
                {
                    "name": source.name.value,
                    "path": str(source.path) if source.path else None,
                    "exists": source.exists,
                }
                for source in ctx.config.sources
            ],
        }
    ctx.console.out(format_json(data))


@app.command(name="validate")
def _validate(
    *,
    strict: Annotated[
        bool,
        Parameter(name="--strict", help="Treat unknown keys as errors"),
    ] = False,
) -> None:
    """Validate config files against the schema

    Checks the project and user configuration files for syntax and schema
    errors. Unknown keys are reported as warnings unless --strict is used.

    Args:
        strict: If True, treat unknown keys as errors.
    """
    ctx = CLIContext.get_current()
    with command_errors(ctx):
        file_sources = [
            source
            for source in discover_sources(
                project_root=ctx.repository_root, include_env=False
            )
            if source.exists and source.name in VALIDATABLE_SOURCES
        ]

    if not file_sources:
        if not ctx.quiet:
            ctx.console.print("No config files found to validate")
        return

    errors = 0
    warnings = 0
    for source in file_sources:
        issues = _validate_source_file(source, strict=strict)
        ctx.console.print(f"{source.name.value} ({escape(str(source.path))}):")
        if not issues:
            ctx.console.print("  [green]OK[/green]")
        for issue in issues:
            key_info = f" '{escape(issue.key)}'" if issue.key else ""
            if issue.severity == "error":
                errors += 1
                ctx.console.print(
                    f"  [red]ERROR[/red]: {escape(issue.message)}{key_info}"
                )
            else:
                warnings += 1
                ctx.console.print(
                    f"  [yellow]WARNING[/yellow]: {escape(issue.message)}{key_info}"
                )

    err = "error" if errors == 1 else "errors"
    warn = "warning" if warnings == 1 else "warnings"
    ctx.console.print(f"Validation complete: {errors} {err}, {warnings} {warn}")
    if errors:
        raise SystemExit(ExitCode.CONFIG_ERROR)

# pyright: reportUnusedCallResult=false
# ruff: noqa: D415, TC003  # Path needed at runtime for cyclopts parameter parsing
"""Status and key commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.markup import escape

from fmtratchet.cli._commands._context import CLIContext, OutputFormat
from fmtratchet.cli._commands._shared import (
    command_errors,
    format_json,
    open_workspace,
    repo_path,
)

_VERDICT_STYLES = {
    "unchanged": "dim",
    "deleted": "dim",
    "missing": "dim",
    "modified": "yellow",
    "added": "green",
    "no-baseline": "magenta",
}

ProjectsOption = Annotated[
    list[str] | None,
    Parameter(
        name=["--project", "-p"], help="Only report the named project (repeatable)"
    ),
]
OutputOption = Annotated[
    OutputFormat,
    Parameter(name=["--output", "-o"], help="Output format (text, json)"),
]


def status(
    *paths: Path,
    projects: ProjectsOption = None,
    output: OutputOption = OutputFormat.TEXT,
) -> None:
    """Show how files compare to the baseline

    Prints the ratchet verdict of each file: unchanged, modified, added,
    deleted or missing. Without PATHS, every target file of every format is
    reported.

    Args:
        paths: Files to report on. Defaults to all target files.
        projects: Names of the projects to report on. Defaults to all.
        output: Output format.
    """
    ctx = CLIContext.get_current()
    with command_errors(ctx), open_workspace(ctx) as workspace:
        statuses = workspace.status(list(paths) or None, projects=projects)
        project_paths = {project.name: project.path for project in workspace.projects}

    if output is OutputFormat.JSON:
        ctx.console.out(
            format_json(
                [
                    {
                        "project": entry.project,
                        "path": repo_path(project_paths[entry.project], entry.path),
                        "verdict": entry.label,
                        "clean": entry.is_clean,
                    }
                    for entry in statuses
                ]
            )
        )
        return

    if not statuses:
        if not ctx.quiet:
            ctx.console.print("No target files.")
        return

    for entry in statuses:
        style = _VERDICT_STYLES[entry.label]
        ctx.console.print(
            f"[{style}]{entry.label:<11}[/{style}] "
            f"{escape(repo_path(project_paths[entry.project], entry.path))}"
        )


def key(
    *,
    projects: ProjectsOption = None,
    output: OutputOption = OutputFormat.TEXT,
) -> None:
    """Show each project's baseline and cache key

    The cache key is the id of the project's subtree at the baseline commit.
    Cached format results of a project are reused only while its key stays
    the same.

    Args:
        projects: Names of the projects to report on. Defaults to all.
        output: Output format.
    """
    ctx = CLIContext.get_current()
    with command_errors(ctx), open_workspace(ctx) as workspace:
        keys = workspace.keys(projects=projects)

    if output is OutputFormat.JSON:
        ctx.console.out(
            format_json(
                [
                    {
                        "project": entry.project,
                        "path": entry.path or ".",
                        "ref": entry.ref,
                        "commit": entry.commit_id,
                        "tree": entry.tree_id,
                        "cache_key": entry.cache_key,
                    }
                    for entry in keys
                ]
            )
        )
        return

    for entry in keys:
        ctx.console.print(f"[bold]{escape(entry.project)}[/bold]")
        ctx.console.print(f"  path:   {escape(entry.path or '.')}")
        ctx.console.print(f"  ref:    {escape(entry.ref or '(none)')}")
        if entry.ref is not None:
            ctx.console.print(f"  commit: {entry.commit_id}")
            ctx.console.print(f"  tree:   {entry.tree_id or '(absent)'}")
        ctx.console.print(f"  key:    {entry.cache_key}")

# pyright: reportUnusedCallResult=false
# ruff: noqa: D415
"""Check and apply commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from cyclopts import Parameter, validators
from rich.markup import escape

from fmtratchet.cli._commands._context import CLIContext
from fmtratchet.cli._commands._shared import (
    ExitCode,
    command_errors,
    open_workspace,
    repo_path,
)
from fmtratchet.format import FormatMode, TaskOutcome

if TYPE_CHECKING:
    from fmtratchet.format import TaskResult

_OUTCOME_STYLES = {
    TaskOutcome.UP_TO_DATE: "dim",
    TaskOutcome.SUCCESS: "green",
    TaskOutcome.FAILED: "red",
}

JobsOption = Annotated[
    int,
    Parameter(
        name=["--jobs", "-j"],
        help="Number of format tasks to run in parallel",
        validator=validators.Number(gte=1),
    ),
]
FormatsOption = Annotated[
    list[str] | None,
    Parameter(
        name=["--format", "-f"], help="Only run the named format (repeatable)"
    ),
]
ProjectsOption = Annotated[
    list[str] | None,
    Parameter(
        name=["--project", "-p"], help="Only run the named project (repeatable)"
    ),
]


def check(
    *,
    jobs: JobsOption = 1,
    formats: FormatsOption = None,
    projects: ProjectsOption = None,
) -> None:
    """Check that files changed since the baseline are formatted

    Runs every format task in check mode. Files that are unchanged since the
    baseline, or deleted, pass without being formatted. Exits with code 1
    when any file needs formatting.

    Args:
        jobs: Number of format tasks to run in parallel.
        formats: Names of the formats to run. Defaults to all.
        projects: Names of the projects to run. Defaults to all.
    """
    ctx = CLIContext.get_current()
    with command_errors(ctx), open_workspace(ctx) as workspace:
        results = workspace.run(
            FormatMode.CHECK, jobs=jobs, formats=formats, projects=projects
        )
        project_paths = {project.name: project.path for project in workspace.projects}

    dirty = 0
    for result in results:
        _print_result(ctx, result)
        for relative in result.dirty:
            ctx.console.print(
                f"  [red]needs formatting[/red] "
                f"{escape(repo_path(project_paths[result.project], relative))}"
            )
        dirty += len(result.dirty)

    if dirty:
        noun = "file needs" if dirty == 1 else "files need"
        ctx.error_console.print(
            f"{dirty} {noun} formatting. Run 'fmtratchet apply' to fix."
        )
        raise SystemExit(ExitCode.CHECK_FAILED)

    if not ctx.quiet:
        ctx.console.print(f"All {len(results)} format tasks passed.")


def apply(
    *,
    jobs: JobsOption = 1,
    formats: FormatsOption = None,
    projects: ProjectsOption = None,
) -> None:
    """Format files changed since the baseline

    Runs every format task in apply mode, rewriting files that need
    formatting. Files that are unchanged since the baseline are left alone.

    Args:
        jobs: Number of format tasks to run in parallel.
        formats: Names of the formats to run. Defaults to all.
        projects: Names of the projects to run. Defaults to all.
    """
    ctx = CLIContext.get_current()
    with command_errors(ctx), open_workspace(ctx) as workspace:
        results = workspace.run(
            FormatMode.APPLY, jobs=jobs, formats=formats, projects=projects
        )
        project_paths = {project.name: project.path for project in workspace.projects}

    rewritten = 0
    for result in results:
        _print_result(ctx, result)
        if ctx.quiet:
            continue
        for relative in result.dirty:
            ctx.console.print(
                f"  [green]formatted[/green] "
                f"{escape(repo_path(project_paths[result.project], relative))}"
            )
        rewritten += len(result.dirty)

    if not ctx.quiet:
        noun = "file" if rewritten == 1 else "files"
        ctx.console.print(f"Formatted {rewritten} {noun}.")


def _print_result(ctx: CLIContext, result: TaskResult) -> None:
    if ctx.quiet:
        return
    style = _OUTCOME_STYLES[result.outcome]
    line = f"{escape(result.task)} [{style}]{result.outcome.value}[/{style}]"
    if ctx.verbose:
        if result.from_cache:
            line += " (cached)"
        else:
            line += f" (checked {result.checked}, skipped {result.skipped})"
    ctx.console.print(line)

# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: D415
"""Cache command app for managing the task cache."""

from cyclopts import App
from rich.markup import escape

from fmtratchet.cli._commands._context import CLIContext
from fmtratchet.cli._commands._shared import command_errors, open_workspace

app = App(name="cache", help="Manage the task cache", help_on_error=True)


@app.command(name="clear")
def _clear() -> None:
    """Remove every cached format task result

    The next check or apply runs every task in full.
    """
    ctx = CLIContext.get_current()
    with command_errors(ctx), open_workspace(ctx) as workspace:
        workspace.cache.clear()

    if not ctx.quiet:
        directory = workspace.repository_root / ctx.config.cache.dir
        ctx.console.print(f"Cleared task cache at {escape(str(directory))}")

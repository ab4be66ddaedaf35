"""The command-line interface for fmtratchet."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from fmtratchet.config import find_project_root, safe_load_config
from fmtratchet.exceptions import ConfigError
from fmtratchet.utils._logging import create_cli_logger

from ._commands import register_commands
from ._commands._context import CLIContext
from ._commands._shared import ExitCode, exit_with_error

_HELP = "Enforce formatting only on files changed since a baseline commit."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Create the fmtratchet CLI app.

    Global options are handled by the meta app, which loads configuration
    and sets the CLIContext before dispatching to a command. Run the app with
    ``app.meta(tokens)``.

    Args:
        console: Console for command output. Defaults to stdout.
        error_console: Console for errors. Defaults to stderr.
        exit_on_error: Whether argument errors exit the process.

    Returns:
        The configured App.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="fmtratchet",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(help="Enable verbose output")] = False,
        quiet: Annotated[bool, Parameter(help="Suppress non-essential output")] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
        project_root: Annotated[
            Path | None,
            Parameter(name="--project-root", help="Path to repository root"),
        ] = None,
        ratchet_from: Annotated[
            str | None,
            Parameter(
                name="--ratchet-from",
                help="Baseline ref for every project, overriding configuration",
            ),
        ] = None,
        no_cache: Annotated[
            bool,
            Parameter(
                name="--no-cache", negative="", help="Ignore cached task results"
            ),
        ] = False,
    ) -> None:
        """Launch fmtratchet CLI with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            verbose: Enable verbose output with additional details.
            quiet: Suppress non-essential output.
            config: Explicit path to config file.
            project_root: Repository root directory, or any directory inside
                the work tree.
            ratchet_from: Baseline ref overriding every project's baseline.
            no_cache: Run every task in full without reading or writing the
                task cache.
        """
        # A subdirectory of the work tree resolves to the work tree root
        start = project_root or Path.cwd()
        repository_root = (find_project_root(start) or start).absolute()

        # Build CLI overrides from flags
        cli_overrides: dict[str, object] | None = None
        if no_cache:
            cli_overrides = {"cache": {"enabled": False}}

        # Load configuration
        try:
            loaded_config, config_error = safe_load_config(
                config_path=config,
                project_root=repository_root,
                cli_overrides=cli_overrides,
            )
        except ConfigError as e:
            exit_with_error(str(e), ExitCode.CONFIG_ERROR, console=error_console)

        # Create CLI logger from config settings
        cli_logger = create_cli_logger(
            repository_root=repository_root,
            level=loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,  # type: ignore[arg-type]
            log_file=loaded_config.logging.file,
            command=tokens[0] if tokens else "",
        )

        # Create and set CLI context
        ctx = CLIContext(
            config=loaded_config,
            repository_root=repository_root,
            console=console,
            error_console=error_console,
            verbose=verbose,
            quiet=quiet,
            ratchet_from=ratchet_from,
            config_error=config_error,
            logger=cli_logger,
        )
        CLIContext.set_current(ctx)

        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `fmtratchet` CLI."""
    app = create_app()
    app.meta()


if __name__ == "__main__":
    main()

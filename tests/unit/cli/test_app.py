import pytest
from cyclopts import App
from rich.console import Console

from fmtratchet.cli import create_app
from fmtratchet.cli._commands import register_commands

COMMANDS = ["check", "apply", "status", "key", "cache", "config"]


@pytest.mark.parametrize("name", COMMANDS)
def test_register_commands(name: str) -> None:
    app = App(name="fmtratchet")

    register_commands(app)

    assert app[name] is not None


@pytest.mark.parametrize("name", COMMANDS)
def test_app_has_commands(console: Console, name: str) -> None:
    app = create_app(console=console, error_console=console)

    assert app[name] is not None

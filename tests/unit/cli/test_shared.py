from pathlib import Path

import pytest
from pytest_mock import MockerFixture
from rich.console import Console

from fmtratchet.cli import CLIContext
from fmtratchet.cli._commands._shared import (
    ExitCode,
    command_errors,
    exit_code_for,
    exit_with_error,
    format_json,
    repo_path,
)
from fmtratchet.config import Config
from fmtratchet.exceptions import (
    ConfigLoadError,
    ConfigValidationError,
    FileAccessError,
    FormatterStepError,
    PathOutsideRepositoryError,
    RefNotFoundError,
    RepositoryError,
    UnknownStepError,
)


class TestExitCode:
    def test_values(self) -> None:
        assert [int(code) for code in ExitCode] == [0, 1, 2, 3, 4, 5]

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (ConfigLoadError("bad"), ExitCode.CONFIG_ERROR),
            (
                ConfigValidationError("bad", key="k", value=1, expected="str"),
                ExitCode.CONFIG_ERROR,
            ),
            (UnknownStepError("bad", step="x"), ExitCode.CONFIG_ERROR),
            (RefNotFoundError("bad", ref="main"), ExitCode.RATCHET_ERROR),
            (RepositoryError("bad", path=Path("/r")), ExitCode.RATCHET_ERROR),
            (
                PathOutsideRepositoryError("bad", path="../x", root="/r"),
                ExitCode.RATCHET_ERROR,
            ),
            (
                FileAccessError("bad", path=Path("a.md"), cause=None),
                ExitCode.IO_ERROR,
            ),
            (PermissionError("denied"), ExitCode.IO_ERROR),
            (
                FormatterStepError("bad", step="x", path=Path("a.md")),
                ExitCode.INTERNAL_ERROR,
            ),
            (RuntimeError("boom"), ExitCode.INTERNAL_ERROR),
        ],
    )
    def test_exit_code_for(self, error: BaseException, code: ExitCode) -> None:
        assert exit_code_for(error) is code


class TestExitWithError:
    def test_prints_and_exits(self, console: Console) -> None:
        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("it broke", ExitCode.CONFIG_ERROR, console=console)

        assert exc_info.value.code == ExitCode.CONFIG_ERROR
        assert "Error: it broke" in console.export_text()

    def test_escapes_markup(self, console: Console) -> None:
        with pytest.raises(SystemExit):
            exit_with_error("missing [bold]ref[/bold]", console=console)

        assert "[bold]ref[/bold]" in console.export_text()

    def test_defaults_to_internal_error(self, console: Console) -> None:
        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("oops", console=console)

        assert exc_info.value.code == ExitCode.INTERNAL_ERROR


class TestCommandErrors:
    def test_maps_library_errors(self, console: Console, mocker: MockerFixture) -> None:
        logger = mocker.Mock()
        ctx = CLIContext(
            config=Config.from_dict({}), error_console=console, logger=logger
        )

        with pytest.raises(SystemExit) as exc_info, command_errors(ctx):
            raise RefNotFoundError("Ref not found: gone", ref="gone")

        assert exc_info.value.code == ExitCode.RATCHET_ERROR
        assert "Ref not found: gone" in console.export_text()
        logger.error.assert_called_once()
        assert logger.error.call_args.kwargs["exit_code"] == 3

    def test_maps_os_errors(self, console: Console) -> None:
        ctx = CLIContext(config=Config.from_dict({}), error_console=console)

        with pytest.raises(SystemExit) as exc_info, command_errors(ctx):
            raise PermissionError("denied")

        assert exc_info.value.code == ExitCode.IO_ERROR

    def test_other_errors_propagate(self, console: Console) -> None:
        ctx = CLIContext(config=Config.from_dict({}), error_console=console)

        with pytest.raises(ZeroDivisionError), command_errors(ctx):
            _ = 1 / 0

    def test_no_error(self, console: Console) -> None:
        ctx = CLIContext(config=Config.from_dict({}), error_console=console)

        with command_errors(ctx):
            pass

        assert console.export_text() == ""


class TestFormatting:
    def test_format_json_indented(self) -> None:
        assert format_json({"a": 1}) == '{\n  "a": 1\n}'

    def test_format_json_compact(self) -> None:
        assert format_json([{"a": None}], indent=False) == '[{"a":null}]'

    @pytest.mark.parametrize(
        ("project", "relative", "expected"),
        [
            ("", "a.md", "a.md"),
            ("clean", "src/a.md", "clean/src/a.md"),
        ],
    )
    def test_repo_path(self, project: str, relative: str, expected: str) -> None:
        assert repo_path(project, relative) == expected

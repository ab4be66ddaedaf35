import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pytest
from rich.console import Console

from fmtratchet.cli import create_app


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


def run_git(cwd: Path, *args: str) -> str:
    """Run a git command in the given directory and return its stdout."""
    result = subprocess.run(  # noqa: S603 - Safe: running git with controlled args
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        msg = f"git {' '.join(args)} failed: {result.stderr}"
        raise RuntimeError(msg)
    return result.stdout.strip()


def init_git_repo(path: Path) -> None:
    """Initialize a git repository with a test identity on branch main."""
    run_git(path, "init", "--initial-branch=main")
    run_git(path, "config", "user.name", "Test User")
    run_git(path, "config", "user.email", "test@example.com")
    # Disable GPG signing to avoid signature issues
    run_git(path, "config", "commit.gpgsign", "false")
    run_git(path, "config", "core.autocrlf", "false")


@dataclass(frozen=True, slots=True)
class WorkTree:
    """A real git repository for a test, with helpers to edit and commit."""

    root: Path

    def write(self, relative: str, content: str | bytes) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            path.write_bytes(content.encode("utf-8"))
        else:
            path.write_bytes(content)
        return path

    def read(self, relative: str) -> str:
        return (self.root / relative).read_bytes().decode("utf-8")

    def git(self, *args: str) -> str:
        return run_git(self.root, *args)

    def commit_all(self, message: str) -> str:
        """Stage everything and commit; return the new commit id."""
        self.git("add", "--all")
        self.git("commit", "--allow-empty", "-m", message)
        return self.git("rev-parse", "HEAD")

    def tree_of(self, rev: str, path: str) -> str:
        return self.git("rev-parse", f"{rev}:{path}")


@pytest.fixture
def work_tree(tmp_path: Path) -> WorkTree:
    """Create an empty git repository."""
    root = tmp_path / "repo"
    root.mkdir()
    init_git_repo(root)
    # Logs and the task cache live in the work tree
    (root / ".git" / "info").mkdir(parents=True, exist_ok=True)
    (root / ".git" / "info" / "exclude").write_text(".fmtratchet/\n")
    return WorkTree(root)


# Two projects, each with one markdown file, as in a multi-project build
BUILD_GRADLE = "apply from: rootProject.file('spotless.gradle') // {name}"

MULTI_PROJECT_CONFIG = """\
ratchet_from = "baseline"

[formats.misc]
target = ["src/markdown/*.md"]
steps = ["lowercase"]

[projects.clean]
path = "clean"

[projects.dirty]
path = "dirty"
"""


@pytest.fixture
def multi_project(work_tree: WorkTree) -> WorkTree:
    """Create a repository with projects ``clean`` and ``dirty``.

    Both projects hold ``build.gradle`` and ``src/markdown/test.md`` with
    content ``HELLO``. The commit is tagged ``baseline``; the config file is
    committed separately afterwards.
    """
    for name in ("clean", "dirty"):
        work_tree.write(f"{name}/build.gradle", BUILD_GRADLE.format(name=name))
        work_tree.write(f"{name}/src/markdown/test.md", "HELLO")
    work_tree.commit_all("Initial projects")
    work_tree.git("tag", "baseline")
    work_tree.write("fmtratchet.toml", MULTI_PROJECT_CONFIG)
    work_tree.git("add", "fmtratchet.toml")
    work_tree.git("commit", "-m", "Add fmtratchet config")
    return work_tree


@pytest.fixture
def fmtratchet_cli(console: Console) -> Callable[..., int]:
    """Create CLI app for testing that returns the exit code.

    Arguments are passed to the meta app, so global options are parsed.
    """
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        """Run CLI app and return exit code (0 if no SystemExit)."""
        try:
            app.meta(list(args))
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run


@pytest.fixture
def run_cli(
    multi_project: WorkTree, fmtratchet_cli: Callable[..., int]
) -> Callable[..., int]:
    """Run the CLI against the multi-project repository."""

    def _run(*args: str) -> int:
        return fmtratchet_cli("--project-root", str(multi_project.root), *args)

    return _run

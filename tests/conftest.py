"""Shared test fixtures for fmtratchet tests."""

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.console import Console

from fmtratchet.cli import CLIContext
from fmtratchet.repository import FakeObjectStore


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Iterator[Path]:
    """Keep tests independent of the developer's environment.

    Removes FMTRATCHET_* variables and points the user config file into an
    empty temporary directory.

    Yields:
        The user config file path (which does not exist).
    """
    for name in list(os.environ):
        if name.startswith("FMTRATCHET_"):
            monkeypatch.delenv(name)
    user_config = tmp_path_factory.mktemp("user-config") / "config.toml"
    monkeypatch.setattr(
        "fmtratchet.config._discovery.get_user_config_path", lambda: user_config
    )
    yield user_config
    CLIContext.reset()


@pytest.fixture
def console() -> Console:
    return Console(
        width=120,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
        record=True,
    )


@pytest.fixture
def fake_store(tmp_path: Path) -> FakeObjectStore:
    """Create an in-memory object store whose work tree is tmp_path."""
    return FakeObjectStore(tmp_path)

from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

import pytest

from fmtratchet.format import Formatter, LowercaseStep


@dataclass(frozen=True, slots=True)
class ExplodingStep:
    """A step that fails on every file."""

    name: ClassVar[str] = "explode"

    @property
    def fingerprint(self) -> str:
        return self.name

    def format(self, text: str, path: Path) -> str:  # noqa: ARG002
        msg = f"cannot format {path}"
        raise RuntimeError(msg)


@pytest.fixture
def exploding_formatter() -> Formatter:
    return Formatter.of([LowercaseStep(), ExplodingStep()])

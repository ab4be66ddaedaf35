# ruff: noqa: TC003  # Path needed at runtime for method bodies
"""Formatter: an ordered chain of steps."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from fmtratchet.exceptions import FormatterStepError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fmtratchet.format._steps import FormatterStep

ENCODING = "utf-8"
ERRORS = "surrogateescape"


def decode(content: bytes) -> str:
    """Decode file bytes so that any byte sequence round-trips."""
    return content.decode(ENCODING, errors=ERRORS)


def encode(text: str) -> bytes:
    """Encode text produced by ``decode`` back to the original bytes."""
    return text.encode(ENCODING, errors=ERRORS)


@dataclass(frozen=True, slots=True)
class Formatter:
    """Apply formatter steps in order.

    Attributes:
        steps: The steps to run, first to last.
    """

    steps: tuple[FormatterStep, ...]

    @classmethod
    def of(cls, steps: Sequence[FormatterStep]) -> Formatter:
        """Create a formatter from any sequence of steps."""
        return cls(tuple(steps))

    @property
    def fingerprint(self) -> str:
        """Combined fingerprint of every step, in order."""
        return "|".join(step.fingerprint for step in self.steps)

    def format(self, text: str, path: Path) -> str:
        """Run every step over a file's text.

        Raises:
            FormatterStepError: If a step raises.
        """
        for step in self.steps:
            try:
                text = step.format(text, path)
            except Exception as e:
                msg = f"Step {step.name!r} failed on {path}: {e}"
                raise FormatterStepError(msg, step=step.name, path=path, cause=e) from e
        return text

    def format_bytes(self, content: bytes, path: Path) -> bytes:
        """Format raw file content, preserving undecodable bytes."""
        return encode(self.format(decode(content), path))

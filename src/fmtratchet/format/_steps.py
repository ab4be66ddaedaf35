"""Built-in formatter steps.

This module provides the text transformations a format can be configured
with. Each step is a small immutable object with a stable fingerprint, so a
change to a step's parameters invalidates cached task results.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

import orjson

from fmtratchet.exceptions import UnknownStepError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from pathlib import Path


@runtime_checkable
class FormatterStep(Protocol):
    """Protocol for a single formatting transformation."""

    @property
    def name(self) -> str:
        """Registered name of the step."""
        ...

    @property
    def fingerprint(self) -> str:
        """Stable string that changes whenever the step's behavior does."""
        ...

    def format(self, text: str, path: Path) -> str:
        """Transform the content of one file.

        Args:
            text: Current file content.
            path: Path of the file being formatted.

        Returns:
            The formatted content.
        """
        ...


def _fingerprint(name: str, params: Mapping[str, object]) -> str:
    if not params:
        return name
    return f"{name}:{orjson.dumps(params, option=orjson.OPT_SORT_KEYS).decode()}"


# =============================================================================
# Step Implementations
# =============================================================================


@dataclass(frozen=True, slots=True)
class LowercaseStep:
    """Convert the whole file to lower case."""

    name: ClassVar[str] = "lowercase"

    @property
    def fingerprint(self) -> str:
        return _fingerprint(self.name, {})

    def format(self, text: str, path: Path) -> str:  # noqa: ARG002
        return text.lower()


@dataclass(frozen=True, slots=True)
class TrimTrailingWhitespaceStep:
    """Strip spaces and tabs from the end of every line."""

    name: ClassVar[str] = "trim_trailing_whitespace"

    _PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"[ \t]+(?=\r?\n|$)")

    @property
    def fingerprint(self) -> str:
        return _fingerprint(self.name, {})

    def format(self, text: str, path: Path) -> str:  # noqa: ARG002
        return self._PATTERN.sub("", text)


@dataclass(frozen=True, slots=True)
class EndWithNewlineStep:
    """Make a non-empty file end with exactly one newline."""

    name: ClassVar[str] = "end_with_newline"

    @property
    def fingerprint(self) -> str:
        return _fingerprint(self.name, {})

    def format(self, text: str, path: Path) -> str:  # noqa: ARG002
        stripped = text.rstrip("\r\n")
        if not stripped:
            return ""
        return stripped + "\n"


@dataclass(frozen=True, slots=True)
class IndentWithSpacesStep:
    """Replace leading tabs with spaces.

    Attributes:
        size: Number of spaces per tab.
    """

    name: ClassVar[str] = "indent_with_spaces"

    size: int = 4

    def __post_init__(self) -> None:
        _require_positive(self.name, "size", self.size)

    @property
    def fingerprint(self) -> str:
        return _fingerprint(self.name, {"size": self.size})

    def format(self, text: str, path: Path) -> str:  # noqa: ARG002
        lines = text.splitlines(keepends=True)
        return "".join(_reindent(line, self.size, use_tabs=False) for line in lines)


@dataclass(frozen=True, slots=True)
class IndentWithTabsStep:
    """Replace leading runs of spaces with tabs.

    Attributes:
        size: Number of spaces that make up one tab.
    """

    name: ClassVar[str] = "indent_with_tabs"

    size: int = 4

    def __post_init__(self) -> None:
        _require_positive(self.name, "size", self.size)

    @property
    def fingerprint(self) -> str:
        return _fingerprint(self.name, {"size": self.size})

    def format(self, text: str, path: Path) -> str:  # noqa: ARG002
        lines = text.splitlines(keepends=True)
        return "".join(_reindent(line, self.size, use_tabs=True) for line in lines)


@dataclass(frozen=True, slots=True)
class ReplaceStep:
    """Replace every occurrence of a literal string.

    Attributes:
        find: The text to search for.
        replacement: The text to substitute.
    """

    name: ClassVar[str] = "replace"

    find: str
    replacement: str = ""

    def __post_init__(self) -> None:
        if not self.find:
            msg = "Step 'replace' requires a non-empty 'find'"
            raise ValueError(msg)

    @property
    def fingerprint(self) -> str:
        return _fingerprint(
            self.name, {"find": self.find, "replacement": self.replacement}
        )

    def format(self, text: str, path: Path) -> str:  # noqa: ARG002
        return text.replace(self.find, self.replacement)


@dataclass(frozen=True, slots=True)
class ReplaceRegexStep:
    """Replace every match of a regular expression.

    The pattern is compiled in multiline mode. The replacement may use
    group references such as ``\\1``.

    Attributes:
        pattern: Regular expression to search for.
        replacement: Substitution template.
    """

    name: ClassVar[str] = "replace_regex"

    pattern: str
    replacement: str = ""
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            compiled = re.compile(self.pattern, re.MULTILINE)
        except re.error as e:
            msg = f"Step 'replace_regex' has an invalid pattern {self.pattern!r}: {e}"
            raise ValueError(msg) from e
        object.__setattr__(self, "_compiled", compiled)

    @property
    def fingerprint(self) -> str:
        return _fingerprint(
            self.name, {"pattern": self.pattern, "replacement": self.replacement}
        )

    def format(self, text: str, path: Path) -> str:  # noqa: ARG002
        return self._compiled.sub(self.replacement, text)


# =============================================================================
# Step Construction
# =============================================================================

_STEP_DISPATCH: dict[str, Callable[..., FormatterStep]] = {
    LowercaseStep.name: LowercaseStep,
    TrimTrailingWhitespaceStep.name: TrimTrailingWhitespaceStep,
    EndWithNewlineStep.name: EndWithNewlineStep,
    IndentWithSpacesStep.name: IndentWithSpacesStep,
    IndentWithTabsStep.name: IndentWithTabsStep,
    ReplaceStep.name: ReplaceStep,
    ReplaceRegexStep.name: ReplaceRegexStep,
}


def available_steps() -> list[str]:
    """Get the names of all built-in steps, sorted."""
    return sorted(_STEP_DISPATCH)


def build_step(spec: str | Mapping[str, object]) -> FormatterStep:
    """Create a step from its configuration.

    Args:
        spec: Either a bare step name, or a mapping with a ``name`` key and
            the step's parameters.

    Returns:
        The configured step.

    Raises:
        UnknownStepError: If the step name is not registered.
        ValueError: If the parameters are invalid for the step.

    Example:
        >>> build_step({"name": "replace", "find": "a", "replacement": "b"})
        ReplaceStep(find='a', replacement='b')
    """
    if isinstance(spec, str):
        step_name, params = spec, {}
    else:
        params = dict(spec)
        step_name = str(params.pop("name", ""))

    factory = _STEP_DISPATCH.get(step_name)
    if factory is None:
        known = ", ".join(available_steps())
        msg = f"Unknown formatter step {step_name!r} (available: {known})"
        raise UnknownStepError(msg, step=step_name)

    try:
        return factory(**params)
    except TypeError as e:
        msg = f"Invalid parameters for step {step_name!r}: {e}"
        raise ValueError(msg) from e


def build_steps(specs: Iterable[str | Mapping[str, object]]) -> list[FormatterStep]:
    """Create steps from a list of configurations, preserving order."""
    return [build_step(spec) for spec in specs]


# =============================================================================
# Private Helpers
# =============================================================================


def _require_positive(step: str, key: str, value: int) -> None:
    if value < 1:
        msg = f"Step {step!r} requires a positive {key!r}, got {value}"
        raise ValueError(msg)


def _reindent(line: str, size: int, *, use_tabs: bool) -> str:
    body = line.lstrip(" \t")
    indent = line[: len(line) - len(body)]
    if not indent or body in {"", "\n", "\r\n"}:
        return line
    width = 0
    for char in indent:
        width = (width // size + 1) * size if char == "\t" else width + 1
    if use_tabs:
        tabs, spaces = divmod(width, size)
        return "\t" * tabs + " " * spaces + body
    return " " * width + body

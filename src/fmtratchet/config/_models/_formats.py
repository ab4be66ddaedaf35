"""Format and project configuration models.

This module provides Pydantic models for the ``[formats.<name>]`` and
``[projects.<name>]`` tables.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fmtratchet.exceptions import PathOutsideRepositoryError, UnknownStepError
from fmtratchet.format import build_step
from fmtratchet.repository import normalize_repo_path


class FormatConfig(BaseModel):
    """A named format: which files to format and with which steps."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    target: list[str] = Field(
        default_factory=list,
        description="Gitignore-style patterns selecting files, project-relative.",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Gitignore-style patterns removing files from the target.",
    )
    steps: list[str | dict[str, Any]] = Field(  # pyright: ignore[reportExplicitAny]
        default_factory=list,
        description="Formatter steps, as names or tables with a 'name' key.",
    )
    version: int = Field(
        default=1,
        ge=1,
        description="Bump to invalidate cached results after a behavior change.",
    )

    @field_validator("steps")
    @classmethod
    def _check_steps(
        cls,
        value: list[str | dict[str, Any]],  # pyright: ignore[reportExplicitAny]
    ) -> list[str | dict[str, Any]]:  # pyright: ignore[reportExplicitAny]
        for spec in value:
            try:
                _ = build_step(spec)
            except UnknownStepError as e:
                raise ValueError(str(e)) from e
        return value


class ProjectConfig(BaseModel):
    """A project: a directory of the repository with its own baseline."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    path: str = Field(
        default=".",
        description="Repository-relative project directory ('.' for the root).",
    )
    ratchet_from: str | None = Field(
        default=None,
        description="Baseline ref overriding the top-level ratchet_from.",
    )

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        try:
            return normalize_repo_path(value) or "."
        except PathOutsideRepositoryError as e:
            msg = f"Project path must stay inside the repository: {value!r}"
            raise ValueError(msg) from e

    @field_validator("ratchet_from", mode="before")
    @classmethod
    def _coerce_ref(cls, value: object) -> object:
        # Numeric abbreviated SHAs arrive as ints from environment parsing
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def repo_path(self) -> str:
        """Project path in normalized form ("" for the root)."""
        return normalize_repo_path(self.path)

# pyright: reportAny=false, reportExplicitAny=false, reportUnknownArgumentType=false, reportUnknownMemberType=false, reportUnknownParameterType=false, reportUnknownVariableType=false
"""Configuration validation using Pydantic schemas.

This module validates fmtratchet configuration dictionaries. It uses the
frozen Pydantic models from _models/ and provides a strict variant that
rejects unknown keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fmtratchet.config._models._cache import CacheConfig
from fmtratchet.config._models._formats import FormatConfig, ProjectConfig
from fmtratchet.config._models._logging import LoggingConfig
from fmtratchet.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails

    from fmtratchet.config._models._common import ConfigSource


# -----------------------------------------------------------------------------
# Validation Issue
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """Represents a configuration validation issue.

    Attributes:
        key: Dotted path to the configuration key (e.g., "logging.level").
        message: Human-readable description of the issue.
        expected: Description of expected value or type, if available.
        actual: The actual value that caused the issue.
        source: Name of the ConfigSource where the issue was found, or None.
        severity: Whether this is an error or warning.
    """

    key: str
    message: str
    expected: str | None
    actual: Any
    source: str | None
    severity: Literal["error", "warning"]


# -----------------------------------------------------------------------------
# Pydantic Schemas
# -----------------------------------------------------------------------------


class ConfigSchema(BaseModel):
    """Pydantic schema for root configuration (lenient mode)."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    ratchet_from: str | None = Field(
        default=None,
        description="Baseline ref. Omit to disable ratcheting.",
    )
    logging: LoggingConfig = LoggingConfig()
    cache: CacheConfig = CacheConfig()
    formats: dict[str, FormatConfig] = Field(default_factory=dict)
    projects: dict[str, ProjectConfig] = Field(default_factory=dict)

    @field_validator("ratchet_from", mode="before")
    @classmethod
    def _coerce_ref(cls, value: object) -> object:
        # Numeric abbreviated SHAs arrive as ints from environment parsing
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class LoggingConfigStrict(LoggingConfig):
    """Pydantic schema for logging configuration section (strict mode)."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")


class CacheConfigStrict(CacheConfig):
    """Pydantic schema for cache configuration section (strict mode)."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")


class FormatConfigStrict(FormatConfig):
    """Pydantic schema for a format table (strict mode)."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")


class ProjectConfigStrict(ProjectConfig):
    """Pydantic schema for a project table (strict mode)."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")


class ConfigSchemaStrict(ConfigSchema):
    """Pydantic schema for root configuration (strict mode)."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    logging: LoggingConfigStrict = LoggingConfigStrict()
    cache: CacheConfigStrict = CacheConfigStrict()
    formats: dict[str, FormatConfigStrict] = Field(default_factory=dict)
    projects: dict[str, ProjectConfigStrict] = Field(default_factory=dict)


# -----------------------------------------------------------------------------
# Validation Functions
# -----------------------------------------------------------------------------


def _pydantic_error_to_issue(
    error: ErrorDetails,
    source: str | None,
) -> ValidationIssue:
    """Convert a Pydantic error dict to a ValidationIssue."""
    loc = error.get("loc", ())
    key = ".".join(str(part) for part in loc)

    ctx = error.get("ctx")
    expected: str | None = None
    if ctx is not None:
        if "expected" in ctx:
            expected = str(ctx["expected"])
        elif "pattern" in ctx:
            expected = f"pattern: {ctx['pattern']}"

    return ValidationIssue(
        key=key,
        message=str(error.get("msg", "Validation error")),
        expected=expected,
        actual=error.get("input"),
        source=source,
        severity="error",
    )


def parse_config(config: dict[str, Any]) -> ConfigSchema:
    """Parse a merged configuration dictionary into typed sections.

    Raises:
        ConfigValidationError: If the configuration is invalid.
    """
    try:
        return ConfigSchema.model_validate(config)
    except ValidationError as e:
        issues = [_pydantic_error_to_issue(err, source=None) for err in e.errors()]
        raise_if_validation_errors(issues)
        raise


def validate_config(
    config: dict[str, Any],
    *,
    strict: bool = False,
) -> list[ValidationIssue]:
    """Validate a merged configuration dictionary.

    Args:
        config: The merged configuration dictionary to validate.
        strict: If True, unknown keys are errors. If False, they are ignored.

    Returns:
        List of ValidationIssue objects. Empty list indicates valid config.
    """
    schema_class = ConfigSchemaStrict if strict else ConfigSchema

    try:
        _ = schema_class.model_validate(config)
    except ValidationError as e:
        return [_pydantic_error_to_issue(err, source=None) for err in e.errors()]
    else:
        return []


def validate_source(source: ConfigSource) -> list[ValidationIssue]:
    """Validate a single ConfigSource's values.

    Returns:
        List of ValidationIssue objects tagged with source.name.
        Empty list if source is empty, doesn't exist, or is valid.
    """
    if not source.exists or not source.values:
        return []

    try:
        _ = ConfigSchema.model_validate(source.values)
    except ValidationError as e:
        return [
            _pydantic_error_to_issue(err, source=source.name.value)
            for err in e.errors()
        ]
    else:
        return []


def raise_if_validation_errors(
    issues: list[ValidationIssue],
    source: str | None = None,
) -> None:
    """Raise ConfigValidationError for the first error in a list of issues.

    Args:
        issues: List of ValidationIssue objects to check.
        source: Optional source string to use in the exception.
            If not provided, uses the source from the first error.

    Raises:
        ConfigValidationError: If any issues have severity="error".
    """
    errors = [i for i in issues if i.severity == "error"]
    if errors:
        issue = errors[0]
        msg = f"Invalid configuration value for '{issue.key}': {issue.message}"
        raise ConfigValidationError(
            msg,
            key=issue.key,
            value=issue.actual,
            expected=issue.expected or issue.message,
            source=source or issue.source,
        )

"""fmtratchet exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class FmtRatchetError(Exception):
    """Base exception for fmtratchet errors."""


class ConfigError(FmtRatchetError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Ratchet Exceptions
# =============================================================================


class RatchetError(FmtRatchetError):
    """Base exception for ratchet errors."""


class RefNotFoundError(RatchetError, KeyError):
    """Raised when the baseline ref does not resolve to a commit.

    Attributes:
        ref: The ref string that could not be resolved.
        repository: Root of the repository that was searched.
    """

    def __init__(
        self, message: str, *, ref: str, repository: Path | None = None
    ) -> None:
        """Initialize with error message and ref context.

        Args:
            message: Human-readable error message.
            ref: The ref string that could not be resolved.
            repository: Root of the repository that was searched.
        """
        super().__init__(message)
        self.ref: str = ref
        self.repository: Path | None = repository

    def __str__(self) -> str:
        # KeyError.__str__ repr()s the message
        return str(self.args[0]) if self.args else ""


class RepositoryError(RatchetError):
    """Raised when the repository is missing, invalid, or corrupted.

    Attributes:
        path: Path that was expected to contain a repository.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and repository context.

        Args:
            message: Human-readable error message.
            path: Path that was expected to contain a repository.
            cause: The underlying exception, if any.
        """
        super().__init__(message)
        self.path: Path = path
        self.cause: Exception | None = cause


class FileAccessError(RatchetError, OSError):
    """Raised when a working file exists but cannot be read.

    Attributes:
        path: Path to the file that could not be read.
        cause: The underlying OS error.
    """

    def __init__(self, message: str, *, path: Path, cause: OSError | None) -> None:
        """Initialize with error message and file context.

        Args:
            message: Human-readable error message.
            path: Path to the file that could not be read.
            cause: The underlying OS error.
        """
        super().__init__(message)
        self.path: Path = path
        self.cause: OSError | None = cause

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class PathOutsideRepositoryError(RatchetError, ValueError):
    """Raised when a path escapes the repository or project it is scoped to.

    Attributes:
        path: The offending path.
        root: The directory the path was expected to be inside of.
    """

    def __init__(self, message: str, *, path: Path | str, root: Path | str) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The offending path.
            root: The directory the path was expected to be inside of.
        """
        super().__init__(message)
        self.path: Path | str = path
        self.root: Path | str = root


# =============================================================================
# Format Exceptions
# =============================================================================


class FormatError(FmtRatchetError):
    """Base exception for formatting errors."""


class UnknownStepError(FormatError, KeyError):
    """Raised when a configured formatter step does not exist.

    Attributes:
        step: The step name that was not found.
    """

    def __init__(self, message: str, *, step: str) -> None:
        """Initialize with error message and step context."""
        super().__init__(message)
        self.step: str = step

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class FormatterStepError(FormatError):
    """Raised when a formatter step fails on a file.

    Attributes:
        step: Name of the step that failed.
        path: File being formatted.
        cause: The underlying exception.
    """

    def __init__(
        self,
        message: str,
        *,
        step: str,
        path: Path,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and step context."""
        super().__init__(message)
        self.step: str = step
        self.path: Path = path
        self.cause: Exception | None = cause

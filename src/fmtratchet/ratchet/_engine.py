# ruff: noqa: TC003  # Path needed at runtime for method bodies
"""Ratchet engine.

Decides, for a single working file, whether it differs from its counterpart
in the baseline tree. Only the working file bytes and the baseline blob are
compared; the git index plays no part.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias

from fmtratchet.exceptions import FileAccessError
from fmtratchet.ratchet._models import BaselineHandle, Verdict
from fmtratchet.repository import relative_to_root
from fmtratchet.utils._logging import create_silent_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from fmtratchet.repository import ObjectStoreProtocol

_Content: TypeAlias = tuple[bytes, bool]


class RatchetEngine:
    """Per-project decision engine.

    Verdicts are a pure function of the baseline and the working file bytes
    at the time of the call. The engine holds no mutable state, so it can be
    shared by concurrent formatting workers.

    | Working file | Baseline blob | Verdict   | Clean |
    |--------------|---------------|-----------|-------|
    | absent       | absent        | MISSING   | yes   |
    | absent       | present       | DELETED   | yes   |
    | present      | absent        | ADDED     | no    |
    | present      | equal bytes   | UNCHANGED | yes   |
    | present      | other bytes   | MODIFIED  | no    |

    Symbolic links compare by link target, and a link that replaced a
    regular file (or the reverse) is MODIFIED.
    """

    __slots__ = ("_baseline", "_logger", "_project_dir", "_store")

    def __init__(
        self,
        store: ObjectStoreProtocol,
        baseline: BaselineHandle,
        project_dir: Path,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Repository holding the baseline objects.
            baseline: The project's resolved baseline.
            project_dir: Absolute directory of the project in the work tree.
            logger: Logger for per-file verdicts at debug level.
        """
        self._store: ObjectStoreProtocol = store
        self._baseline: BaselineHandle = baseline
        self._project_dir: Path = project_dir
        self._logger: FilteringBoundLogger = logger or create_silent_logger()

    @property
    def baseline(self) -> BaselineHandle:
        """The baseline this engine compares against."""
        return self._baseline

    @property
    def project_dir(self) -> Path:
        """The project directory in the work tree."""
        return self._project_dir

    def is_clean(self, path: Path | str) -> bool:
        """Check whether a file may be skipped by the formatter.

        Args:
            path: File path, absolute or relative to the project directory.

        Returns:
            True if the file is unchanged, deleted, or missing relative to
            the baseline.

        Raises:
            PathOutsideRepositoryError: If the path is outside the project.
            FileAccessError: If the file exists but cannot be read.
            RepositoryError: If a baseline object cannot be read.
        """
        return self.verdict(path).is_clean

    def verdict(self, path: Path | str) -> Verdict:
        """Classify a file relative to the baseline.

        Args:
            path: File path, absolute or relative to the project directory.

        Returns:
            The verdict for the file.

        Raises:
            PathOutsideRepositoryError: If the path is outside the project.
            FileAccessError: If the file exists but cannot be read.
            RepositoryError: If a baseline object cannot be read.
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self._project_dir / candidate
        relative = relative_to_root(candidate, self._project_dir)

        working = self._read_working(candidate)
        baseline = self._read_baseline(relative)

        if working is None:
            verdict = Verdict.MISSING if baseline is None else Verdict.DELETED
        elif baseline is None:
            verdict = Verdict.ADDED
        elif working == baseline:
            verdict = Verdict.UNCHANGED
        else:
            verdict = Verdict.MODIFIED

        self._logger.debug(
            "ratchet_verdict",
            project=self._baseline.project_path,
            path=relative,
            verdict=verdict.value,
        )
        return verdict

    def _read_baseline(self, relative: str) -> _Content | None:
        tree_id = self._baseline.tree_id
        if tree_id is None or not relative:
            return None
        content = self._store.blob_at(tree_id, relative)
        if content is None:
            return None
        return content, self._store.is_symlink(tree_id, relative)

    def _read_working(self, path: Path) -> _Content | None:
        """Read a working file's bytes, or its link target for a symlink.

        Raises:
            FileAccessError: If the path exists but cannot be read.
        """
        try:
            if path.is_symlink():
                return os.fsencode(os.readlink(path)), True
            return path.read_bytes(), False
        except (FileNotFoundError, NotADirectoryError):
            return None
        except IsADirectoryError as e:
            msg = f"Expected a file but found a directory: {path}"
            raise FileAccessError(msg, path=path, cause=e) from e
        except OSError as e:
            msg = f"Cannot read {path}: {e.strerror or e}"
            raise FileAccessError(msg, path=path, cause=e) from e

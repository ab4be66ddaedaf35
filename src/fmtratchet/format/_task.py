# ruff: noqa: TC003  # Path needed at runtime for method bodies
"""Format tasks.

A format task runs one formatter over the target files of one project. Files
the ratchet reports clean are skipped, and the task's result is cached under a
fingerprint that includes the project's ratchet cache key.
"""

from __future__ import annotations

import hashlib
import os
import stat
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Final

import orjson
from pathspec import GitIgnoreSpec

from fmtratchet.exceptions import FileAccessError
from fmtratchet.format._cache import CacheEntry
from fmtratchet.utils._logging import create_silent_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from structlog.typing import FilteringBoundLogger

    from fmtratchet.format._cache import TaskCacheProtocol
    from fmtratchet.format._formatter import Formatter
    from fmtratchet.ratchet import RatchetSession

# Directories never searched for targets
_SKIPPED_DIRS: Final = frozenset({".git", ".fmtratchet"})


class FormatMode(StrEnum):
    """What a format task does with files that need formatting."""

    CHECK = "check"
    """Report dirty files without touching them."""

    APPLY = "apply"
    """Rewrite dirty files with the formatter's output."""


class TaskOutcome(StrEnum):
    """Outcome of running a format task."""

    UP_TO_DATE = "up-to-date"
    """Nothing the result depends on changed since the last clean run."""

    SUCCESS = "success"
    """The task ran and passed, or applied its changes."""

    FAILED = "failed"
    """A check found files that need formatting."""


@dataclass(frozen=True, slots=True)
class TaskResult:
    """Result of one format task run.

    Attributes:
        task: Task id (``<format>@<project>``).
        project: Project name.
        mode: The mode the task ran in.
        outcome: The task outcome.
        dirty: Project-relative paths that needed formatting. In apply mode,
            these are the files that were rewritten.
        checked: Number of files passed through the formatter.
        skipped: Number of files skipped because the ratchet reports them
            clean.
        from_cache: Whether the result was reused from the task cache.
    """

    task: str
    project: str
    mode: FormatMode
    outcome: TaskOutcome
    dirty: tuple[str, ...] = ()
    checked: int = 0
    skipped: int = 0
    from_cache: bool = False

    @property
    def passed(self) -> bool:
        """Whether the task left no unformatted files behind."""
        return self.outcome is not TaskOutcome.FAILED


@dataclass(frozen=True, slots=True)
class FormatTargets:
    """Gitignore-style include and exclude patterns for a format.

    Patterns are matched against project-relative POSIX paths.

    Attributes:
        include: Patterns selecting files to format.
        exclude: Patterns removing files from the selection.
    """

    include: tuple[str, ...]
    exclude: tuple[str, ...] = ()

    def collect(self, project_dir: Path, skip_dirs: Iterable[str] = ()) -> list[str]:
        """Find the target files below a project directory.

        Symbolic links are never targets, and ``.git`` and ``.fmtratchet``
        directories are not searched.

        Args:
            project_dir: Directory to search.
            skip_dirs: Project-relative directories to leave out, such as
                nested projects.

        Returns:
            Sorted project-relative paths.
        """
        include = GitIgnoreSpec.from_lines(self.include)
        exclude = GitIgnoreSpec.from_lines(self.exclude)
        skipped = set(skip_dirs)

        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(project_dir):
            relative_dir = Path(dirpath).relative_to(project_dir).as_posix()
            prefix = "" if relative_dir == "." else f"{relative_dir}/"
            dirnames[:] = sorted(
                name
                for name in dirnames
                if name not in _SKIPPED_DIRS and f"{prefix}{name}" not in skipped
            )
            for filename in filenames:
                relative = f"{prefix}{filename}"
                if (Path(dirpath) / filename).is_symlink():
                    continue
                if include.match_file(relative) and not exclude.match_file(relative):
                    found.append(relative)
        return sorted(found)


class FormatTask:
    """One format applied to one project.

    The task consults the ratchet session before running the formatter on a
    file: clean files pass in check mode and are left alone in apply mode.

    Example:
        >>> task = FormatTask(
        ...     "misc", "clean", root / "clean", formatter,
        ...     FormatTargets(("src/markdown/*.md",)), session, cache,
        ... )
        >>> task.run(FormatMode.CHECK).outcome
        <TaskOutcome.SUCCESS: 'success'>
    """

    def __init__(  # noqa: PLR0913
        self,
        name: str,
        project_name: str,
        project_dir: Path,
        formatter: Formatter,
        targets: FormatTargets,
        ratchet: RatchetSession,
        cache: TaskCacheProtocol,
        *,
        version: int = 1,
        skip_dirs: Sequence[str] = (),
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the task.

        Args:
            name: Format name.
            project_name: Name of the project the task belongs to.
            project_dir: Absolute directory of the project.
            formatter: Formatter to run over dirty files.
            targets: Patterns selecting the files to format.
            ratchet: Session deciding which files are clean.
            cache: Storage for task results.
            version: Bumped by configuration when a step's behavior changes
                in a way its fingerprint does not capture.
            skip_dirs: Project-relative directories owned by other projects.
            logger: Logger for task progress.
        """
        self.name: str = name
        self.project_name: str = project_name
        self.project_dir: Path = project_dir
        self.formatter: Formatter = formatter
        self.targets: FormatTargets = targets
        self.version: int = version
        self._ratchet: RatchetSession = ratchet
        self._cache: TaskCacheProtocol = cache
        self._skip_dirs: tuple[str, ...] = tuple(skip_dirs)
        self._project_path: str = ratchet.project_of(project_dir)
        base_logger = logger or create_silent_logger()
        self._logger: FilteringBoundLogger = base_logger.bind(task=self.task_id)

    @property
    def task_id(self) -> str:
        """Identity of the task in the cache."""
        return f"{self.name}@{self.project_name}"

    def collect_files(self) -> list[str]:
        """List the task's target files, project-relative and sorted."""
        return self.targets.collect(self.project_dir, self._skip_dirs)

    def run(self, mode: FormatMode) -> TaskResult:
        """Run the task.

        Args:
            mode: Whether to only report dirty files or to rewrite them.

        Returns:
            The task result.

        Raises:
            RefNotFoundError: If the project's baseline ref does not resolve.
            RepositoryError: If the repository cannot be read.
            FileAccessError: If a target file cannot be read or written.
            FormatterStepError: If a formatter step fails.
        """
        files = self.collect_files()
        ratchet_key = self._ratchet.cache_key_for(self._project_path)
        contents = {relative: self._read(relative) for relative in files}
        fingerprint = self._fingerprint(ratchet_key, contents)

        cached = self._cache.get(self.task_id)
        if cached is not None and cached.fingerprint == fingerprint:
            if not cached.dirty:
                self._logger.debug("task_up_to_date", fingerprint=fingerprint)
                return self._result(mode, TaskOutcome.UP_TO_DATE, from_cache=True)
            if mode is FormatMode.CHECK:
                self._logger.debug("task_failed_from_cache", dirty=len(cached.dirty))
                return self._result(
                    mode, TaskOutcome.FAILED, dirty=cached.dirty, from_cache=True
                )

        formatted: dict[str, bytes] = {}
        skipped = 0
        for relative, content in contents.items():
            path = self.project_dir / relative
            if self._ratchet.is_clean(self._project_path, path):
                skipped += 1
                continue
            output = self.formatter.format_bytes(content, path)
            if output != content:
                formatted[relative] = output

        dirty = tuple(formatted)
        checked = len(contents) - skipped

        if mode is FormatMode.APPLY:
            for relative, output in formatted.items():
                self._write(relative, output)
            contents.update(formatted)
            self._cache.put(
                self.task_id, CacheEntry(self._fingerprint(ratchet_key, contents))
            )
            self._logger.info(
                "task_applied", rewritten=len(dirty), checked=checked, skipped=skipped
            )
            return self._result(
                mode, TaskOutcome.SUCCESS, dirty=dirty, checked=checked, skipped=skipped
            )

        self._cache.put(self.task_id, CacheEntry(fingerprint, dirty))
        outcome = TaskOutcome.FAILED if dirty else TaskOutcome.SUCCESS
        self._logger.info(
            "task_checked",
            outcome=outcome.value,
            dirty=len(dirty),
            checked=checked,
            skipped=skipped,
        )
        return self._result(
            mode, outcome, dirty=dirty, checked=checked, skipped=skipped
        )

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _fingerprint(self, ratchet_key: str, contents: dict[str, bytes]) -> str:
        """Hash everything a task result depends on."""
        document = {
            "task": self.task_id,
            "formatter": self.formatter.fingerprint,
            "version": self.version,
            "ratchet": ratchet_key,
            "files": [
                [relative, hashlib.sha256(content).hexdigest()]
                for relative, content in sorted(contents.items())
            ],
        }
        return hashlib.sha256(orjson.dumps(document)).hexdigest()

    def _read(self, relative: str) -> bytes:
        path = self.project_dir / relative
        try:
            return path.read_bytes()
        except OSError as e:
            msg = f"Cannot read {path}: {e.strerror or e}"
            raise FileAccessError(msg, path=path, cause=e) from e

    def _write(self, relative: str, content: bytes) -> None:
        """Replace a file's content atomically, keeping its permissions.

        Raises:
            FileAccessError: If the file cannot be written.
        """
        path = self.project_dir / relative
        tmp_path: Path | None = None
        try:
            mode = stat.S_IMODE(path.stat().st_mode)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as handle:
                _ = handle.write(content)
            os.chmod(tmp_path, mode)
            _ = tmp_path.replace(path)
        except OSError as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            msg = f"Cannot write {path}: {e.strerror or e}"
            raise FileAccessError(msg, path=path, cause=e) from e
        self._logger.debug("file_rewritten", path=relative)

    def _result(
        self,
        mode: FormatMode,
        outcome: TaskOutcome,
        *,
        dirty: tuple[str, ...] = (),
        checked: int = 0,
        skipped: int = 0,
        from_cache: bool = False,
    ) -> TaskResult:
        return TaskResult(
            task=self.task_id,
            project=self.project_name,
            mode=mode,
            outcome=outcome,
            dirty=dirty,
            checked=checked,
            skipped=skipped,
            from_cache=from_cache,
        )


def run_tasks(
    tasks: Sequence[FormatTask], mode: FormatMode, *, jobs: int = 1
) -> list[TaskResult]:
    """Run format tasks and collect their results.

    Args:
        tasks: The tasks to run.
        mode: Mode passed to every task.
        jobs: Number of worker threads. 1 runs the tasks in order on the
            calling thread.

    Returns:
        One result per task, in task order.

    Raises:
        Exception: The first error raised by a task, in task order.
    """
    if jobs <= 1 or len(tasks) <= 1:
        return [task.run(mode) for task in tasks]

    with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="fmtratchet") as pool:
        futures = [pool.submit(task.run, mode) for task in tasks]
        return [future.result() for future in futures]

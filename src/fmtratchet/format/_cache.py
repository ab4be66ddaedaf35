# ruff: noqa: TC003  # Path needed at runtime for method bodies
"""File-backed task cache.

Each format task stores the fingerprint of its last successful run and the
files it found dirty. A task whose fingerprint is unchanged is up to date and
does not need to run.
"""

from __future__ import annotations

import hashlib
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, cast, runtime_checkable

import orjson

from fmtratchet.utils._logging import create_silent_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Stored result of a task run.

    Attributes:
        fingerprint: Hex digest of everything the task's result depends on.
        dirty: Project-relative paths that needed formatting.
    """

    fingerprint: str
    dirty: tuple[str, ...] = ()


@runtime_checkable
class TaskCacheProtocol(Protocol):
    """Protocol for task result storage."""

    def get(self, task_id: str) -> CacheEntry | None:
        """Get a task's stored entry, or None on a miss."""
        ...

    def put(self, task_id: str, entry: CacheEntry) -> None:
        """Store a task's entry, replacing any previous one."""
        ...

    def clear(self) -> None:
        """Remove every stored entry."""
        ...


class TaskCache:
    """Task cache storing one JSON document per task.

    Writes go to a temporary file in the cache directory that then replaces
    the entry, so readers never observe a partial document. Entries that
    cannot be read or parsed count as misses.

    Example:
        >>> cache = TaskCache(Path(".fmtratchet/cache"))
        >>> cache.put("spotlessMisc@clean", CacheEntry("ab12...", ("a.md",)))
        >>> cache.get("spotlessMisc@clean").dirty
        ('a.md',)
    """

    __slots__ = ("_directory", "_logger")

    def __init__(
        self,
        directory: Path,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._directory: Path = directory
        self._logger: FilteringBoundLogger = logger or create_silent_logger()

    @property
    def directory(self) -> Path:
        """Directory holding the entries."""
        return self._directory

    def path_for(self, task_id: str) -> Path:
        """Get the file that holds a task's entry."""
        safe = _UNSAFE_CHARS.sub("_", task_id).strip("_") or "task"
        digest = hashlib.sha256(task_id.encode("utf-8")).hexdigest()[:12]
        return self._directory / f"{safe}-{digest}.json"

    def get(self, task_id: str) -> CacheEntry | None:
        """Get a task's stored entry.

        Returns:
            The entry, or None if there is none or it is unreadable.
        """
        path = self.path_for(task_id)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            self._logger.warning("task_cache_unreadable", task=task_id, error=str(e))
            return None

        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            self._logger.warning("task_cache_corrupt", task=task_id, error=str(e))
            return None

        entry = _entry_from_json(data)
        if entry is None:
            self._logger.warning("task_cache_corrupt", task=task_id, error="bad shape")
        return entry

    def put(self, task_id: str, entry: CacheEntry) -> None:
        """Store a task's entry atomically.

        Raises:
            OSError: If the cache directory cannot be written.
        """
        path = self.path_for(task_id)
        self._directory.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps(
            {
                "task": task_id,
                "fingerprint": entry.fingerprint,
                "dirty": list(entry.dirty),
            },
            option=orjson.OPT_INDENT_2,
        )
        fd, tmp_name = tempfile.mkstemp(
            dir=self._directory, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self._logger.debug(
            "task_cache_stored", task=task_id, fingerprint=entry.fingerprint
        )

    def clear(self) -> None:
        """Remove every stored entry."""
        if not self._directory.is_dir():
            return
        for path in self._directory.glob("*.json"):
            path.unlink(missing_ok=True)


class NullTaskCache:
    """Task cache that stores nothing; every lookup is a miss."""

    __slots__ = ()

    def get(self, task_id: str) -> CacheEntry | None:  # noqa: ARG002
        return None

    def put(self, task_id: str, entry: CacheEntry) -> None:
        pass

    def clear(self) -> None:
        pass


def _entry_from_json(data: object) -> CacheEntry | None:
    if not isinstance(data, dict):
        return None
    mapping = cast("dict[str, object]", data)
    fingerprint = mapping.get("fingerprint")
    dirty = mapping.get("dirty", [])
    if not isinstance(fingerprint, str) or not isinstance(dirty, list):
        return None
    items = cast("list[object]", dirty)
    if not all(isinstance(item, str) for item in items):
        return None
    return CacheEntry(fingerprint=fingerprint, dirty=tuple(cast("list[str]", items)))

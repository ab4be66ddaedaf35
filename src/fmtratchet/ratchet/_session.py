# ruff: noqa: TC003  # Path needed at runtime for method bodies
"""Ratchet session.

The build-facing entry point to the ratchet. One session spans one build
invocation: it opens the repository at most once, resolves the baseline
ref to a commit once, and lazily creates one engine per project.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING, Self

from fmtratchet.exceptions import RepositoryError
from fmtratchet.ratchet._baseline import BaselineResolver
from fmtratchet.ratchet._cache_key import cache_key
from fmtratchet.ratchet._engine import RatchetEngine
from fmtratchet.repository import GitRepository, normalize_repo_path, relative_to_root
from fmtratchet.utils._logging import create_silent_logger

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from structlog.typing import FilteringBoundLogger

    from fmtratchet.ratchet._models import BaselineHandle
    from fmtratchet.repository import ObjectStoreProtocol


class RatchetSession:
    """Ratchet state shared by all format tasks of one build.

    Projects are identified by their directory relative to the repository
    root ("" for the root project). When no baseline ref applies to a
    project, every file in it is dirty and its cache key is ``"none"``; the
    repository is never opened unless some project has a baseline ref.

    Example:
        >>> with RatchetSession(Path("/src/repo"), "origin/main") as session:
        ...     session.is_clean("services/api", Path("services/api/README.md"))
        False
        >>> session.cache_key_for("services/api")
        '65fdd75c1ae00c0646f6487d68c44ddca51f0841'
    """

    def __init__(
        self,
        repository_root: Path,
        ratchet_from: str | None,
        *,
        project_refs: Mapping[str, str] | None = None,
        store: ObjectStoreProtocol | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            repository_root: Work tree root of the repository. Opening the
                repository fails if this is a subdirectory of the work tree.
            ratchet_from: Default baseline ref, or None to disable ratcheting.
            project_refs: Baseline refs that override the default for
                individual projects, keyed by project path.
            store: An already-open object store to use. The session does not
                close stores it did not open.
            logger: Logger for baseline resolution and verdicts.
        """
        self._root: Path = repository_root.absolute()
        self._ratchet_from: str | None = ratchet_from
        self._project_refs: dict[str, str] = {
            normalize_repo_path(path): ref for path, ref in (project_refs or {}).items()
        }
        self._store: ObjectStoreProtocol | None = store
        self._owns_store: bool = store is None
        self._logger: FilteringBoundLogger = logger or create_silent_logger()
        self._lock: threading.RLock = threading.RLock()
        self._resolver: BaselineResolver | None = None
        self._engines: dict[str, RatchetEngine | None] = {}

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release the repository if this session opened it."""
        with self._lock:
            if self._owns_store and self._store is not None:
                self._store.close()
                self._store = None
            self._resolver = None
            self._engines.clear()

    # =========================================================================
    # Public API
    # =========================================================================

    @property
    def repository_root(self) -> Path:
        """Work tree root of the repository."""
        return self._root

    def ref_for(self, project: str) -> str | None:
        """Get the baseline ref that applies to a project."""
        return self._project_refs.get(normalize_repo_path(project), self._ratchet_from)

    def baseline_for(self, project: str) -> BaselineHandle | None:
        """Get a project's resolved baseline, or None if ratcheting is off.

        Raises:
            RefNotFoundError: If the baseline ref does not resolve.
            RepositoryError: If the repository cannot be opened or read, or
                the session root is not the work tree root.
        """
        engine = self.engine_for(project)
        return engine.baseline if engine is not None else None

    def engine_for(self, project: str) -> RatchetEngine | None:
        """Get the engine for a project, creating it on first use.

        Args:
            project: Project directory relative to the repository root.

        Returns:
            The project's engine, or None if no baseline ref applies.

        Raises:
            RefNotFoundError: If the baseline ref does not resolve.
            RepositoryError: If the repository cannot be opened or read, or
                the session root is not the work tree root.
        """
        path = normalize_repo_path(project)
        with self._lock:
            if path in self._engines:
                return self._engines[path]

            ref = self.ref_for(path)
            engine: RatchetEngine | None = None
            if ref is not None:
                baseline = self._get_resolver().resolve(ref, path)
                project_dir = self._root / path if path else self._root
                engine = RatchetEngine(
                    self._get_store(), baseline, project_dir, logger=self._logger
                )
                self._logger.info(
                    "ratchet_project_ready",
                    project=path,
                    ref=ref,
                    commit=baseline.commit_id,
                    tree=baseline.tree_id,
                )
            self._engines[path] = engine
            return engine

    def is_clean(self, project: str, path: Path | str) -> bool:
        """Check whether a file of a project may be skipped by the formatter.

        Args:
            project: Project directory relative to the repository root.
            path: File path, absolute or relative to the project directory.

        Returns:
            False for every file when ratcheting is disabled for the project;
            otherwise the engine's verdict.
        """
        engine = self.engine_for(project)
        if engine is None:
            return False
        return engine.is_clean(path)

    def cache_key_for(self, project: str) -> str:
        """Get the baseline cache key of a project.

        Raises:
            RefNotFoundError: If the baseline ref does not resolve.
            RepositoryError: If the repository cannot be opened or read, or
                the session root is not the work tree root.
        """
        return cache_key(self.baseline_for(project))

    def project_of(self, path: Path) -> str:
        """Get the repository-relative form of a project directory."""
        return relative_to_root(path, self._root)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _get_store(self) -> ObjectStoreProtocol:
        if self._store is None:
            store = GitRepository(self._root)
            # Project paths are relative to the root given at construction
            if store.root != self._root:
                store.close()
                msg = (
                    f"Not the root of a Git work tree: {self._root} "
                    f"(the work tree root is {store.root})"
                )
                raise RepositoryError(msg, path=self._root)
            self._store = store
            self._logger.debug("repository_opened", root=str(store.root))
        return self._store

    def _get_resolver(self) -> BaselineResolver:
        if self._resolver is None:
            self._resolver = BaselineResolver(self._get_store(), logger=self._logger)
        return self._resolver

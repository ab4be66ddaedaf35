"""Baseline resolution.

Turns a ref string and a project path into a BaselineHandle: the commit the
ref names and the project's subtree at that commit.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from fmtratchet.ratchet._models import BaselineHandle
from fmtratchet.repository import normalize_repo_path
from fmtratchet.utils._logging import create_silent_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from fmtratchet.repository import ObjectStoreProtocol


class BaselineResolver:
    """Resolve baselines for the projects of one repository.

    Each ref is resolved to a commit at most once per resolver, so every
    project in a build agrees on the baseline commit even if the ref moves
    while the build runs.

    Example:
        >>> with GitRepository(root) as repo:
        ...     resolver = BaselineResolver(repo)
        ...     handle = resolver.resolve("origin/main", "services/api")
        ...     handle.tree_id
        '65fdd75c1ae00c0646f6487d68c44ddca51f0841'
    """

    __slots__ = ("_commits", "_lock", "_logger", "_store")

    def __init__(
        self,
        store: ObjectStoreProtocol,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._store: ObjectStoreProtocol = store
        self._logger: FilteringBoundLogger = logger or create_silent_logger()
        self._commits: dict[str, str] = {}
        self._lock: threading.Lock = threading.Lock()

    def commit_for(self, ref: str) -> str:
        """Resolve a ref to a commit id, memoized per resolver.

        Raises:
            RefNotFoundError: If the ref does not resolve to a commit.
        """
        with self._lock:
            commit_id = self._commits.get(ref)
            if commit_id is None:
                commit_id = self._store.resolve_ref(ref)
                self._commits[ref] = commit_id
                self._logger.debug("baseline_ref_resolved", ref=ref, commit=commit_id)
            return commit_id

    def resolve(self, ref: str, project_path: str = "") -> BaselineHandle:
        """Resolve the baseline of one project.

        Args:
            ref: Ref string naming the baseline commit.
            project_path: Repository-relative project directory ("" for root).

        Returns:
            The baseline handle. Its tree_id is None if the project directory
            did not exist at the baseline commit.

        Raises:
            RefNotFoundError: If the ref does not resolve to a commit.
            RepositoryError: If the repository's objects cannot be read.
            PathOutsideRepositoryError: If project_path escapes the repository.
        """
        path = normalize_repo_path(project_path)
        commit_id = self.commit_for(ref)
        tree_id = self._store.subtree(self._store.root_tree(commit_id), path)
        self._logger.debug(
            "baseline_resolved",
            ref=ref,
            commit=commit_id,
            project=path,
            tree=tree_id,
        )
        return BaselineHandle(
            ref=ref,
            commit_id=commit_id,
            project_path=path,
            tree_id=tree_id,
        )


def resolve_baseline(
    store: ObjectStoreProtocol, ref: str, project_path: str = ""
) -> BaselineHandle:
    """Resolve the baseline of one project without memoization.

    Args:
        store: Repository to resolve against.
        ref: Ref string naming the baseline commit.
        project_path: Repository-relative project directory ("" for root).

    Returns:
        The baseline handle.
    """
    return BaselineResolver(store).resolve(ref, project_path)

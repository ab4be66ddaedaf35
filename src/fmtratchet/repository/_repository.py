# ruff: noqa: TC003  # Path needed at runtime for method bodies
"""On-disk git repository access.

This module provides the GitRepository class, the dulwich-backed reader used
by the ratchet to look up baseline commits, trees and blobs.
"""

from pathlib import Path

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo
from typing_extensions import override

from fmtratchet.exceptions import RepositoryError
from fmtratchet.repository._base import BaseObjectReader


def find_repository_root(start: Path) -> Path:
    """Find the work tree root containing ``start``.

    Walks up the directory tree from start until a .git directory or file
    is found. Git worktrees use a .git file pointing to the main repository,
    so both cases are handled.

    Args:
        start: The directory to start discovery from.

    Returns:
        The absolute path to the work tree root.

    Raises:
        RepositoryError: If no .git is found in start or any of its ancestors.
    """
    current = start.absolute()

    while True:
        if (current / ".git").exists():
            return current

        parent = current.parent
        if parent == current:
            msg = f"Not inside a Git repository: {start}"
            raise RepositoryError(msg, path=start)
        current = parent


class GitRepository(BaseObjectReader):
    """Read-only access to an on-disk git repository.

    The repository is opened once and must be closed; use it as a context
    manager so file handles are released on every exit path.

    Attributes:
        root: The work tree root of the repository.

    Example:
        >>> with GitRepository(Path("/src/project")) as repo:
        ...     commit = repo.resolve_ref("main")
        ...     tree = repo.subtree(repo.root_tree(commit), "services/api")
    """

    def __init__(self, working_dir: Path | None = None) -> None:
        """Open the repository containing a directory.

        Args:
            working_dir: Directory inside the work tree. If None, uses the
                current working directory.

        Raises:
            RepositoryError: If no repository is found or it cannot be opened.
        """
        if working_dir is None:
            working_dir = Path.cwd()
        super().__init__(find_repository_root(working_dir))

    @override
    def _open_repo(self) -> Repo:
        """Open the dulwich repository at the work tree root.

        Raises:
            RepositoryError: If the .git entry is not a valid repository.
        """
        try:
            return Repo(str(self._root))
        except NotGitRepository as e:
            msg = f"Not a valid Git repository: {self._root}"
            raise RepositoryError(msg, path=self._root, cause=e) from e
        except OSError as e:
            msg = f"Failed to open Git repository at {self._root}: {e}"
            raise RepositoryError(msg, path=self._root, cause=e) from e

# ruff: noqa: TC003  # Path needed at runtime for Protocol method bodies
"""Object store protocol for type-safe dependency injection.

This module defines a runtime-checkable Protocol that both GitRepository
and FakeObjectStore satisfy, so the ratchet can be exercised against an
in-memory store in tests.
"""

from pathlib import Path
from typing import Protocol, Self, runtime_checkable


@runtime_checkable
class ObjectStoreProtocol(Protocol):
    """Protocol for read-only access to a git commit/tree/blob graph.

    Object ids are 40-character lowercase hex strings. Absence of a path in
    a tree is reported as None, never raised.

    Example:
        >>> def baseline_readme(store: ObjectStoreProtocol) -> bytes | None:
        ...     tree = store.root_tree(store.resolve_ref("main"))
        ...     return store.blob_at(tree, "README.md")
    """

    @property
    def root(self) -> Path:
        """Work tree directory of the repository."""
        ...

    def __enter__(self) -> Self: ...

    def __exit__(self, *exc_info: object) -> None: ...

    def close(self) -> None:
        """Release file handles held by the repository."""
        ...

    def resolve_ref(self, ref: str) -> str:
        """Resolve a ref, tag, branch, or commit-ish to a commit id.

        Args:
            ref: The ref string to resolve.

        Returns:
            The commit id as a 40-character hex string.

        Raises:
            RefNotFoundError: If the ref does not resolve to a commit.
            RepositoryError: If the repository is corrupted.
        """
        ...

    def root_tree(self, commit_id: str) -> str:
        """Get the root tree id of a commit.

        Args:
            commit_id: The commit id.

        Returns:
            The tree id as a 40-character hex string.
        """
        ...

    def subtree(self, tree_id: str, relative_path: str) -> str | None:
        """Walk a tree to a subdirectory.

        Args:
            tree_id: The tree to start from.
            relative_path: Slash-separated path below the tree ("" for itself).

        Returns:
            The subtree id, or None if the path is absent or not a directory.
        """
        ...

    def blob_at(self, tree_id: str, relative_path: str) -> bytes | None:
        """Read the content of a file in a tree.

        Args:
            tree_id: The tree to start from.
            relative_path: Slash-separated path of the file below the tree.

        Returns:
            The blob content, or None if the path is absent or not a file.
        """
        ...

    def is_symlink(self, tree_id: str, relative_path: str) -> bool:
        """Check whether a path in a tree is recorded as a symbolic link.

        Args:
            tree_id: The tree to start from.
            relative_path: Slash-separated path below the tree.

        Returns:
            True if the entry exists and has the symlink mode.
        """
        ...

"""Read-only git object access.

This package provides readers for a git repository's commit/tree/blob graph,
used to look up the baseline content the ratchet compares against.

Classes:
    GitRepository: Reader for an on-disk repository (dulwich).
    FakeObjectStore: In-memory reader for tests.
    BaseObjectReader: Abstract base class with shared lookup logic.
    ObjectStoreProtocol: Runtime-checkable protocol for dependency injection.

Example:
    >>> from fmtratchet.repository import GitRepository
    >>> with GitRepository() as repo:
    ...     tree = repo.root_tree(repo.resolve_ref("main"))
    ...     content = repo.blob_at(tree, "README.md")
"""

from fmtratchet.repository._base import BaseObjectReader
from fmtratchet.repository._fake import FakeObjectStore
from fmtratchet.repository._paths import (
    normalize_repo_path,
    relative_to_root,
    split_repo_path,
)
from fmtratchet.repository._protocol import ObjectStoreProtocol
from fmtratchet.repository._repository import GitRepository, find_repository_root

__all__ = [
    "BaseObjectReader",
    "FakeObjectStore",
    "GitRepository",
    "ObjectStoreProtocol",
    "find_repository_root",
    "normalize_repo_path",
    "relative_to_root",
    "split_repo_path",
]

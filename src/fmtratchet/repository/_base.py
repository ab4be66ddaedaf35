"""Base object reader for git repositories.

This module provides an abstract base class for read-only access to a git
object graph through dulwich, using the Template Method pattern to share
ref resolution and tree walking while letting subclasses decide where the
underlying dulwich repository comes from.
"""

from __future__ import annotations

import re
import stat
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Final, Self, TypeAlias, cast

if TYPE_CHECKING:
    from types import TracebackType

    from dulwich.objects import ShaFile
    from dulwich.repo import BaseRepo

from dulwich.errors import ChecksumMismatch, ObjectFormatException
from dulwich.objects import S_ISGITLINK, Blob, Commit, Tag, Tree

from fmtratchet.exceptions import RefNotFoundError, RepositoryError
from fmtratchet.repository._paths import normalize_repo_path, split_repo_path

# Git SHA length in hexadecimal characters
_SHA_HEX_LENGTH: Final = 40

# Minimum length for abbreviated SHA resolution
_MIN_SHA_ABBREV_LENGTH: Final = 4

# Prefixes tried for a short ref name, in git rev-parse order
_REF_PREFIXES: Final = (
    "refs/",
    "refs/tags/",
    "refs/heads/",
    "refs/remotes/",
)

_HEX_RE: Final = re.compile(r"^[0-9a-fA-F]+$")
_PSEUDO_REF_RE: Final = re.compile(r"^[A-Z][A-Z_]*$")
_ANCESTRY_RE: Final = re.compile(r"^(?P<base>.+?)(?P<suffix>(?:[~^]\d*)*)$")
_ANCESTRY_STEP_RE: Final = re.compile(r"([~^])(\d*)")

_Entry: TypeAlias = tuple[int, str]


class BaseObjectReader(ABC):
    """Abstract base class for read-only git object access.

    Subclasses provide the dulwich repository via ``_open_repo``. All object
    reads go through a single lock, and tree walks are memoized per instance;
    trees and blobs are content-addressed, so memoized results never go stale.

    The class implements the context manager protocol for proper resource
    cleanup.

    Attributes:
        root: The work tree directory of the repository.
    """

    __slots__: Final = ("_entries", "_lock", "_repo", "_root")
    _root: Path
    _repo: BaseRepo
    _lock: threading.RLock
    _entries: dict[tuple[str, str], _Entry | None]

    def __init__(self, root: Path) -> None:
        """Initialize the reader.

        Args:
            root: Work tree directory of the repository.

        Raises:
            RepositoryError: If the repository cannot be opened.
        """
        self._root = root
        self._lock = threading.RLock()
        self._entries = {}
        self._repo = self._open_repo()

    # =========================================================================
    # Abstract Methods (Template Method hooks)
    # =========================================================================

    @abstractmethod
    def _open_repo(self) -> BaseRepo:
        """Open the underlying dulwich repository.

        Returns:
            The dulwich repository to read objects and refs from.

        Raises:
            RepositoryError: If the repository cannot be opened.
        """

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

    def __enter__(self) -> Self:
        """Enter the context manager.

        Returns:
            The reader instance.
        """
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager and close the repository."""
        self.close()

    def close(self) -> None:
        """Close the underlying git repository.

        Releases file handles held by the dulwich repository. This method is
        automatically called when using the context manager protocol.
        """
        with self._lock:
            self._repo.close()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def root(self) -> Path:
        """Get the work tree directory of the repository.

        Returns:
            The absolute path to the work tree directory.
        """
        return self._root

    # =========================================================================
    # Ref Resolution
    # =========================================================================

    def resolve_ref(self, ref: str) -> str:
        """Resolve a ref, tag, branch, or commit-ish to a commit id.

        Supports full and abbreviated commit SHAs, branch, tag and
        remote-tracking names, pseudo-refs such as HEAD, fully qualified
        ``refs/...`` names, and ancestry suffixes (``~N``, ``^``, ``^N``).
        Annotated tags are peeled to the commit they point at.

        Args:
            ref: The ref string to resolve.

        Returns:
            The commit id as a 40-character hex string.

        Raises:
            RefNotFoundError: If the ref does not resolve to a commit.
            RepositoryError: If an object the ref points at is corrupted.

        Example:
            >>> with GitRepository(Path(".")) as repo:
            ...     repo.resolve_ref("origin/main~2")
            'e83c5163316f89bfbde7d9ab23ca2e25604af290'
        """
        match = _ANCESTRY_RE.match(ref.strip())
        if not ref.strip() or match is None:
            msg = f"Invalid ref: {ref!r}"
            raise RefNotFoundError(msg, ref=ref, repository=self._root)

        with self._lock:
            commit_id = self._resolve_base(match.group("base"), ref)
            for operator, count in _ANCESTRY_STEP_RE.findall(match.group("suffix")):
                commit_id = self._walk_ancestry(commit_id, operator, count, ref)
            return commit_id

    def _resolve_base(self, name: str, ref: str) -> str:
        """Resolve a ref name without ancestry suffixes to a commit id."""
        if len(name) == _SHA_HEX_LENGTH and _HEX_RE.match(name):
            object_id = name.lower()
            if self._contains(object_id):
                return self._peel_to_commit(object_id, ref)

        for candidate in self._ref_candidates(name):
            try:
                target = cast("bytes", self._repo.refs[candidate.encode()])
            except (KeyError, ValueError):
                continue
            return self._peel_to_commit(target.decode("ascii"), ref)

        if len(name) >= _MIN_SHA_ABBREV_LENGTH and _HEX_RE.match(name):
            return self._resolve_abbreviated_sha(name, ref)

        msg = f"Ref not found: {ref}"
        raise RefNotFoundError(msg, ref=ref, repository=self._root)

    def _ref_candidates(self, name: str) -> list[str]:
        """List fully qualified ref names to try for a short name."""
        candidates: list[str] = []
        if name.startswith("refs/") or _PSEUDO_REF_RE.match(name):
            candidates.append(name)
        candidates.extend(f"{prefix}{name}" for prefix in _REF_PREFIXES)
        candidates.append(f"refs/remotes/{name}/HEAD")
        return candidates

    def _resolve_abbreviated_sha(self, prefix: str, ref: str) -> str:
        """Resolve an abbreviated SHA to the single commit it names.

        Raises:
            RefNotFoundError: If no commit or more than one commit matches.
        """
        prefix_lower = prefix.lower()
        matches: list[str] = []
        for raw_sha in self._repo.object_store:
            sha = cast("bytes", raw_sha).decode("ascii")
            if not sha.startswith(prefix_lower):
                continue
            if isinstance(self._read(sha), (Commit, Tag)):
                matches.append(sha)

        if not matches:
            msg = f"Ref not found: {ref}"
            raise RefNotFoundError(msg, ref=ref, repository=self._root)
        if len(matches) > 1:
            msg = f"Ambiguous ref: {ref} (matches {len(matches)} objects)"
            raise RefNotFoundError(msg, ref=ref, repository=self._root)
        return self._peel_to_commit(matches[0], ref)

    def _peel_to_commit(self, object_id: str, ref: str) -> str:
        """Follow annotated tags until a commit is reached."""
        obj = self._read(object_id)
        while isinstance(obj, Tag):
            _, target = obj.object
            obj = self._read(target.decode("ascii"))
        if not isinstance(obj, Commit):
            msg = f"Ref does not point at a commit: {ref}"
            raise RefNotFoundError(msg, ref=ref, repository=self._root)
        return obj.id.decode("ascii")

    def _walk_ancestry(
        self, commit_id: str, operator: str, count: str, ref: str
    ) -> str:
        """Apply one ``~N`` or ``^N`` step to a commit id."""
        n = int(count) if count else 1
        if operator == "^":
            if n == 0:
                return commit_id
            parents = self._read_commit(commit_id).parents
            if len(parents) < n:
                msg = f"Ref not found: {ref} (commit {commit_id} has no parent {n})"
                raise RefNotFoundError(msg, ref=ref, repository=self._root)
            return parents[n - 1].decode("ascii")

        for _ in range(n):
            parents = self._read_commit(commit_id).parents
            if not parents:
                msg = f"Ref not found: {ref} (history of {commit_id} is too short)"
                raise RefNotFoundError(msg, ref=ref, repository=self._root)
            commit_id = parents[0].decode("ascii")
        return commit_id

    # =========================================================================
    # Tree Access
    # =========================================================================

    def root_tree(self, commit_id: str) -> str:
        """Get the root tree id of a commit.

        Args:
            commit_id: The commit id.

        Returns:
            The tree id as a 40-character hex string.

        Raises:
            RepositoryError: If the commit is missing or is not a commit.
        """
        with self._lock:
            return self._read_commit(commit_id).tree.decode("ascii")

    def subtree(self, tree_id: str, relative_path: str) -> str | None:
        """Walk a tree to a subdirectory.

        Args:
            tree_id: The tree to start from.
            relative_path: Slash-separated path below the tree ("" for itself).

        Returns:
            The subtree id, or None if the path is absent or not a directory.
        """
        entry = self._lookup(tree_id, relative_path)
        if entry is None or not stat.S_ISDIR(entry[0]):
            return None
        return entry[1]

    def blob_at(self, tree_id: str, relative_path: str) -> bytes | None:
        """Read the content of a file in a tree.

        Args:
            tree_id: The tree to start from.
            relative_path: Slash-separated path of the file below the tree.

        Returns:
            The blob content, or None if the path is absent, a directory,
            or a submodule.
        """
        entry = self._lookup(tree_id, relative_path)
        if entry is None:
            return None
        mode, sha = entry
        if stat.S_ISDIR(mode) or S_ISGITLINK(mode):
            return None
        with self._lock:
            blob = self._read(sha)
        if not isinstance(blob, Blob):
            kind = blob.type_name.decode()
            msg = f"Expected blob {sha} at {relative_path!r}, found {kind}"
            raise RepositoryError(msg, path=self._root)
        return blob.as_raw_string()

    def is_symlink(self, tree_id: str, relative_path: str) -> bool:
        """Check whether a path in a tree is recorded as a symbolic link."""
        entry = self._lookup(tree_id, relative_path)
        return entry is not None and stat.S_ISLNK(entry[0])

    def _lookup(self, tree_id: str, relative_path: str) -> _Entry | None:
        """Find the (mode, id) entry for a path below a tree, memoized."""
        path = normalize_repo_path(relative_path)
        key = (tree_id, path)
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            entry = self._walk(tree_id, path)
            self._entries[key] = entry
            return entry

    def _walk(self, tree_id: str, path: str) -> _Entry | None:
        """Walk path segments from a tree without memoization."""
        mode, sha = stat.S_IFDIR, tree_id
        for segment in split_repo_path(path):
            if not stat.S_ISDIR(mode):
                return None
            tree = self._read(sha)
            if not isinstance(tree, Tree):
                msg = f"Expected tree {sha}, found {tree.type_name.decode()}"
                raise RepositoryError(msg, path=self._root)
            try:
                mode, child = tree[segment.encode("utf-8")]
            except KeyError:
                return None
            sha = child.decode("ascii")
        return mode, sha

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _contains(self, object_id: str) -> bool:
        return object_id.encode("ascii") in self._repo.object_store

    def _read(self, object_id: str) -> ShaFile:
        """Read an object that is expected to exist.

        Raises:
            RepositoryError: If the object is missing or malformed.
        """
        try:
            return self._repo.object_store[object_id.encode("ascii")]
        except KeyError as e:
            msg = f"Missing object {object_id} in repository {self._root}"
            raise RepositoryError(msg, path=self._root, cause=e) from e
        except (ChecksumMismatch, ObjectFormatException) as e:
            msg = f"Corrupt object {object_id} in repository {self._root}: {e}"
            raise RepositoryError(msg, path=self._root, cause=e) from e

    def _read_commit(self, commit_id: str) -> Commit:
        obj = self._read(commit_id)
        if not isinstance(obj, Commit):
            msg = f"Expected commit {commit_id}, found {obj.type_name.decode()}"
            raise RepositoryError(msg, path=self._root)
        return obj

# ruff: noqa: TC003  # Path needed at runtime for method bodies
"""Fake object store for testing.

This module provides a FakeObjectStore class that implements
ObjectStoreProtocol on top of an in-memory dulwich repository, for use in
tests without touching the filesystem. Object ids are real git ids, so a
tree built here has the same id as the same content committed with git.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Final

from dulwich.index import commit_tree
from dulwich.objects import Blob, Commit, Tag
from dulwich.repo import MemoryRepo
from typing_extensions import override

from fmtratchet.repository._base import BaseObjectReader
from fmtratchet.repository._paths import normalize_repo_path

_IDENTITY: Final = b"fmtratchet <fmtratchet@localhost>"
_FILE_MODE: Final = 0o100644
_SYMLINK_MODE: Final = 0o120000
_DEFAULT_BRANCH: Final = "refs/heads/main"


class FakeObjectStore(BaseObjectReader):
    """In-memory git object store for testing.

    Commits are created from plain path-to-content mappings. HEAD is a
    symbolic ref to ``refs/heads/main``.

    Example:
        >>> store = FakeObjectStore()
        >>> first = store.commit({"src/a.md": "HELLO"})
        >>> store.tag("baseline", first)
        >>> tree = store.root_tree(store.resolve_ref("baseline"))
        >>> store.blob_at(tree, "src/a.md")
        b'HELLO'
    """

    _repo: MemoryRepo

    def __init__(self, root: Path | None = None) -> None:
        """Initialize an empty store.

        Args:
            root: Work tree directory to report from ``root``. Defaults to
                ``/fake/project``.
        """
        super().__init__(root if root is not None else Path("/fake/project"))

    @override
    def _open_repo(self) -> MemoryRepo:
        repo = MemoryRepo()
        repo.refs.set_symbolic_ref(b"HEAD", _DEFAULT_BRANCH.encode())
        return repo

    def commit(
        self,
        files: Mapping[str, bytes | str],
        *,
        ref: str = _DEFAULT_BRANCH,
        message: str = "commit",
        symlinks: Mapping[str, str] | None = None,
    ) -> str:
        """Create a commit whose tree holds exactly the given files.

        The new commit's parent is the current value of ``ref``, if any.

        Args:
            files: Repository-relative path to file content.
            ref: Fully qualified ref to advance to the new commit.
            message: Commit message.
            symlinks: Repository-relative path to symlink target.

        Returns:
            The new commit id.
        """
        store = self._repo.object_store
        entries: list[tuple[bytes, bytes, int]] = []
        for path, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            blob = Blob.from_string(data)
            store.add_object(blob)
            entries.append((normalize_repo_path(path).encode(), blob.id, _FILE_MODE))
        for path, target in (symlinks or {}).items():
            blob = Blob.from_string(target.encode("utf-8"))
            store.add_object(blob)
            entries.append(
                (normalize_repo_path(path).encode(), blob.id, _SYMLINK_MODE)
            )

        commit = Commit()
        commit.tree = commit_tree(store, entries)
        try:
            commit.parents = [self._repo.refs[ref.encode()]]
        except KeyError:
            commit.parents = []
        commit.author = commit.committer = _IDENTITY
        commit.author_time = commit.commit_time = 0
        commit.author_timezone = commit.commit_timezone = 0
        commit.encoding = b"UTF-8"
        commit.message = message.encode("utf-8")
        store.add_object(commit)
        self._repo.refs[ref.encode()] = commit.id
        return commit.id.decode("ascii")

    def tag(self, name: str, target: str, *, annotated: bool = False) -> str:
        """Point ``refs/tags/<name>`` at a commit.

        Args:
            name: Tag name without the refs/tags/ prefix.
            target: Commit id to tag.
            annotated: Create an annotated tag object instead of a
                lightweight tag.

        Returns:
            The id the tag ref points at (the tag object for annotated tags).
        """
        sha = target.encode("ascii")
        if annotated:
            tag = Tag()
            tag.object = (Commit, sha)
            tag.name = name.encode("utf-8")
            tag.tagger = _IDENTITY
            tag.tag_time = 0
            tag.tag_timezone = 0
            tag.message = b"baseline\n"
            self._repo.object_store.add_object(tag)
            sha = tag.id
        self._repo.refs[f"refs/tags/{name}".encode()] = sha
        return sha.decode("ascii")

    def set_ref(self, ref: str, target: str) -> None:
        """Point a fully qualified ref at an object id."""
        self._repo.refs[ref.encode()] = target.encode("ascii")

"""Integration tests for GitRepository against repositories built with git."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from fmtratchet.exceptions import RefNotFoundError, RepositoryError
from fmtratchet.repository import GitRepository, find_repository_root

if TYPE_CHECKING:
    from tests.integration.conftest import WorkTree


@pytest.fixture
def history(work_tree: WorkTree) -> list[str]:
    """Create three commits on main and return their ids, oldest first."""
    commits: list[str] = []
    for n in range(3):
        work_tree.write("docs/readme.md", f"version {n}\n")
        work_tree.write("src/app.py", "print('app')\n")
        commits.append(work_tree.commit_all(f"Commit {n}"))
    return commits


# =============================================================================
# Ref Resolution
# =============================================================================


class TestResolveRef:
    def test_branch_and_head(self, work_tree: WorkTree, history: list[str]) -> None:
        with GitRepository(work_tree.root) as repo:
            assert repo.resolve_ref("main") == history[-1]
            assert repo.resolve_ref("HEAD") == history[-1]
            assert repo.resolve_ref("refs/heads/main") == history[-1]

    def test_full_and_abbreviated_sha(
        self, work_tree: WorkTree, history: list[str]
    ) -> None:
        with GitRepository(work_tree.root) as repo:
            assert repo.resolve_ref(history[0]) == history[0]
            assert repo.resolve_ref(history[0][:10]) == history[0]
            assert repo.resolve_ref(history[0].upper()) == history[0]

    @pytest.mark.parametrize(
        ("ref", "index"),
        [
            ("HEAD~1", 1),
            ("HEAD~2", 0),
            ("HEAD^", 1),
            ("main^^", 0),
            ("main~1^", 0),
            ("HEAD~0", 2),
            ("HEAD^0", 2),
        ],
    )
    def test_ancestry(
        self, work_tree: WorkTree, history: list[str], ref: str, index: int
    ) -> None:
        with GitRepository(work_tree.root) as repo:
            assert repo.resolve_ref(ref) == history[index]

    def test_lightweight_tag(self, work_tree: WorkTree, history: list[str]) -> None:
        work_tree.git("tag", "v1", history[0])

        with GitRepository(work_tree.root) as repo:
            assert repo.resolve_ref("v1") == history[0]
            assert repo.resolve_ref("refs/tags/v1") == history[0]

    def test_annotated_tag_is_peeled(
        self, work_tree: WorkTree, history: list[str]
    ) -> None:
        work_tree.git("tag", "-a", "v2", "-m", "Release", history[1])
        tag_object = work_tree.git("rev-parse", "v2")

        with GitRepository(work_tree.root) as repo:
            assert tag_object != history[1]
            assert repo.resolve_ref("v2") == history[1]
            assert repo.resolve_ref(tag_object) == history[1]

    def test_remote_tracking_branch(
        self, work_tree: WorkTree, history: list[str]
    ) -> None:
        work_tree.git("update-ref", "refs/remotes/origin/main", history[1])
        work_tree.git(
            "symbolic-ref", "refs/remotes/origin/HEAD", "refs/remotes/origin/main"
        )

        with GitRepository(work_tree.root) as repo:
            assert repo.resolve_ref("origin/main") == history[1]
            assert repo.resolve_ref("origin") == history[1]
            assert repo.resolve_ref("origin/main~1") == history[0]

    def test_tag_wins_over_branch(
        self, work_tree: WorkTree, history: list[str]
    ) -> None:
        work_tree.git("branch", "release", history[2])
        work_tree.git("tag", "release", history[0])

        with GitRepository(work_tree.root) as repo:
            assert repo.resolve_ref("release") == history[0]
            assert repo.resolve_ref("heads/release") == history[2]

    @pytest.mark.parametrize("ref", ["nope", "HEAD~3", "HEAD^2", "", "0000000000"])
    def test_unresolvable(
        self, work_tree: WorkTree, history: list[str], ref: str
    ) -> None:
        with (
            GitRepository(work_tree.root) as repo,
            pytest.raises(RefNotFoundError) as exc_info,
        ):
            _ = repo.resolve_ref(ref)

        assert exc_info.value.ref == ref
        assert exc_info.value.repository == work_tree.root

    def test_tree_id_is_not_a_commit(
        self, work_tree: WorkTree, history: list[str]
    ) -> None:
        tree = work_tree.git("rev-parse", "HEAD^{tree}")

        with GitRepository(work_tree.root) as repo, pytest.raises(RefNotFoundError):
            _ = repo.resolve_ref(tree)

    def test_empty_repository(self, work_tree: WorkTree) -> None:
        with GitRepository(work_tree.root) as repo, pytest.raises(RefNotFoundError):
            _ = repo.resolve_ref("HEAD")


# =============================================================================
# Tree Access
# =============================================================================


class TestTreeAccess:
    def test_ids_match_git(self, work_tree: WorkTree, history: list[str]) -> None:
        with GitRepository(work_tree.root) as repo:
            root_tree = repo.root_tree(history[-1])

            assert root_tree == work_tree.git("rev-parse", "HEAD^{tree}")
            assert repo.subtree(root_tree, "docs") == work_tree.tree_of("HEAD", "docs")
            assert repo.subtree(root_tree, "") == root_tree

    def test_blob_content(self, work_tree: WorkTree, history: list[str]) -> None:
        with GitRepository(work_tree.root) as repo:
            first = repo.root_tree(history[0])
            last = repo.root_tree(history[-1])

            assert repo.blob_at(first, "docs/readme.md") == b"version 0\n"
            assert repo.blob_at(last, "docs/readme.md") == b"version 2\n"
            assert repo.blob_at(last, "./docs//readme.md") == b"version 2\n"

    def test_absent_paths(self, work_tree: WorkTree, history: list[str]) -> None:
        with GitRepository(work_tree.root) as repo:
            tree = repo.root_tree(history[-1])

            assert repo.blob_at(tree, "docs/missing.md") is None
            assert repo.blob_at(tree, "docs") is None
            assert repo.blob_at(tree, "docs/readme.md/child") is None
            assert repo.subtree(tree, "docs/readme.md") is None
            assert repo.subtree(tree, "nowhere") is None

    def test_binary_and_crlf_content_is_byte_exact(self, work_tree: WorkTree) -> None:
        work_tree.write("data.bin", b"\x00\xff\r\n\x89PNG")
        work_tree.write("crlf.txt", b"one\r\ntwo\r\n")
        commit = work_tree.commit_all("Binary files")

        with GitRepository(work_tree.root) as repo:
            tree = repo.root_tree(commit)

            assert repo.blob_at(tree, "data.bin") == b"\x00\xff\r\n\x89PNG"
            assert repo.blob_at(tree, "crlf.txt") == b"one\r\ntwo\r\n"

    @pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges")
    def test_symlink_entry(self, work_tree: WorkTree) -> None:
        work_tree.write("target.md", "content")
        (work_tree.root / "link.md").symlink_to("target.md")
        commit = work_tree.commit_all("Add link")

        with GitRepository(work_tree.root) as repo:
            tree = repo.root_tree(commit)

            assert repo.is_symlink(tree, "link.md")
            assert not repo.is_symlink(tree, "target.md")
            assert repo.blob_at(tree, "link.md") == b"target.md"

    def test_unicode_path(self, work_tree: WorkTree) -> None:
        work_tree.write("docs/résumé.md", "bonjour")
        commit = work_tree.commit_all("Unicode name")

        with GitRepository(work_tree.root) as repo:
            tree = repo.root_tree(commit)

            assert repo.blob_at(tree, "docs/résumé.md") == b"bonjour"

    def test_sees_commits_made_after_opening(
        self, work_tree: WorkTree, history: list[str]
    ) -> None:
        with GitRepository(work_tree.root) as repo:
            assert repo.resolve_ref("main") == history[-1]

            work_tree.write("docs/readme.md", "version 3\n")
            newest = work_tree.commit_all("Commit 3")

            assert repo.resolve_ref("main") == newest


# =============================================================================
# Discovery
# =============================================================================


class TestDiscovery:
    def test_opens_from_subdirectory(
        self, work_tree: WorkTree, history: list[str]
    ) -> None:
        with GitRepository(work_tree.root / "docs") as repo:
            assert repo.root == work_tree.root

    def test_defaults_to_cwd(
        self,
        work_tree: WorkTree,
        history: list[str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(work_tree.root / "src")

        with GitRepository() as repo:
            assert repo.root == work_tree.root

    def test_find_root_in_linked_worktree(
        self, work_tree: WorkTree, history: list[str], tmp_path: Path
    ) -> None:
        linked = tmp_path / "linked"
        work_tree.git("worktree", "add", "--quiet", "-b", "feature", str(linked))

        assert (linked / ".git").is_file()
        assert find_repository_root(linked / "docs") == linked
        with GitRepository(linked) as repo:
            assert repo.resolve_ref("feature") == history[-1]

    def test_outside_repository(self, tmp_path: Path) -> None:
        outside = tmp_path / "plain"
        outside.mkdir()

        with pytest.raises(RepositoryError, match="Not inside a Git repository"):
            _ = GitRepository(outside)

    def test_invalid_git_directory(self, tmp_path: Path) -> None:
        broken = tmp_path / "broken"
        (broken / ".git").mkdir(parents=True)

        with pytest.raises(RepositoryError) as exc_info:
            _ = GitRepository(broken)

        assert exc_info.value.path == broken

from pathlib import Path

import pytest

from fmtratchet.config import Config
from fmtratchet.exceptions import ConfigValidationError, PathOutsideRepositoryError
from fmtratchet.format import FormatMode, NullTaskCache, TaskCache, TaskOutcome
from fmtratchet.ratchet import Verdict
from fmtratchet.repository import FakeObjectStore
from fmtratchet.workspace import FileStatus, ProjectInfo, ProjectKey, Workspace

CONFIG = {
    "ratchet_from": "main",
    "formats": {
        "misc": {"target": ["src/markdown/*.md"], "steps": ["lowercase"]},
        "text": {"target": ["*.txt"], "steps": ["end_with_newline"]},
    },
    "projects": {
        "clean": {"path": "clean"},
        "dirty": {"path": "dirty"},
    },
}


def _write(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content.encode("utf-8"))
    return path


@pytest.fixture
def store(fake_store: FakeObjectStore) -> FakeObjectStore:
    files = {
        "clean/src/markdown/test.md": "HELLO",
        "dirty/src/markdown/test.md": "HELLO",
    }
    fake_store.commit(files)
    for relative, content in files.items():
        _write(fake_store.root, relative, content)
    return fake_store


def _workspace(
    store: FakeObjectStore,
    data: dict[str, object] | None = None,
    *,
    ratchet_from: str | None = None,
    use_cache: bool | None = None,
) -> Workspace:
    return Workspace(
        Config.from_dict(CONFIG if data is None else data),
        store.root,
        ratchet_from=ratchet_from,
        use_cache=use_cache,
        store=store,
    )


# =============================================================================
# Project Resolution Tests
# =============================================================================


class TestProjects:
    def test_projects_sorted_by_name(self, store: FakeObjectStore) -> None:
        workspace = _workspace(store)

        assert workspace.projects == [
            ProjectInfo("clean", "clean", "main"),
            ProjectInfo("dirty", "dirty", "main"),
        ]

    def test_implicit_root_project(self, store: FakeObjectStore) -> None:
        workspace = _workspace(store, {"ratchet_from": "main"})

        assert workspace.projects == [ProjectInfo("root", "", "main")]

    def test_project_ref_overrides_default(self, store: FakeObjectStore) -> None:
        data = {
            "ratchet_from": "main",
            "projects": {"api": {"path": "api", "ratchet_from": "v1"}},
        }

        assert _workspace(store, data).projects[0].ref == "v1"

    def test_cli_ref_overrides_everything(self, store: FakeObjectStore) -> None:
        data = {
            "ratchet_from": "main",
            "projects": {"api": {"path": "api", "ratchet_from": "v1"}},
        }

        workspace = _workspace(store, data, ratchet_from="HEAD~1")

        assert workspace.projects[0].ref == "HEAD~1"
        assert workspace.session.ref_for("api") == "HEAD~1"

    def test_select_projects(self, store: FakeObjectStore) -> None:
        workspace = _workspace(store)

        assert [p.name for p in workspace.select_projects(["dirty"])] == ["dirty"]
        assert len(workspace.select_projects()) == 2

    def test_select_unknown_project_raises(self, store: FakeObjectStore) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _workspace(store).select_projects(["nope"])

        assert exc_info.value.key == "projects"
        assert exc_info.value.source == "cli"
        assert "clean, dirty" in str(exc_info.value)

    def test_repository_root_is_absolute(self, store: FakeObjectStore) -> None:
        assert _workspace(store).repository_root.is_absolute()


class TestLocate:
    def test_deepest_project_wins(self, store: FakeObjectStore) -> None:
        data = {
            "projects": {
                "root": {"path": "."},
                "api": {"path": "services/api"},
            },
        }
        workspace = _workspace(store, data)

        project, relative = workspace.locate(store.root / "services/api/src/a.md")

        assert project.name == "api"
        assert relative == "src/a.md"

    def test_root_project_owns_everything_else(self, store: FakeObjectStore) -> None:
        data = {"projects": {"root": {"path": "."}, "api": {"path": "services/api"}}}
        workspace = _workspace(store, data)

        project, relative = workspace.locate(store.root / "services/web/a.md")

        assert project.name == "root"
        assert relative == "services/web/a.md"

    def test_sibling_prefix_is_not_contained(self, store: FakeObjectStore) -> None:
        data = {"projects": {"api": {"path": "api"}}}

        with pytest.raises(ConfigValidationError, match="No configured project"):
            _workspace(store, data).locate(store.root / "api-docs/a.md")

    def test_relative_path_uses_cwd(
        self, store: FakeObjectStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(store.root / "dirty")

        project, relative = _workspace(store).locate(Path("src/markdown/test.md"))

        assert project.name == "dirty"
        assert relative == "src/markdown/test.md"

    def test_outside_repository_raises(
        self, store: FakeObjectStore, tmp_path_factory: pytest.TempPathFactory
    ) -> None:
        outside = tmp_path_factory.mktemp("elsewhere") / "a.md"

        with pytest.raises(PathOutsideRepositoryError):
            _workspace(store).locate(outside)


# =============================================================================
# Task Tests
# =============================================================================


class TestTasks:
    def test_one_task_per_format_and_project(self, store: FakeObjectStore) -> None:
        tasks = _workspace(store).tasks()

        assert [task.task_id for task in tasks] == [
            "misc@clean",
            "misc@dirty",
            "text@clean",
            "text@dirty",
        ]

    def test_filter_formats_and_projects(self, store: FakeObjectStore) -> None:
        tasks = _workspace(store).tasks(formats=["text"], projects=["dirty"])

        assert [task.task_id for task in tasks] == ["text@dirty"]

    def test_unknown_format_raises(self, store: FakeObjectStore) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _workspace(store).tasks(formats=["python"])

        assert exc_info.value.key == "formats"

    def test_task_configuration(self, store: FakeObjectStore) -> None:
        task = _workspace(store).tasks(formats=["misc"], projects=["clean"])[0]

        assert task.project_dir == store.root / "clean"
        assert task.formatter.fingerprint == "lowercase"
        assert task.targets.include == ("src/markdown/*.md",)

    def test_nested_project_files_belong_to_nested_project(
        self, store: FakeObjectStore
    ) -> None:
        _write(store.root, "top.txt", "x")
        _write(store.root, "services/api/inner.txt", "x")
        data = {
            "formats": {"text": {"target": ["**/*.txt"]}},
            "projects": {"root": {"path": "."}, "api": {"path": "services/api"}},
        }

        tasks = {task.task_id: task for task in _workspace(store, data).tasks()}

        assert tasks["text@root"].collect_files() == ["top.txt"]
        assert tasks["text@api"].collect_files() == ["inner.txt"]

    def test_no_formats_no_tasks(self, store: FakeObjectStore) -> None:
        assert _workspace(store, {"ratchet_from": "main"}).tasks() == []


class TestRun:
    def test_check_reports_only_dirty_project(self, store: FakeObjectStore) -> None:
        _write(store.root, "dirty/src/markdown/test.md", "HELLO WORLD")

        results = _workspace(store).run(FormatMode.CHECK, formats=["misc"])

        outcomes = {result.task: result.outcome for result in results}
        assert outcomes == {
            "misc@clean": TaskOutcome.SUCCESS,
            "misc@dirty": TaskOutcome.FAILED,
        }

    def test_apply_then_check_passes(self, store: FakeObjectStore) -> None:
        _write(store.root, "dirty/src/markdown/test.md", "HELLO WORLD")

        with _workspace(store) as workspace:
            workspace.run(FormatMode.APPLY, jobs=2)
        with _workspace(store) as workspace:
            results = workspace.run(FormatMode.CHECK, jobs=2)

        assert all(result.passed for result in results)
        assert (store.root / "dirty/src/markdown/test.md").read_text() == (
            "hello world"
        )

    def test_cache_enabled_by_config(self, store: FakeObjectStore) -> None:
        workspace = _workspace(store)

        assert isinstance(workspace.cache, TaskCache)
        assert workspace.cache.directory == store.root / ".fmtratchet/cache"

    def test_cache_disabled_by_argument(self, store: FakeObjectStore) -> None:
        assert isinstance(_workspace(store, use_cache=False).cache, NullTaskCache)

    def test_cache_disabled_by_config(self, store: FakeObjectStore) -> None:
        data = {**CONFIG, "cache": {"enabled": False}}

        assert isinstance(_workspace(store, data).cache, NullTaskCache)


# =============================================================================
# Report Tests
# =============================================================================


class TestStatus:
    def test_all_target_files(self, store: FakeObjectStore) -> None:
        _write(store.root, "dirty/src/markdown/test.md", "HELLO WORLD")
        _write(store.root, "dirty/src/markdown/new.md", "NEW")

        statuses = _workspace(store).status()

        assert statuses == [
            FileStatus("clean", "src/markdown/test.md", Verdict.UNCHANGED),
            FileStatus("dirty", "src/markdown/new.md", Verdict.ADDED),
            FileStatus("dirty", "src/markdown/test.md", Verdict.MODIFIED),
        ]

    def test_explicit_paths(self, store: FakeObjectStore) -> None:
        path = store.root / "clean/src/markdown/test.md"
        path.unlink()

        statuses = _workspace(store).status(
            [path, store.root / "clean/src/markdown/never.md"]
        )

        assert [s.verdict for s in statuses] == [Verdict.DELETED, Verdict.MISSING]
        assert all(s.is_clean for s in statuses)

    def test_project_filter(self, store: FakeObjectStore) -> None:
        statuses = _workspace(store).status(projects=["dirty"])

        assert {s.project for s in statuses} == {"dirty"}

    def test_explicit_path_outside_filter_is_dropped(
        self, store: FakeObjectStore
    ) -> None:
        path = store.root / "clean/src/markdown/test.md"

        assert _workspace(store).status([path], projects=["dirty"]) == []

    def test_no_baseline_status(self, store: FakeObjectStore) -> None:
        data = {**CONFIG, "ratchet_from": None}

        statuses = _workspace(store, data).status(projects=["clean"])

        assert statuses == [FileStatus("clean", "src/markdown/test.md", None)]
        assert statuses[0].label == "no-baseline"
        assert statuses[0].is_clean is False


class TestKeys:
    def test_reports_subtree_per_project(self, store: FakeObjectStore) -> None:
        commit = store.resolve_ref("main")
        root_tree = store.root_tree(commit)

        keys = _workspace(store).keys()

        assert keys == [
            ProjectKey(
                project=name,
                path=name,
                ref="main",
                commit_id=commit,
                tree_id=store.subtree(root_tree, name),
                cache_key=store.subtree(root_tree, name) or "",
            )
            for name in ("clean", "dirty")
        ]

    def test_identical_projects_share_subtree(self, store: FakeObjectStore) -> None:
        clean, dirty = _workspace(store).keys()

        assert clean.tree_id == dirty.tree_id

    def test_project_absent_from_baseline(self, store: FakeObjectStore) -> None:
        data = {"ratchet_from": "main", "projects": {"new": {"path": "new"}}}

        (key,) = _workspace(store, data).keys()

        assert key.tree_id is None
        assert key.cache_key == "empty"

    def test_ratcheting_disabled(self, store: FakeObjectStore) -> None:
        data = {"projects": {"api": {"path": "api"}}}

        (key,) = _workspace(store, data).keys()

        assert key == ProjectKey("api", "api", None, None, None, "none")

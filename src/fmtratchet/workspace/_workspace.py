# ruff: noqa: TC003  # Path needed at runtime for method bodies
"""Workspace: a repository together with its loaded configuration.

The workspace is what a CLI command operates on. It owns the ratchet session
for one invocation and turns the configured formats and projects into format
tasks.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Self

from fmtratchet.exceptions import ConfigValidationError
from fmtratchet.format import (
    FormatTargets,
    FormatTask,
    Formatter,
    NullTaskCache,
    TaskCache,
    build_steps,
    run_tasks,
)
from fmtratchet.ratchet import RatchetSession, cache_key
from fmtratchet.repository import relative_to_root
from fmtratchet.utils._logging import create_silent_logger
from fmtratchet.workspace._models import FileStatus, ProjectInfo, ProjectKey

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from types import TracebackType

    from structlog.typing import FilteringBoundLogger

    from fmtratchet.config import Config
    from fmtratchet.format import FormatMode, TaskCacheProtocol, TaskResult
    from fmtratchet.repository import ObjectStoreProtocol


class Workspace:
    """Formats and projects of one repository, bound to a ratchet session.

    A ``ratchet_from`` passed to the workspace overrides the configured
    baseline of every project. Otherwise each project uses its own
    ``ratchet_from`` or the top-level one.

    Example:
        >>> config = Config.load(project_root=root)
        >>> with Workspace(config, root) as workspace:
        ...     results = workspace.run(FormatMode.CHECK)
        >>> [result.outcome for result in results]
        [<TaskOutcome.SUCCESS: 'success'>]
    """

    def __init__(
        self,
        config: Config,
        repository_root: Path,
        *,
        ratchet_from: str | None = None,
        use_cache: bool | None = None,
        store: ObjectStoreProtocol | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the workspace.

        Args:
            config: Loaded configuration.
            repository_root: Work tree root of the repository.
            ratchet_from: Baseline ref overriding every project's baseline.
            use_cache: Whether to use the task cache. Defaults to the
                ``cache.enabled`` setting.
            store: An already-open object store, passed to the session.
            logger: Logger shared by the session and the tasks.
        """
        self._config: Config = config
        self._root: Path = repository_root.absolute()
        self._logger: FilteringBoundLogger = logger or create_silent_logger()
        self._projects: list[ProjectInfo] = self._resolve_projects(ratchet_from)
        self._session: RatchetSession = RatchetSession(
            self._root,
            ratchet_from if ratchet_from is not None else config.ratchet_from,
            project_refs={
                project.path: project.ref
                for project in self._projects
                if project.ref is not None
            },
            store=store,
            logger=self._logger,
        )
        enabled = config.cache.enabled if use_cache is None else use_cache
        self._cache: TaskCacheProtocol = (
            TaskCache(self._root / config.cache.dir, logger=self._logger)
            if enabled
            else NullTaskCache()
        )

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
        """Release the repository held by the ratchet session."""
        self._session.close()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def repository_root(self) -> Path:
        """Work tree root of the repository."""
        return self._root

    @property
    def session(self) -> RatchetSession:
        """The ratchet session of this invocation."""
        return self._session

    @property
    def cache(self) -> TaskCacheProtocol:
        """Storage for task results."""
        return self._cache

    @property
    def projects(self) -> list[ProjectInfo]:
        """Configured projects, ordered by name."""
        return list(self._projects)

    # =========================================================================
    # Tasks
    # =========================================================================

    def tasks(
        self,
        *,
        formats: Iterable[str] | None = None,
        projects: Iterable[str] | None = None,
    ) -> list[FormatTask]:
        """Create the format tasks, one per format and project.

        Args:
            formats: Names of the formats to include. Defaults to all.
            projects: Names of the projects to include. Defaults to all.

        Returns:
            Tasks ordered by format name, then project name.

        Raises:
            ConfigValidationError: If a requested format or project is not
                configured.
        """
        configured = self._config.formats
        format_names = self._select(
            "formats", sorted(configured), formats, "a configured format name"
        )
        selected = self.select_projects(projects)

        tasks: list[FormatTask] = []
        for format_name in format_names:
            format_config = configured[format_name]
            formatter = Formatter.of(build_steps(format_config.steps))
            targets = FormatTargets(
                tuple(format_config.target), tuple(format_config.exclude)
            )
            tasks.extend(
                FormatTask(
                    format_name,
                    project.name,
                    self._project_dir(project),
                    formatter,
                    targets,
                    self._session,
                    self._cache,
                    version=format_config.version,
                    skip_dirs=self._nested_dirs(project),
                    logger=self._logger,
                )
                for project in selected
            )
        return tasks

    def run(
        self,
        mode: FormatMode,
        *,
        jobs: int = 1,
        formats: Iterable[str] | None = None,
        projects: Iterable[str] | None = None,
    ) -> list[TaskResult]:
        """Create and run the format tasks.

        Raises:
            ConfigValidationError: If a requested format or project is not
                configured.
            RefNotFoundError: If a baseline ref does not resolve.
            RepositoryError: If the repository cannot be read.
            FileAccessError: If a target file cannot be read or written.
            FormatterStepError: If a formatter step fails.
        """
        tasks = self.tasks(formats=formats, projects=projects)
        self._logger.info("tasks_started", mode=str(mode), tasks=len(tasks), jobs=jobs)
        results = run_tasks(tasks, mode, jobs=jobs)
        self._logger.info(
            "tasks_finished",
            mode=str(mode),
            failed=sum(1 for result in results if not result.passed),
        )
        return results

    # =========================================================================
    # Reports
    # =========================================================================

    def status(
        self,
        paths: Sequence[Path] | None = None,
        *,
        projects: Iterable[str] | None = None,
    ) -> list[FileStatus]:
        """Report the ratchet verdict of files.

        Args:
            paths: Files to report on, absolute or relative to the current
                directory. Defaults to every target file of every format.
            projects: Names of the projects to report on. Defaults to all.

        Returns:
            One status per file, ordered by project, then path.

        Raises:
            ConfigValidationError: If a requested project is not configured.
            PathOutsideRepositoryError: If a path is outside the repository.
            RefNotFoundError: If a baseline ref does not resolve.
            RepositoryError: If the repository cannot be read.
            FileAccessError: If a file exists but cannot be read.
        """
        selected = self.select_projects(projects)
        selected_names = {project.name for project in selected}

        wanted: list[tuple[ProjectInfo, str]]
        if paths is None:
            # A file targeted by several formats is reported once
            targeted = {
                (task.project_name, relative)
                for task in self.tasks(projects=selected_names)
                for relative in task.collect_files()
            }
            wanted = [
                (self._project_named(name), relative)
                for name, relative in sorted(targeted)
            ]
        else:
            wanted = []
            for path in paths:
                project, relative = self.locate(path)
                if project.name in selected_names:
                    wanted.append((project, relative))

        statuses: list[FileStatus] = []
        for project, relative in wanted:
            engine = self._session.engine_for(project.path)
            verdict = engine.verdict(relative) if engine is not None else None
            statuses.append(FileStatus(project.name, relative, verdict))
        return statuses

    def keys(self, *, projects: Iterable[str] | None = None) -> list[ProjectKey]:
        """Report the baseline identity of each project.

        Raises:
            ConfigValidationError: If a requested project is not configured.
            RefNotFoundError: If a baseline ref does not resolve.
            RepositoryError: If the repository cannot be read.
        """
        keys: list[ProjectKey] = []
        for project in self.select_projects(projects):
            baseline = self._session.baseline_for(project.path)
            keys.append(
                ProjectKey(
                    project=project.name,
                    path=project.path,
                    ref=self._session.ref_for(project.path),
                    commit_id=baseline.commit_id if baseline is not None else None,
                    tree_id=baseline.tree_id if baseline is not None else None,
                    cache_key=cache_key(baseline),
                )
            )
        return keys

    # =========================================================================
    # Projects
    # =========================================================================

    def select_projects(self, names: Iterable[str] | None = None) -> list[ProjectInfo]:
        """Get configured projects by name.

        Raises:
            ConfigValidationError: If a name is not a configured project.
        """
        chosen = self._select(
            "projects",
            [project.name for project in self._projects],
            names,
            "a configured project name",
        )
        return [self._project_named(name) for name in chosen]

    def locate(self, path: Path) -> tuple[ProjectInfo, str]:
        """Find the project owning a file.

        The project with the deepest directory containing the file wins.

        Args:
            path: File path, absolute or relative to the current directory.

        Returns:
            The owning project and the file's project-relative path.

        Raises:
            PathOutsideRepositoryError: If the path is outside the repository.
            ConfigValidationError: If no project contains the path.
        """
        candidate = path if path.is_absolute() else Path.cwd() / path
        relative = relative_to_root(candidate, self._root)

        owners = [
            project
            for project in self._projects
            if _contains(project.path, relative)
        ]
        if not owners:
            msg = f"No configured project contains {relative or '.'}"
            raise ConfigValidationError(
                msg,
                key="projects",
                value=str(path),
                expected="a path inside a configured project",
                source="cli",
            )
        owner = max(owners, key=lambda project: len(project.path))
        return owner, relative[len(owner.path) :].lstrip("/")

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _resolve_projects(self, override: str | None) -> list[ProjectInfo]:
        return [
            ProjectInfo(
                name=name,
                path=project.repo_path,
                ref=override or project.ratchet_from or self._config.ratchet_from,
            )
            for name, project in sorted(self._config.projects.items())
        ]

    def _project_named(self, name: str) -> ProjectInfo:
        return next(project for project in self._projects if project.name == name)

    def _project_dir(self, project: ProjectInfo) -> Path:
        return self._root / project.path if project.path else self._root

    def _nested_dirs(self, project: ProjectInfo) -> list[str]:
        """Directories of other projects below a project, relative to it."""
        prefix = f"{project.path}/" if project.path else ""
        return sorted(
            other.path[len(prefix) :]
            for other in self._projects
            if other.path != project.path and _contains(project.path, other.path)
        )

    @staticmethod
    def _select(
        key: str,
        available: list[str],
        requested: Iterable[str] | None,
        expected: str,
    ) -> list[str]:
        if requested is None:
            return available
        chosen = list(dict.fromkeys(requested))
        for name in chosen:
            if name not in available:
                msg = f"Unknown {key[:-1]} {name!r} (known: {', '.join(available)})"
                raise ConfigValidationError(
                    msg, key=key, value=name, expected=expected, source="cli"
                )
        return [name for name in available if name in chosen]


def _contains(directory: str, path: str) -> bool:
    """Check whether a repository path lies within a directory ("" is root)."""
    return not directory or path == directory or path.startswith(f"{directory}/")

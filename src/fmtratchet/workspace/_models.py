"""Result records reported by a workspace."""

from dataclasses import dataclass

from fmtratchet.ratchet import Verdict


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    """A configured project, resolved against the repository.

    Attributes:
        name: Project name from configuration.
        path: Repository-relative project directory ("" for the root).
        ref: Baseline ref that applies to the project, or None.
    """

    name: str
    path: str
    ref: str | None


@dataclass(frozen=True, slots=True)
class FileStatus:
    """Ratchet verdict for one file.

    Attributes:
        project: Name of the project owning the file.
        path: Project-relative file path.
        verdict: The verdict, or None when the project has no baseline and
            every file is dirty.
    """

    project: str
    path: str
    verdict: Verdict | None

    @property
    def is_clean(self) -> bool:
        """Whether the formatter may skip the file."""
        return self.verdict is not None and self.verdict.is_clean

    @property
    def label(self) -> str:
        """Verdict name used in reports."""
        return self.verdict.value if self.verdict is not None else "no-baseline"


@dataclass(frozen=True, slots=True)
class ProjectKey:
    """Baseline identity of one project.

    Attributes:
        project: Project name.
        path: Repository-relative project directory ("" for the root).
        ref: Baseline ref, or None when ratcheting is disabled.
        commit_id: Baseline commit id, or None.
        tree_id: Project subtree id at the baseline, or None when the
            project is absent from the baseline or has no baseline.
        cache_key: Token folded into the project's task fingerprints.
    """

    project: str
    path: str
    ref: str | None
    commit_id: str | None
    tree_id: str | None
    cache_key: str

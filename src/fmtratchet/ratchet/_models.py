"""Ratchet models.

This module defines the baseline handle and verdict types shared by the
resolver, the engine and the cache key provider.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

EMPTY_BASELINE_KEY: Final = "empty"
"""Cache key of a project that did not exist at the baseline commit."""

NO_RATCHET_KEY: Final = "none"
"""Cache key reported when no baseline ref is configured."""


@dataclass(frozen=True, slots=True)
class BaselineHandle:
    """A resolved baseline for one project.

    Constant for one build invocation; recomputed on the next one because
    the ref may have moved.

    Attributes:
        ref: The ref string the baseline was resolved from.
        commit_id: The resolved commit id (40 hex characters).
        project_path: Repository-relative path of the project ("" for root).
        tree_id: Id of the project's subtree at the baseline commit, or None
            if the project path did not exist then.
    """

    ref: str
    commit_id: str
    project_path: str
    tree_id: str | None

    @property
    def is_empty(self) -> bool:
        """Whether the project had no content at the baseline commit."""
        return self.tree_id is None


class Verdict(StrEnum):
    """Outcome of comparing a working file to its baseline blob."""

    UNCHANGED = "unchanged"
    """Present in both, byte-identical."""

    MODIFIED = "modified"
    """Present in both, content differs."""

    ADDED = "added"
    """Present now, absent from the baseline."""

    DELETED = "deleted"
    """Absent now, present in the baseline."""

    MISSING = "missing"
    """Absent from both."""

    @property
    def is_clean(self) -> bool:
        """Whether a file with this verdict is exempt from formatting."""
        return self not in {Verdict.MODIFIED, Verdict.ADDED}

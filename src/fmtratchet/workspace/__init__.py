"""Workspace: configured formats and projects of one repository.

Classes:
    Workspace: Builds format tasks and ratchet reports from configuration.

Models:
    ProjectInfo: A configured project and the baseline ref that applies to it.
    FileStatus: The ratchet verdict of one file.
    ProjectKey: A project's baseline commit, subtree and cache key.
"""

from fmtratchet.workspace._models import FileStatus, ProjectInfo, ProjectKey
from fmtratchet.workspace._workspace import Workspace

__all__ = [
    "FileStatus",
    "ProjectInfo",
    "ProjectKey",
    "Workspace",
]

"""Formatting tasks gated by the ratchet.

Classes:
    FormatTask: One format applied to one project, with check and apply modes.
    FormatTargets: Include and exclude patterns selecting target files.
    Formatter: An ordered chain of formatter steps.
    TaskCache: File-backed storage of task fingerprints.
    NullTaskCache: Task cache that stores nothing.

Example:
    >>> from fmtratchet.format import FormatMode, run_tasks
    >>> results = run_tasks(tasks, FormatMode.CHECK, jobs=4)
    >>> all(result.passed for result in results)
    True
"""

from fmtratchet.format._cache import (
    CacheEntry,
    NullTaskCache,
    TaskCache,
    TaskCacheProtocol,
)
from fmtratchet.format._formatter import Formatter, decode, encode
from fmtratchet.format._steps import (
    EndWithNewlineStep,
    FormatterStep,
    IndentWithSpacesStep,
    IndentWithTabsStep,
    LowercaseStep,
    ReplaceRegexStep,
    ReplaceStep,
    TrimTrailingWhitespaceStep,
    available_steps,
    build_step,
    build_steps,
)
from fmtratchet.format._task import (
    FormatMode,
    FormatTargets,
    FormatTask,
    TaskOutcome,
    TaskResult,
    run_tasks,
)

__all__ = [
    "CacheEntry",
    "EndWithNewlineStep",
    "FormatMode",
    "FormatTargets",
    "FormatTask",
    "Formatter",
    "FormatterStep",
    "IndentWithSpacesStep",
    "IndentWithTabsStep",
    "LowercaseStep",
    "NullTaskCache",
    "ReplaceRegexStep",
    "ReplaceStep",
    "TaskCache",
    "TaskCacheProtocol",
    "TaskOutcome",
    "TaskResult",
    "TrimTrailingWhitespaceStep",
    "available_steps",
    "build_step",
    "build_steps",
    "decode",
    "encode",
    "run_tasks",
]

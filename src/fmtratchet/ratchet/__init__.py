"""Incremental formatting ratchet.

This package decides which files a formatter must enforce: only files whose
content differs from a baseline commit. Files that are byte-identical to the
baseline, or were deleted since, are exempt.

Classes:
    RatchetSession: Build-scoped entry point; one engine per project.
    RatchetEngine: Per-project verdicts for individual files.
    BaselineResolver: Resolves refs and project subtrees, memoizing commits.

Models:
    BaselineHandle: A project's resolved baseline commit and subtree.
    Verdict: UNCHANGED, MODIFIED, ADDED, DELETED, or MISSING.

Example:
    >>> from fmtratchet.ratchet import RatchetSession
    >>> with RatchetSession(Path("."), "origin/main") as session:
    ...     dirty = [p for p in files if not session.is_clean("", p)]
"""

from fmtratchet.ratchet._baseline import BaselineResolver, resolve_baseline
from fmtratchet.ratchet._cache_key import cache_key
from fmtratchet.ratchet._engine import RatchetEngine
from fmtratchet.ratchet._models import (
    EMPTY_BASELINE_KEY,
    NO_RATCHET_KEY,
    BaselineHandle,
    Verdict,
)
from fmtratchet.ratchet._session import RatchetSession

__all__ = [
    "EMPTY_BASELINE_KEY",
    "NO_RATCHET_KEY",
    "BaselineHandle",
    "BaselineResolver",
    "RatchetEngine",
    "RatchetSession",
    "Verdict",
    "cache_key",
    "resolve_baseline",
]

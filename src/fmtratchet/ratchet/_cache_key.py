"""Cache key derived from a baseline.

A format task mixes this key into its fingerprint. The key is the id of the
project's own subtree, so commits that only touch other projects leave it
unchanged.
"""

from fmtratchet.ratchet._models import (
    EMPTY_BASELINE_KEY,
    NO_RATCHET_KEY,
    BaselineHandle,
)


def cache_key(baseline: BaselineHandle | None) -> str:
    """Get the cache key for a project's baseline.

    Args:
        baseline: The resolved baseline, or None if ratcheting is disabled.

    Returns:
        The baseline subtree id, ``"empty"`` if the project did not exist at
        the baseline commit, or ``"none"`` if ratcheting is disabled.
    """
    if baseline is None:
        return NO_RATCHET_KEY
    if baseline.tree_id is None:
        return EMPTY_BASELINE_KEY
    return baseline.tree_id

"""Property-based tests for ratchet verdicts and cache keys.

Invariants covered:
- Verdicts depend only on baseline bytes and working bytes
- A file is clean exactly when it is absent or byte-identical to the baseline
- Verdicts are stable across repeated queries
- Cache keys are per-project subtree ids
"""

import tempfile
from pathlib import Path

from hypothesis import given, settings, strategies as st

from fmtratchet.ratchet import (
    EMPTY_BASELINE_KEY,
    NO_RATCHET_KEY,
    BaselineHandle,
    RatchetEngine,
    Verdict,
    cache_key,
    resolve_baseline,
)
from fmtratchet.repository import FakeObjectStore

# =============================================================================
# Strategies
# =============================================================================

_NAME_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789-_"

file_name = st.text(alphabet=_NAME_ALPHABET, min_size=1, max_size=12)

relative_path = st.lists(file_name, min_size=1, max_size=3).map("/".join)

# Below src/ so generated paths never collide with the anchor file
source_path = relative_path.map(lambda path: f"src/{path}")

# None means the file does not exist on that side
file_content = st.none() | st.binary(max_size=64)

sha = st.text(alphabet="0123456789abcdef", min_size=40, max_size=40)


def _expected(baseline: bytes | None, working: bytes | None) -> Verdict:
    if working is None:
        return Verdict.MISSING if baseline is None else Verdict.DELETED
    if baseline is None:
        return Verdict.ADDED
    return Verdict.UNCHANGED if working == baseline else Verdict.MODIFIED


def _engine_for(
    root: Path, path: str, baseline: bytes | None, working: bytes | None
) -> RatchetEngine:
    store = FakeObjectStore(root)
    files = {"keep.txt": b"anchor"}
    if baseline is not None:
        files[path] = baseline
    store.commit(files)
    if working is not None:
        target = root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(working)
    return RatchetEngine(store, resolve_baseline(store, "main"), root)


# =============================================================================
# Verdict Properties
# =============================================================================


@given(path=source_path, baseline=file_content, working=file_content)
@settings(max_examples=60, deadline=None)
def test_verdict_follows_decision_table(
    path: str, baseline: bytes | None, working: bytes | None
) -> None:
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine_for(Path(tmp), path, baseline, working)

        verdict = engine.verdict(path)

    assert verdict is _expected(baseline, working)


@given(path=source_path, baseline=file_content, working=file_content)
@settings(max_examples=60, deadline=None)
def test_clean_iff_absent_or_identical(
    path: str, baseline: bytes | None, working: bytes | None
) -> None:
    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine_for(Path(tmp), path, baseline, working)

        clean = engine.is_clean(path)

    assert clean is (working is None or working == baseline)


@given(path=source_path, content=st.binary(max_size=64))
@settings(max_examples=30, deadline=None)
def test_repeated_queries_agree(path: str, content: bytes) -> None:
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        engine = _engine_for(root, path, content, content + b"!")

        first = engine.verdict(path)
        second = engine.verdict(root / path)

    assert first is second is Verdict.MODIFIED


@given(content=st.binary(max_size=64), line_ending=st.sampled_from(["\n", "\r\n"]))
@settings(max_examples=30, deadline=None)
def test_comparison_is_byte_exact(content: bytes, line_ending: str) -> None:
    baseline = content + b"\n"
    working = content + line_ending.encode()

    with tempfile.TemporaryDirectory() as tmp:
        engine = _engine_for(Path(tmp), "a.txt", baseline, working)

        verdict = engine.verdict("a.txt")

    expected = Verdict.UNCHANGED if line_ending == "\n" else Verdict.MODIFIED
    assert verdict is expected


# =============================================================================
# Cache Key Properties
# =============================================================================


@given(tree_id=sha, commit_id=sha, project=relative_path)
def test_cache_key_is_tree_id(tree_id: str, commit_id: str, project: str) -> None:
    handle = BaselineHandle("main", commit_id, project, tree_id)

    assert cache_key(handle) == tree_id


@given(commit_id=sha, project=relative_path)
def test_cache_key_without_subtree(commit_id: str, project: str) -> None:
    handle = BaselineHandle("main", commit_id, project, None)

    assert cache_key(handle) == EMPTY_BASELINE_KEY
    assert cache_key(None) == NO_RATCHET_KEY


@given(
    shared=st.dictionaries(file_name, st.binary(max_size=16), min_size=1, max_size=3),
    before=st.binary(max_size=16),
    after=st.binary(max_size=16),
)
@settings(max_examples=40)
def test_other_projects_do_not_move_key(
    shared: dict[str, bytes], before: bytes, after: bytes
) -> None:
    store = FakeObjectStore()
    stable = {f"stable/{name}": content for name, content in shared.items()}
    store.commit({**stable, "moving/a.txt": before})
    first_stable = cache_key(resolve_baseline(store, "main", "stable"))
    first_moving = cache_key(resolve_baseline(store, "main", "moving"))

    store.commit({**stable, "moving/a.txt": after})

    assert cache_key(resolve_baseline(store, "main", "stable")) == first_stable
    moved = cache_key(resolve_baseline(store, "main", "moving")) != first_moving
    assert moved is (before != after)

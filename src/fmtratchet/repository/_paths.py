"""Repository-relative path helpers."""

from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath

from fmtratchet.exceptions import PathOutsideRepositoryError


def normalize_repo_path(path: str | PurePath) -> str:
    """Normalize a repository-relative path to its git tree form.

    Backslashes are accepted as separators, ``.`` segments are dropped, and
    the repository root is represented by the empty string.

    Args:
        path: A relative path, as a string or PurePath.

    Returns:
        The path as slash-separated segments, or "" for the root.

    Raises:
        PathOutsideRepositoryError: If the path is absolute or contains "..".
    """
    raw = path.as_posix() if isinstance(path, PurePath) else str(path)
    pure = PurePosixPath(raw.replace("\\", "/"))

    if pure.is_absolute() or PureWindowsPath(raw).drive:
        msg = f"Expected a repository-relative path, got absolute path: {raw}"
        raise PathOutsideRepositoryError(msg, path=raw, root="")

    parts = [part for part in pure.parts if part not in {"", "."}]
    if ".." in parts:
        msg = f"Path escapes the repository: {raw}"
        raise PathOutsideRepositoryError(msg, path=raw, root="")
    return "/".join(parts)


def split_repo_path(path: str) -> list[str]:
    """Split a normalized repository path into its segments."""
    return [segment for segment in path.split("/") if segment]


def relative_to_root(path: Path, root: Path) -> str:
    """Convert a path to a normalized path relative to ``root``.

    Relative paths are interpreted relative to ``root``. Paths are not
    resolved through symlinks: a symlink inside the root is judged by its
    own location, not its target.

    Args:
        path: Absolute path, or path relative to root.
        root: The directory the path must be inside of.

    Returns:
        Normalized relative path ("" for root itself).

    Raises:
        PathOutsideRepositoryError: If the path is not inside root.
    """
    absolute_root = Path(root).absolute()
    candidate = path if path.is_absolute() else absolute_root / path
    try:
        relative = candidate.relative_to(absolute_root)
    except ValueError:
        msg = f"Path is outside {absolute_root}: {path}"
        raise PathOutsideRepositoryError(msg, path=path, root=absolute_root) from None
    try:
        return normalize_repo_path(relative)
    except PathOutsideRepositoryError:
        msg = f"Path is outside {absolute_root}: {path}"
        raise PathOutsideRepositoryError(msg, path=path, root=absolute_root) from None

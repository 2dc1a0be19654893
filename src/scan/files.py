"""Working-tree file scanning for impactmap."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

GIT_DIR = ".git"


def _should_include_file(
    path: Path,
    root: Path,
    gitignore_matches: Callable[[str], bool] | None,
) -> bool:
    """Check if a file should be included based on all filtering rules."""
    if not path.is_file() or path.is_symlink():
        return False

    if not _is_within_root(path, root):
        return False

    try:
        rel_path = path.relative_to(root)
    except ValueError:
        return False

    if GIT_DIR in rel_path.parts:
        return False

    return gitignore_matches is None or not gitignore_matches(str(path))


def _is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        root_resolved = root.resolve()
        path_resolved = path.resolve()
    except OSError:
        return False

    try:
        path_resolved.relative_to(root_resolved)
    except ValueError:
        return False

    return True


def _iter_gitignore_files(root: Path) -> list[Path]:
    """Return sorted list of .gitignore files under root (including root)."""
    gitignore_paths = [root / ".gitignore"]
    gitignore_paths.extend(
        path for path in root.rglob(".gitignore") if GIT_DIR not in path.parts
    )
    unique_paths = {path for path in gitignore_paths if path.is_file()}
    return sorted(unique_paths, key=lambda p: p.relative_to(root).as_posix())


def build_gitignore_matcher(root: Path) -> Callable[[str], bool] | None:
    """Compose every .gitignore under ``root`` into a single matcher."""
    gitignore_paths = _iter_gitignore_files(root)
    if not gitignore_paths:
        return None

    matchers = [parse_gitignore(path) for path in gitignore_paths]

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                continue
        return False

    return matches


def find_files(
    directory: Path,
    *,
    root: Path | None = None,
    pattern: str = "*",
    gitignore_matches: Callable[[str], bool] | None = None,
) -> Iterator[Path]:
    """Find files under a directory of a working tree.

    Args:
        directory: Directory to search
        root: Working tree root used for relative paths and containment
            checks (default: ``directory``)
        pattern: rglob pattern files must match (default: every file)
        gitignore_matches: Optional matcher from ``build_gitignore_matcher``

    Yields:
        Path objects sorted lexicographically by root-relative path.
        Files inside ``.git`` are never returned.
    """
    base = root if root is not None else directory

    matched_files = [
        path
        for path in directory.rglob(pattern)
        if _should_include_file(path, base, gitignore_matches)
    ]

    matched_files.sort(key=lambda p: p.relative_to(base).as_posix())

    yield from matched_files


__all__ = [
    "build_gitignore_matcher",
    "find_files",
]

"""Shared utilities for impactmap."""

from __future__ import annotations

from pathlib import PurePosixPath

PATH_SEPARATOR = "/"


def normalize_repo_path(path: str | PurePosixPath) -> str:
    """Normalize a repository-relative path to canonical POSIX form.

    Args:
        path: Relative path, possibly with backslashes, ``./`` segments or a
            trailing separator.

    Returns:
        Path without leading ``./`` or trailing ``/``. The repository root
        is represented by the empty string.

    Examples:
        >>> normalize_repo_path("./apps/web/")
        'apps/web'
        >>> normalize_repo_path("apps\\\\api")
        'apps/api'
        >>> normalize_repo_path(".")
        ''
    """
    path_str = path.as_posix() if isinstance(path, PurePosixPath) else str(path)
    parts = [
        part
        for part in path_str.replace("\\", PATH_SEPARATOR).split(PATH_SEPARATOR)
        if part and part != "."
    ]
    return PATH_SEPARATOR.join(parts)


def path_key(path: str) -> str:
    """Return the prefix key used to attribute files to a directory.

    The separator suffix keeps ``app1`` from claiming files under ``app10/``.
    The repository root maps to the empty key, which prefixes every path.
    """
    if not path:
        return ""
    return f"{path}{PATH_SEPARATOR}"

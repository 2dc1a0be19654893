"""Git access for impactmap: commits, merge-bases and changed paths.

Only file-level changes are reported; hunks are never read.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from git import Repo
from git.exc import BadName, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

if TYPE_CHECKING:
    from git.diff import DiffIndex
    from git.objects import Commit

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when repository history cannot be read."""


def open_repository(path: Path | str) -> Repo:
    """Open the git repository rooted at ``path``."""
    try:
        return Repo(Path(path))
    except (InvalidGitRepositoryError, NoSuchPathError) as exc:
        msg = f"not a git repository: {path}"
        raise RepositoryError(msg) from exc


def resolve_commit(repo: Repo, ref: str) -> Commit:
    """Resolve a branch, tag or sha to a commit."""
    try:
        return repo.commit(ref)
    except (BadName, GitCommandError, ValueError) as exc:
        msg = f"cannot resolve reference '{ref}': {exc}"
        raise RepositoryError(msg) from exc


def merge_base(repo: Repo, target: Commit, reference: Commit) -> Commit:
    """Return the best common ancestor of two commits."""
    try:
        bases = repo.merge_base(target, reference)
    except GitCommandError as exc:
        msg = f"merge-base of {target.hexsha} and {reference.hexsha} failed: {exc}"
        raise RepositoryError(msg) from exc
    if not bases or bases[0] is None:
        msg = f"commits {target.hexsha} and {reference.hexsha} share no history"
        raise RepositoryError(msg)
    return bases[0]


def _paths_in(diffs: DiffIndex) -> set[str]:
    """Both sides of each record, so renames and deletions count."""
    paths: set[str] = set()
    for diff_item in diffs:
        if diff_item.a_path:
            paths.add(diff_item.a_path)
        if diff_item.b_path:
            paths.add(diff_item.b_path)
    return paths


def changed_paths(base: Commit, target: Commit) -> list[str]:
    """Sorted paths that differ between two commits."""
    try:
        diffs = base.diff(target)
    except GitCommandError as exc:
        msg = f"diff {base.hexsha}..{target.hexsha} failed: {exc}"
        raise RepositoryError(msg) from exc
    return sorted(_paths_in(diffs))


def diff_from_merge_base(repo: Repo, target_ref: str, reference_ref: str) -> list[str]:
    """Paths changed on ``target_ref`` since it diverged from ``reference_ref``.

    Changes that exist only on the reference side are not reported.
    """
    target = resolve_commit(repo, target_ref)
    reference = resolve_commit(repo, reference_ref)
    base = merge_base(repo, target, reference)
    paths = changed_paths(base, target)
    logger.debug(
        "%d path(s) changed on %s since merge-base %s",
        len(paths),
        target_ref,
        base.hexsha[:12],
    )
    return paths


def workspace_changes(repo: Repo) -> list[str]:
    """Staged, unstaged and untracked paths relative to ``HEAD``."""
    paths: set[str] = set()
    try:
        if repo.head.is_valid():
            paths |= _paths_in(repo.index.diff("HEAD"))
        else:
            paths |= {path for path, _stage in repo.index.entries}
        paths |= _paths_in(repo.index.diff(None))
        paths.update(repo.untracked_files)
    except GitCommandError as exc:
        msg = f"cannot read workspace status: {exc}"
        raise RepositoryError(msg) from exc
    return sorted(paths)


__all__ = [
    "RepositoryError",
    "changed_paths",
    "diff_from_merge_base",
    "merge_base",
    "open_repository",
    "resolve_commit",
    "workspace_changes",
]

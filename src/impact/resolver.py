"""Change-impact resolution: changed files to impacted applications."""

from __future__ import annotations

import logging
from fnmatch import fnmatch
from typing import TYPE_CHECKING

from graph.application import Applications
from graph.closure import expand_required_by, order_producers_first
from utils import normalize_repo_path

if TYPE_CHECKING:
    from collections.abc import Iterable

    from graph.application import Application, ApplicationGraph

logger = logging.getLogger(__name__)


def attribute_changes(
    applications: Applications,
    changed_paths: Iterable[str],
    *,
    exclude_patterns: list[str] | None = None,
) -> Applications:
    """Return the applications whose directories contain a changed path.

    A path belongs to an application when ``application.path + "/"`` is a
    prefix of it, so ``svc-a`` never claims ``svc-ab/main``. Paths outside
    every application are ignored. If directories overlap, a path is
    attributed to every matching application and a warning is logged.

    Args:
        applications: Every application of the snapshot
        changed_paths: Repository-relative paths of changed files
        exclude_patterns: Optional fnmatch patterns; matching paths are
            skipped before attribution

    Returns:
        Directly touched applications, sorted by path.
    """
    index = applications.index_by_path()
    touched: dict[str, Application] = {}

    for raw_path in changed_paths:
        path = normalize_repo_path(raw_path)
        if not path:
            continue
        if exclude_patterns and any(fnmatch(path, pat) for pat in exclude_patterns):
            continue

        matches = [key for key in index if path.startswith(key)]
        if len(matches) > 1:
            logger.warning(
                "%s matches several applications: %s",
                path,
                ", ".join(sorted(index[key].name for key in matches)),
            )
        for key in matches:
            touched.setdefault(key, index[key])

    return Applications(touched.values()).sort_by_path()


def reduce_to_diff(
    graph: ApplicationGraph,
    changed_paths: Iterable[str],
    *,
    exclude_patterns: list[str] | None = None,
) -> Applications:
    """Impacted applications for a list of changed paths.

    The directly touched applications are expanded with every transitive
    dependent, producers first.
    """
    touched = attribute_changes(
        graph.applications, changed_paths, exclude_patterns=exclude_patterns
    )
    logger.debug("%d application(s) directly touched", len(touched))
    return expand_required_by(graph, touched)


def intersect(
    graph: ApplicationGraph,
    impacted: Applications,
    other: Applications,
) -> Applications:
    """Members of ``impacted`` that ``other`` also contains, matched by name."""
    names = set(other.names())
    return order_producers_first(graph, [app for app in impacted if app.name in names])


__all__ = ["attribute_changes", "intersect", "reduce_to_diff"]

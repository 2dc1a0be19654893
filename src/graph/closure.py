"""Dependency closure over the required-by relation.

If A needs B, then A requires B and B is required by A. Expanding a set of
applications along required-by yields every application that must be
rebuilt when any member of the set changes.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING

from graph.application import Applications
from graph.errors import CyclicDependencyError, GraphIntegrityError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from graph.application import Application, ApplicationGraph

logger = logging.getLogger(__name__)


class _Mark(Enum):
    VISITING = 1
    DONE = 2


def _seed_ids(graph: ApplicationGraph, seeds: Iterable[Application]) -> list[int]:
    """Return unique seed ids ordered by path."""
    ids: list[int] = []
    seen: set[int] = set()
    for app in sorted(seeds, key=lambda a: (a.path, a.name)):
        if app not in graph:
            msg = f"application {app.name!r} does not belong to this graph"
            raise GraphIntegrityError(msg)
        if app.id not in seen:
            seen.add(app.id)
            ids.append(app.id)
    return ids


def _reachable(graph: ApplicationGraph, seed_ids: list[int]) -> list[int]:
    """Breadth-first walk along required-by edges, in discovery order."""
    order = list(seed_ids)
    seen = set(seed_ids)
    queue = deque(seed_ids)
    while queue:
        node = graph.node(queue.popleft())
        for dependent in node.required_by:
            if dependent not in seen:
                seen.add(dependent)
                order.append(dependent)
                queue.append(dependent)
    return order


def _cycle_names(
    graph: ApplicationGraph,
    stack: list[tuple[int, Iterator[int]]],
    repeated: int,
) -> list[str]:
    path = [node_id for node_id, _ in stack]
    start = path.index(repeated)
    return [graph.node(node_id).name for node_id in [*path[start:], repeated]]


def _producers_first(graph: ApplicationGraph, members: list[int]) -> list[int]:
    """Order members so every application follows the members it requires.

    Depth-first over requires edges restricted to ``members``; roots are
    taken in the order given, which breaks ties between unrelated nodes.

    Raises:
        CyclicDependencyError: If the restricted requires relation has a cycle.
    """
    member_set = set(members)
    marks: dict[int, _Mark] = {}
    order: list[int] = []

    for root in members:
        if root in marks:
            continue
        marks[root] = _Mark.VISITING
        stack: list[tuple[int, Iterator[int]]] = [
            (root, iter(graph.node(root).requires))
        ]
        while stack:
            node_id, deps = stack[-1]
            for dep in deps:
                if dep not in member_set:
                    continue
                mark = marks.get(dep)
                if mark is _Mark.VISITING:
                    raise CyclicDependencyError(_cycle_names(graph, stack, dep))
                if mark is None:
                    marks[dep] = _Mark.VISITING
                    stack.append((dep, iter(graph.node(dep).requires)))
                    break
            else:
                stack.pop()
                marks[node_id] = _Mark.DONE
                order.append(node_id)

    return order


def expand_required_by(
    graph: ApplicationGraph, seeds: Iterable[Application]
) -> Applications:
    """Return ``seeds`` plus every transitive dependent, producers first.

    Each reachable application appears exactly once. For any X and Y in the
    result where X requires Y, Y comes before X.

    Args:
        graph: Graph the seeds belong to.
        seeds: Starting applications; duplicates are ignored.

    Returns:
        The closure as an ordered ``Applications``. Empty seeds give an
        empty result.

    Raises:
        CyclicDependencyError: If a cycle is reachable from the seeds.
        GraphIntegrityError: If a seed is not a node of ``graph``.
    """
    seed_ids = _seed_ids(graph, seeds)
    if not seed_ids:
        return Applications()

    members = _reachable(graph, seed_ids)
    ordered = _producers_first(graph, members)
    logger.debug(
        "expanded %d seed application(s) to %d", len(seed_ids), len(ordered)
    )
    return Applications(graph.node(node_id) for node_id in ordered)


def order_producers_first(
    graph: ApplicationGraph, apps: Iterable[Application]
) -> Applications:
    """Order ``apps`` by the requires relation without expanding the set."""
    members = _seed_ids(graph, apps)
    return Applications(
        graph.node(node_id) for node_id in _producers_first(graph, members)
    )


__all__ = ["expand_required_by", "order_producers_first"]

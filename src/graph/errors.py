"""Errors raised while assembling or traversing an application graph.

All of these are deterministic: retrying the same resolution yields the
same failure.
"""

from __future__ import annotations


class GraphError(Exception):
    """Base class for application graph construction and traversal errors."""


class DuplicateApplicationError(GraphError):
    """Two applications in one snapshot share a name."""

    def __init__(self, name: str, paths: tuple[str, str]) -> None:
        self.name = name
        self.paths = paths
        super().__init__(
            f"duplicate application name {name!r} at {paths[0]!r} and {paths[1]!r}"
        )


class DuplicatePathError(GraphError):
    """Two applications in one snapshot share a directory."""

    def __init__(self, path: str, names: tuple[str, str]) -> None:
        self.path = path
        self.names = names
        super().__init__(
            f"applications {names[0]!r} and {names[1]!r} share path {path!r}"
        )


class OverlappingPathError(GraphError):
    """One application directory contains another."""

    def __init__(self, outer: str, inner: str) -> None:
        self.outer = outer
        self.inner = inner
        super().__init__(
            f"application path {inner!r} is nested inside {outer or '<root>'!r}"
        )


class MissingDependencyError(GraphError):
    """An application declares a dependency that does not exist."""

    def __init__(self, name: str, dependency: str) -> None:
        self.name = name
        self.dependency = dependency
        super().__init__(f"{name!r} requires {dependency!r} but it is not found")


class CyclicDependencyError(GraphError):
    """The requires relation contains a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(f"cyclic dependency: {' -> '.join(cycle)}")


class GraphIntegrityError(GraphError):
    """Node ids or adjacency lists of a graph are inconsistent."""


__all__ = [
    "CyclicDependencyError",
    "DuplicateApplicationError",
    "DuplicatePathError",
    "GraphError",
    "GraphIntegrityError",
    "MissingDependencyError",
    "OverlappingPathError",
]

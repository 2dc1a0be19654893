"""Application dependency graph for impactmap."""

from graph.application import Application, ApplicationGraph, Applications
from graph.builder import GraphBuilder
from graph.closure import expand_required_by, order_producers_first
from graph.errors import (
    CyclicDependencyError,
    DuplicateApplicationError,
    DuplicatePathError,
    GraphError,
    GraphIntegrityError,
    MissingDependencyError,
    OverlappingPathError,
)

__all__ = [
    "Application",
    "ApplicationGraph",
    "Applications",
    "CyclicDependencyError",
    "DuplicateApplicationError",
    "DuplicatePathError",
    "GraphBuilder",
    "GraphError",
    "GraphIntegrityError",
    "MissingDependencyError",
    "OverlappingPathError",
    "expand_required_by",
    "order_producers_first",
]

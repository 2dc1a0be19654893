"""Assemble a frozen ``ApplicationGraph`` from parsed manifests."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from graph.application import Application, ApplicationGraph
from graph.closure import order_producers_first
from graph.errors import (
    DuplicateApplicationError,
    DuplicatePathError,
    MissingDependencyError,
    OverlappingPathError,
)
from utils import normalize_repo_path, path_key

if TYPE_CHECKING:
    from manifest.models import AppSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplicationMetadata:
    """A parsed manifest together with where it was found."""

    spec: AppSpec
    path: str
    content_hash: str


def _check_unique_names(entries: list[ApplicationMetadata]) -> None:
    seen: dict[str, str] = {}
    for entry in entries:
        name = entry.spec.name
        if name in seen:
            raise DuplicateApplicationError(name, (seen[name], entry.path))
        seen[name] = entry.path


def _check_paths(entries: list[ApplicationMetadata]) -> None:
    """Reject duplicate paths and directories nested inside another."""
    keyed = sorted(
        ((path_key(entry.path), entry) for entry in entries), key=lambda pair: pair[0]
    )
    for (prev_key, prev), (key, entry) in zip(keyed, keyed[1:]):
        if key == prev_key:
            raise DuplicatePathError(entry.path, (prev.spec.name, entry.spec.name))
        if key.startswith(prev_key):
            raise OverlappingPathError(prev.path, entry.path)


def derive_version(content_hash: str, dependency_versions: list[str]) -> str:
    """Combine an application's content hash with its dependencies' versions.

    An application without dependencies is versioned by its content alone.
    """
    if not dependency_versions:
        return content_hash
    digest = hashlib.sha1(content_hash.encode("utf-8"))
    for version in dependency_versions:
        digest.update(version.encode("utf-8"))
    return digest.hexdigest()


class GraphBuilder:
    """Collects applications and declared dependencies, then freezes them.

    Node ids are assigned in path order so the same snapshot always yields
    the same graph.
    """

    def __init__(self) -> None:
        self._entries: list[ApplicationMetadata] = []

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, spec: AppSpec, path: str, content_hash: str) -> GraphBuilder:
        self._entries.append(
            ApplicationMetadata(
                spec=spec,
                path=normalize_repo_path(path),
                content_hash=content_hash,
            )
        )
        return self

    def build(self, *, check_cycles: bool = True) -> ApplicationGraph:
        """Validate the collected applications and return the frozen graph.

        Args:
            check_cycles: Reject cyclic requirements and derive versions from
                dependencies. When false, every version is the plain content
                hash and cycles surface later during closure computation.

        Raises:
            DuplicateApplicationError: Two manifests share a name.
            DuplicatePathError: Two manifests share a directory.
            OverlappingPathError: One application directory contains another.
            MissingDependencyError: A declared dependency does not exist.
            CyclicDependencyError: The requires relation has a cycle.
        """
        entries = sorted(self._entries, key=lambda e: (e.path, e.spec.name))
        _check_unique_names(entries)
        _check_paths(entries)

        ids_by_name = {entry.spec.name: i for i, entry in enumerate(entries)}
        requires: list[list[int]] = [[] for _ in entries]
        required_by: list[list[int]] = [[] for _ in entries]
        for i, entry in enumerate(entries):
            for dependency in entry.spec.dependencies:
                dep_id = ids_by_name.get(dependency)
                if dep_id is None:
                    raise MissingDependencyError(entry.spec.name, dependency)
                if dep_id in requires[i]:
                    continue
                requires[i].append(dep_id)
                required_by[dep_id].append(i)

        nodes = [
            Application(
                id=i,
                name=entry.spec.name,
                path=entry.path,
                version=entry.content_hash,
                build=entry.spec.build,
                properties=entry.spec.properties,
                requires=tuple(requires[i]),
                required_by=tuple(required_by[i]),
            )
            for i, entry in enumerate(entries)
        ]
        graph = ApplicationGraph(nodes)
        if not check_cycles:
            return graph

        versions: dict[int, str] = {}
        for app in order_producers_first(graph, graph):
            versions[app.id] = derive_version(
                entries[app.id].content_hash,
                [versions[dep] for dep in app.requires],
            )

        logger.debug("assembled graph with %d application(s)", len(nodes))
        return ApplicationGraph([replace(app, version=versions[app.id]) for app in nodes])


__all__ = ["ApplicationMetadata", "GraphBuilder", "derive_version"]

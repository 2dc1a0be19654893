"""Snapshot resolution entry points.

``SnapshotResolver`` answers two questions for callers such as the CLI or a
CI job: which applications exist at a commit, and which applications are
impacted by the changes between two commits. Reading history and parsing
manifests is delegated to a ``SnapshotSource``; ``GitRepository`` is the
GitPython-backed implementation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from impact.resolver import intersect, reduce_to_diff
from manifest.discover import ManifestError, discover_in_commit, discover_in_workspace
from settings.config import ImpactMapConfig
from vcs.git import (
    RepositoryError,
    diff_from_merge_base,
    open_repository,
    resolve_commit,
    workspace_changes,
)

if TYPE_CHECKING:
    from graph.application import ApplicationGraph, Applications

logger = logging.getLogger(__name__)

_COLLABORATOR_ERRORS = (ManifestError, RepositoryError, OSError)


class SnapshotError(Exception):
    """A collaborator failed while resolving a snapshot.

    ``operation`` and ``reference`` say what was being attempted; the
    underlying error is chained as ``__cause__``.
    """

    def __init__(self, operation: str, reference: str, cause: Exception) -> None:
        self.operation = operation
        self.reference = reference
        super().__init__(f"{operation} at {reference}: {cause}")


class SnapshotSource(Protocol):
    def discover_applications_at(self, ref: str) -> ApplicationGraph: ...

    def diff_between(self, target_ref: str, reference_ref: str) -> list[str]: ...


class WorkspaceSource(Protocol):
    def discover_workspace_applications(self) -> ApplicationGraph: ...

    def workspace_changes(self) -> list[str]: ...


@dataclass(frozen=True)
class Resolution:
    """Applications answering a query, with the graph they belong to."""

    graph: ApplicationGraph
    applications: Applications

    def names(self) -> list[str]:
        return self.applications.names()


class GitRepository:
    """Snapshot and workspace source backed by a local git repository."""

    def __init__(self, path: Path | str, config: ImpactMapConfig | None = None) -> None:
        self.path = Path(path)
        self.config = config if config is not None else ImpactMapConfig()
        self._repo = open_repository(self.path)

    def discover_applications_at(self, ref: str) -> ApplicationGraph:
        commit = resolve_commit(self._repo, ref)
        return discover_in_commit(commit, self.config.manifest_name).build()

    def diff_between(self, target_ref: str, reference_ref: str) -> list[str]:
        return diff_from_merge_base(self._repo, target_ref, reference_ref)

    def discover_workspace_applications(self) -> ApplicationGraph:
        root = Path(self._repo.working_tree_dir or self.path)
        return discover_in_workspace(root, self.config.manifest_name).build()

    def workspace_changes(self) -> list[str]:
        return workspace_changes(self._repo)


class SnapshotResolver:
    """Resolve application sets for commits, diffs and the working tree.

    A fresh graph is discovered for every call and never shared between
    calls. Collaborator failures are raised as ``SnapshotError``; graph
    errors such as ``CyclicDependencyError`` propagate unchanged.
    """

    def __init__(
        self,
        source: SnapshotSource,
        *,
        workspace: WorkspaceSource | None = None,
        exclude_patterns: list[str] | None = None,
    ) -> None:
        self.source = source
        self.workspace = workspace
        self.exclude_patterns = exclude_patterns

    @classmethod
    def for_repository(
        cls, path: Path | str, config: ImpactMapConfig | None = None
    ) -> SnapshotResolver:
        try:
            repository = GitRepository(path, config)
        except RepositoryError as exc:
            raise SnapshotError("open repository", str(path), exc) from exc
        return cls(
            repository,
            workspace=repository,
            exclude_patterns=repository.config.exclude,
        )

    def _snapshot(self, ref: str) -> ApplicationGraph:
        try:
            return self.source.discover_applications_at(ref)
        except _COLLABORATOR_ERRORS as exc:
            raise SnapshotError("discover applications", ref, exc) from exc

    def _diff(self, target_ref: str, reference_ref: str) -> list[str]:
        try:
            return self.source.diff_between(target_ref, reference_ref)
        except _COLLABORATOR_ERRORS as exc:
            raise SnapshotError(
                f"diff against {reference_ref}", target_ref, exc
            ) from exc

    def _require_workspace(self) -> WorkspaceSource:
        if self.workspace is None:
            msg = "resolver has no workspace source"
            raise RuntimeError(msg)
        return self.workspace

    def applications_in_commit(self, ref: str) -> Resolution:
        """Every application at ``ref``, sorted by path."""
        graph = self._snapshot(ref)
        return Resolution(graph, graph.applications.sort_by_path())

    def applications_in_diff(self, target_ref: str, reference_ref: str) -> Resolution:
        """Applications impacted on ``target_ref`` since it left ``reference_ref``.

        The diff is taken from the merge-base of both references; the
        snapshot is that of ``target_ref``.
        """
        changed = self._diff(target_ref, reference_ref)
        graph = self._snapshot(target_ref)
        impacted = reduce_to_diff(
            graph, changed, exclude_patterns=self.exclude_patterns
        )
        logger.debug(
            "%d changed path(s) impact %d application(s)", len(changed), len(impacted)
        )
        return Resolution(graph, impacted)

    def applications_in_intersection(self, first_ref: str, second_ref: str) -> Resolution:
        """Applications impacted on both sides since their merge-base."""
        first = self.applications_in_diff(first_ref, second_ref)
        second = self.applications_in_diff(second_ref, first_ref)
        return Resolution(
            first.graph, intersect(first.graph, first.applications, second.applications)
        )

    def applications_in_workspace(self) -> Resolution:
        """Every application in the working tree, sorted by path."""
        workspace = self._require_workspace()
        try:
            graph = workspace.discover_workspace_applications()
        except _COLLABORATOR_ERRORS as exc:
            raise SnapshotError("discover applications", "workspace", exc) from exc
        return Resolution(graph, graph.applications.sort_by_path())

    def applications_in_workspace_changes(self) -> Resolution:
        """Applications impacted by uncommitted changes in the working tree."""
        workspace = self._require_workspace()
        try:
            changed = workspace.workspace_changes()
        except _COLLABORATOR_ERRORS as exc:
            raise SnapshotError("read changes", "workspace", exc) from exc
        graph = self.applications_in_workspace().graph
        return Resolution(
            graph,
            reduce_to_diff(graph, changed, exclude_patterns=self.exclude_patterns),
        )


__all__ = [
    "GitRepository",
    "Resolution",
    "SnapshotError",
    "SnapshotResolver",
    "SnapshotSource",
    "WorkspaceSource",
]

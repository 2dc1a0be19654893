"""Application nodes and ordered application sets."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, overload

from graph.errors import DuplicateApplicationError, DuplicatePathError, GraphIntegrityError
from utils import path_key


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Application:
    """A single buildable application in a repository snapshot.

    ``requires`` and ``required_by`` hold node ids into the owning
    ``ApplicationGraph``; resolve them with ``ApplicationGraph.requires`` and
    ``ApplicationGraph.required_by``.
    """

    id: int
    name: str
    path: str
    version: str
    build: Mapping[str, Any] = field(default_factory=_empty_mapping, compare=False)
    properties: Mapping[str, Any] = field(default_factory=_empty_mapping, compare=False)
    requires: tuple[int, ...] = ()
    required_by: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        # Freeze the opaque mappings so consumers cannot mutate node content.
        if not isinstance(self.build, MappingProxyType):
            object.__setattr__(self, "build", MappingProxyType(dict(self.build)))
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(
                self, "properties", MappingProxyType(dict(self.properties))
            )


class Applications(Sequence[Application]):
    """Immutable ordered collection of applications."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Application] = ()) -> None:
        self._items: tuple[Application, ...] = tuple(items)

    @overload
    def __getitem__(self, index: int) -> Application: ...

    @overload
    def __getitem__(self, index: slice) -> Applications: ...

    def __getitem__(self, index: int | slice) -> Application | Applications:
        if isinstance(index, slice):
            return Applications(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Application]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Applications):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"Applications({list(self.names())!r})"

    def names(self) -> list[str]:
        return [app.name for app in self._items]

    def sort_by_path(self) -> Applications:
        """Return a new set sorted by path (stable, ascending)."""
        return Applications(sorted(self._items, key=lambda app: app.path))

    def index_by_name(self) -> dict[str, Application]:
        """Map application name to application.

        Raises:
            DuplicateApplicationError: If two applications share a name.
        """
        index: dict[str, Application] = {}
        for app in self._items:
            existing = index.get(app.name)
            if existing is not None:
                raise DuplicateApplicationError(app.name, (existing.path, app.path))
            index[app.name] = app
        return index

    def index_by_path(self) -> dict[str, Application]:
        """Map ``path + "/"`` to application for prefix matching of file paths.

        Raises:
            DuplicatePathError: If two applications share a path.
        """
        index: dict[str, Application] = {}
        for app in self._items:
            key = path_key(app.path)
            existing = index.get(key)
            if existing is not None:
                raise DuplicatePathError(app.path, (existing.name, app.name))
            index[key] = app
        return index


class ApplicationGraph:
    """Read-only node table holding every application of one snapshot.

    Adjacency is stored as integer ids on each node. The constructor checks
    that ids address the table and that ``requires`` and ``required_by`` are
    exact inverses of each other.
    """

    def __init__(self, nodes: Sequence[Application]) -> None:
        self._nodes: tuple[Application, ...] = tuple(nodes)
        self._by_name: dict[str, Application] = {}
        self._check_integrity()

    def _check_integrity(self) -> None:
        size = len(self._nodes)
        for position, app in enumerate(self._nodes):
            if app.id != position:
                msg = f"application {app.name!r} has id {app.id}, expected {position}"
                raise GraphIntegrityError(msg)
            for other in (*app.requires, *app.required_by):
                if not 0 <= other < size:
                    msg = f"application {app.name!r} references unknown id {other}"
                    raise GraphIntegrityError(msg)

        for app in self._nodes:
            for dep in app.requires:
                if app.id not in self._nodes[dep].required_by:
                    msg = (
                        f"{app.name!r} requires {self._nodes[dep].name!r} "
                        "but is missing from its required_by"
                    )
                    raise GraphIntegrityError(msg)
            for dependent in app.required_by:
                if app.id not in self._nodes[dependent].requires:
                    msg = (
                        f"{app.name!r} is required by {self._nodes[dependent].name!r} "
                        "but is missing from its requires"
                    )
                    raise GraphIntegrityError(msg)

        self._by_name = Applications(self._nodes).index_by_name()

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Application]:
        return iter(self._nodes)

    def __contains__(self, app: object) -> bool:
        return (
            isinstance(app, Application)
            and 0 <= app.id < len(self._nodes)
            and self._nodes[app.id] == app
        )

    @property
    def applications(self) -> Applications:
        return Applications(self._nodes)

    def node(self, node_id: int) -> Application:
        return self._nodes[node_id]

    def find(self, name: str) -> Application | None:
        return self._by_name.get(name)

    def requires(self, app: Application) -> Applications:
        """Applications ``app`` depends on, in declared order."""
        return Applications(self._nodes[i] for i in app.requires)

    def required_by(self, app: Application) -> Applications:
        """Applications that depend on ``app``."""
        return Applications(self._nodes[i] for i in app.required_by)


__all__ = ["Application", "ApplicationGraph", "Applications"]

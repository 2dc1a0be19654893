"""Output records for resolved application sets.

Records replace node ids with dependency names so output is meaningful
without the in-memory graph.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TextIO

import orjson
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from graph.application import Application, ApplicationGraph, Applications

# Schema version constant
SCHEMA_VERSION = 1

# Manifest properties may carry non-string mapping keys
_DUMP_OPTS = orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS


class ApplicationRecord(BaseModel):
    """Serializable view of one application."""

    schema_version: int = Field(default=SCHEMA_VERSION)
    name: str
    path: str
    version: str
    requires: list[str] = Field(default_factory=list)
    required_by: list[str] = Field(default_factory=list)
    build: dict[str, Any] = Field(default_factory=dict)
    properties: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_application(
        cls, app: Application, graph: ApplicationGraph
    ) -> ApplicationRecord:
        return cls(
            name=app.name,
            path=app.path,
            version=app.version,
            requires=graph.requires(app).names(),
            required_by=sorted(graph.required_by(app).names()),
            build={step: cmd.model_dump() for step, cmd in app.build.items()},
            properties=dict(app.properties),
        )


def to_records(
    applications: Applications, graph: ApplicationGraph
) -> list[ApplicationRecord]:
    return [ApplicationRecord.from_application(app, graph) for app in applications]


def write_text(stream: TextIO, records: list[ApplicationRecord]) -> None:
    for rec in records:
        stream.write(f"{rec.name}\t{rec.path or '.'}\t{rec.version}\n")


def write_json(stream: TextIO, records: list[ApplicationRecord]) -> None:
    payload = [rec.model_dump() for rec in records]
    opts = _DUMP_OPTS | orjson.OPT_INDENT_2
    stream.write(orjson.dumps(payload, option=opts).decode("utf-8"))
    stream.write("\n")


def write_jsonl(stream: TextIO, records: list[ApplicationRecord]) -> None:
    for rec in records:
        stream.write(
            orjson.dumps(rec.model_dump(), option=_DUMP_OPTS).decode("utf-8")
        )
        stream.write("\n")


WRITERS = {
    "text": write_text,
    "json": write_json,
    "jsonl": write_jsonl,
}


__all__ = [
    "SCHEMA_VERSION",
    "WRITERS",
    "ApplicationRecord",
    "to_records",
    "write_json",
    "write_jsonl",
    "write_text",
]

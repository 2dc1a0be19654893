from __future__ import annotations

import io
import json

from graph.application import ApplicationGraph
from graph.builder import GraphBuilder
from manifest.discover import parse_manifest
from manifest.models import AppSpec, BuildCmd
from report.records import to_records, write_json, write_jsonl, write_text


def _graph() -> ApplicationGraph:
    builder = GraphBuilder()
    builder.add(
        AppSpec(name="lib", build={"linux": BuildCmd(cmd="make")}), "libs/lib", "h1"
    )
    builder.add(AppSpec(name="web", dependencies=["lib"]), "apps/web", "h2")
    builder.add(AppSpec(name="api", dependencies=["lib"]), "apps/api", "h3")
    return builder.build()


def test_records_use_dependency_names() -> None:
    graph = _graph()

    records = to_records(graph.applications.sort_by_path(), graph)

    lib = records[-1]
    assert lib.name == "lib"
    assert lib.required_by == ["api", "web"]
    assert lib.build == {"linux": {"cmd": "make", "args": []}}
    assert records[0].requires == ["lib"]


def test_text_output_is_tab_separated() -> None:
    graph = _graph()
    stream = io.StringIO()

    write_text(stream, to_records(graph.applications, graph))

    first = stream.getvalue().splitlines()[0].split("\t")
    assert first[:2] == ["api", "apps/api"]


def test_json_and_jsonl_agree() -> None:
    graph = _graph()
    records = to_records(graph.applications, graph)
    as_json = io.StringIO()
    as_jsonl = io.StringIO()

    write_json(as_json, records)
    write_jsonl(as_jsonl, records)

    from_json = json.loads(as_json.getvalue())
    from_jsonl = [json.loads(line) for line in as_jsonl.getvalue().splitlines()]
    assert from_json == from_jsonl
    assert list(from_json[0]) == sorted(from_json[0])


def test_json_output_accepts_non_string_property_keys() -> None:
    spec = parse_manifest(
        b"name: web\nproperties:\n  ports:\n    80: http\n", "apps/web/.impactmap.yml"
    )
    graph = GraphBuilder().add(spec, "apps/web", "h1").build()
    records = to_records(graph.applications, graph)
    as_json = io.StringIO()
    as_jsonl = io.StringIO()

    write_json(as_json, records)
    write_jsonl(as_jsonl, records)

    assert json.loads(as_json.getvalue())[0]["properties"] == {"ports": {"80": "http"}}
    assert json.loads(as_jsonl.getvalue())["properties"] == {"ports": {"80": "http"}}

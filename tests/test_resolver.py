from __future__ import annotations

import logging

import pytest

from graph.application import Application, ApplicationGraph, Applications
from graph.builder import GraphBuilder
from impact.resolver import attribute_changes, intersect, reduce_to_diff
from manifest.models import AppSpec


def _graph(*apps: tuple[str, str, list[str]]) -> ApplicationGraph:
    builder = GraphBuilder()
    for name, path, deps in apps:
        builder.add(AppSpec(name=name, dependencies=deps), path, f"hash-{name}")
    return builder.build()


def test_prefix_attribution_respects_separator() -> None:
    graph = _graph(("a", "svc-a", []), ("ab", "svc-ab", []))

    touched = attribute_changes(graph.applications, ["svc-ab/main"])

    assert touched.names() == ["ab"]


def test_file_outside_applications_is_ignored() -> None:
    graph = _graph(("a", "apps/a", []))

    assert reduce_to_diff(graph, ["README.md", "tools/lint.sh"]) == Applications()


def test_no_changes_gives_empty_result() -> None:
    graph = _graph(("a", "apps/a", []), ("b", "apps/b", ["a"]))

    assert reduce_to_diff(graph, []) == Applications()


def test_many_files_in_one_application_collapse() -> None:
    graph = _graph(("a", "apps/a", []), ("b", "apps/b", []))

    touched = attribute_changes(
        graph.applications, ["apps/a/x.go", "apps/a/sub/y.go", "apps/b/z.go"]
    )

    assert touched.names() == ["a", "b"]


def test_directory_path_itself_is_not_a_change_inside_it() -> None:
    graph = _graph(("a", "apps/a", []))

    assert attribute_changes(graph.applications, ["apps/a"]) == Applications()


def test_leaf_change_expands_to_dependents() -> None:
    graph = _graph(("a", "apps/a", []), ("b", "apps/b", ["a"]))

    assert reduce_to_diff(graph, ["apps/a/main.go"]).names() == ["a", "b"]


def test_diamond_change_orders_producers_first() -> None:
    graph = _graph(
        ("a", "apps/a", ["b", "c"]),
        ("b", "apps/b", ["d"]),
        ("c", "apps/c", ["d"]),
        ("d", "libs/d", []),
    )

    names = reduce_to_diff(graph, ["libs/d/lib.go"]).names()

    assert sorted(names) == ["a", "b", "c", "d"]
    assert names[0] == "d"
    assert names[-1] == "a"


def test_exclude_patterns_skip_paths_before_attribution() -> None:
    graph = _graph(("a", "apps/a", []))

    touched = attribute_changes(
        graph.applications, ["apps/a/README.md"], exclude_patterns=["*.md"]
    )

    assert touched == Applications()


def test_changed_paths_are_normalized() -> None:
    graph = _graph(("a", "apps/a", []))

    assert attribute_changes(graph.applications, ["./apps/a/x"]).names() == ["a"]


def test_overlapping_paths_flag_every_match(caplog: pytest.LogCaptureFixture) -> None:
    # Hand-assembled nodes bypass the builder's overlap check.
    apps = Applications(
        [
            Application(id=0, name="outer", path="apps", version="1"),
            Application(id=1, name="inner", path="apps/web", version="2"),
        ]
    )

    with caplog.at_level(logging.WARNING, logger="impact.resolver"):
        touched = attribute_changes(apps, ["apps/web/index.html"])

    assert touched.names() == ["outer", "inner"]
    assert "matches several applications" in caplog.text


def test_intersect_matches_by_name_and_keeps_order() -> None:
    graph = _graph(("lib", "lib", []), ("app", "app", ["lib"]), ("cli", "cli", []))
    impacted = reduce_to_diff(graph, ["lib/x", "cli/y"])
    other_graph = _graph(("lib", "lib", []), ("app", "app", ["lib"]))
    other = reduce_to_diff(other_graph, ["lib/z"])

    assert intersect(graph, impacted, other).names() == ["lib", "app"]

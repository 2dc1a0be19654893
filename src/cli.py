"""Command-line interface for impactmap."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from graph.errors import GraphError
from impact.snapshot import SnapshotError, SnapshotResolver
from report.records import WRITERS, to_records
from settings.config import ConfigError, load_config

if TYPE_CHECKING:
    from impact.snapshot import Resolution
    from settings.config import ImpactMapConfig


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--repo",
        default=".",
        help="Repository root (default: .)",
    )
    parser.add_argument(
        "--format",
        choices=sorted(WRITERS),
        default=None,
        help="Output format (default: config output_format)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="impactmap")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    describe_parser = subparsers.add_parser(
        "describe", help="Describe applications in a snapshot or change"
    )
    describe = describe_parser.add_subparsers(dest="what", required=True)

    commit_parser = describe.add_parser("commit", help="Applications at a commit")
    commit_parser.add_argument("ref", help="Commit, branch or tag")
    _add_common_options(commit_parser)

    diff_parser = describe.add_parser(
        "diff", help="Applications impacted since the merge-base of two commits"
    )
    diff_parser.add_argument("--to", required=True, help="Target reference")
    diff_parser.add_argument(
        "--from",
        dest="from_ref",
        default=None,
        help="Reference to diff against (default: config default_reference)",
    )
    _add_common_options(diff_parser)

    intersection_parser = describe.add_parser(
        "intersection", help="Applications impacted on both sides of a divergence"
    )
    intersection_parser.add_argument("--first", required=True)
    intersection_parser.add_argument("--second", required=True)
    _add_common_options(intersection_parser)

    local_parser = describe.add_parser(
        "local", help="Applications in the working tree"
    )
    _add_common_options(local_parser)

    changes_parser = describe.add_parser(
        "changes", help="Applications impacted by uncommitted changes"
    )
    _add_common_options(changes_parser)

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
    )


def _resolve(
    args: argparse.Namespace, root: Path, config: ImpactMapConfig
) -> Resolution:
    resolver = SnapshotResolver.for_repository(root, config)

    if args.what == "commit":
        return resolver.applications_in_commit(args.ref)

    if args.what == "diff":
        from_ref = args.from_ref or config.default_reference
        return resolver.applications_in_diff(args.to, from_ref)

    if args.what == "intersection":
        return resolver.applications_in_intersection(args.first, args.second)

    if args.what == "local":
        return resolver.applications_in_workspace()

    if args.what == "changes":
        return resolver.applications_in_workspace_changes()

    raise AssertionError


def _handle_describe(args: argparse.Namespace) -> int:
    root = Path(args.repo).expanduser().resolve()
    try:
        config = load_config(root)
        resolution = _resolve(args, root, config)
    except (ConfigError, SnapshotError, GraphError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    output_format = args.format or config.output_format
    records = to_records(resolution.applications, resolution.graph)
    WRITERS[output_format](sys.stdout, records)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if args.command == "describe":
        return _handle_describe(args)

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())

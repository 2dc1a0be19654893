"""Manifest discovery in git history and in a working tree.

A directory is an application when it contains a manifest file. Discovery
returns a ``GraphBuilder`` holding every manifest found; callers freeze it
with ``GraphBuilder.build``.
"""

from __future__ import annotations

import hashlib
import logging
import posixpath
from typing import TYPE_CHECKING

import yaml
from pydantic import ValidationError

from graph.builder import GraphBuilder
from manifest.models import AppSpec
from scan.files import build_gitignore_matcher, find_files
from utils import normalize_repo_path

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from git.objects import Commit

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Raised when a manifest cannot be read or parsed."""


def parse_manifest(content: bytes | str, source: str) -> AppSpec:
    """Parse manifest YAML into an ``AppSpec``.

    Args:
        content: Raw manifest bytes or text
        source: Human-readable origin used in error messages
            (e.g. ``"main:apps/web/.impactmap.yml"``)
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = f"{source}: invalid YAML: {exc}"
        raise ManifestError(msg) from exc

    if not isinstance(data, dict):
        msg = f"{source}: manifest must be a mapping"
        raise ManifestError(msg)

    try:
        return AppSpec.model_validate(data)
    except ValidationError as exc:
        msg = f"{source}: invalid manifest: {exc}"
        raise ManifestError(msg) from exc


def discover_in_commit(commit: Commit, manifest_name: str) -> GraphBuilder:
    """Collect every manifest in a commit's tree.

    The content hash of an application is the git tree id of its directory,
    so it changes whenever any file below the directory changes.
    """
    builder = GraphBuilder()
    root_tree = commit.tree
    for item in root_tree.traverse():
        if item.type != "blob" or item.name != manifest_name:
            continue
        directory = posixpath.dirname(item.path)
        tree = root_tree / directory if directory else root_tree
        spec = parse_manifest(
            item.data_stream.read(), f"{commit.hexsha[:12]}:{item.path}"
        )
        logger.debug("found application %r at %r", spec.name, directory)
        builder.add(spec, directory, tree.hexsha)
    return builder


def hash_directory(
    root: Path,
    directory: Path,
    gitignore_matches: Callable[[str], bool] | None = None,
) -> str:
    """Content hash over relative paths and bytes of every file in a directory."""
    digest = hashlib.sha1()
    for path in find_files(directory, root=root, gitignore_matches=gitignore_matches):
        digest.update(path.relative_to(directory).as_posix().encode("utf-8"))
        digest.update(b"\0")
        digest.update(path.read_bytes())
        digest.update(b"\0")
    return digest.hexdigest()


def discover_in_workspace(root: Path, manifest_name: str) -> GraphBuilder:
    """Collect every manifest in a working tree, respecting .gitignore."""
    builder = GraphBuilder()
    gitignore_matches = build_gitignore_matcher(root)
    for manifest_path in find_files(
        root, pattern=manifest_name, gitignore_matches=gitignore_matches
    ):
        relative = manifest_path.relative_to(root).as_posix()
        directory = normalize_repo_path(posixpath.dirname(relative))
        try:
            content = manifest_path.read_bytes()
            content_hash = hash_directory(
                root, manifest_path.parent, gitignore_matches
            )
        except OSError as exc:
            msg = f"{relative}: cannot read application files: {exc}"
            raise ManifestError(msg) from exc
        spec = parse_manifest(content, relative)
        logger.debug("found application %r at %r", spec.name, directory)
        builder.add(spec, directory, content_hash)
    return builder


__all__ = [
    "ManifestError",
    "discover_in_commit",
    "discover_in_workspace",
    "hash_directory",
    "parse_manifest",
]

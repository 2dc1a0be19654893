"""Application manifests: models and discovery."""

from manifest.discover import (
    ManifestError,
    discover_in_commit,
    discover_in_workspace,
    parse_manifest,
)
from manifest.models import AppSpec, BuildCmd

__all__ = [
    "AppSpec",
    "BuildCmd",
    "ManifestError",
    "discover_in_commit",
    "discover_in_workspace",
    "parse_manifest",
]

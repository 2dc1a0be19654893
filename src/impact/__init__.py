"""Change-impact resolution for impactmap."""

from impact.resolver import attribute_changes, intersect, reduce_to_diff
from impact.snapshot import (
    GitRepository,
    Resolution,
    SnapshotError,
    SnapshotResolver,
)

__all__ = [
    "GitRepository",
    "Resolution",
    "SnapshotError",
    "SnapshotResolver",
    "attribute_changes",
    "intersect",
    "reduce_to_diff",
]

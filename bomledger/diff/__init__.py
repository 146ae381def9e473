"""Net-effect diffs between BOM versions."""

from .bom_diff import (
    diff_bom,
    diff_snapshots,
    BomDiff,
    PartialDiff,
)

__all__ = [
    "diff_bom",
    "diff_snapshots",
    "BomDiff",
    "PartialDiff",
]

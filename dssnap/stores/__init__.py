"""Persistence helpers for snapshots and extraction results."""

from .extraction_cache import ExtractionCache
from .snapshot_store import (
    SnapshotFormatError,
    SnapshotNotFoundError,
    SnapshotStore,
    component_from_dict,
    component_to_dict,
    diff_to_dict,
    snapshot_from_dict,
    snapshot_to_dict,
)

__all__ = [
    "ExtractionCache",
    "SnapshotFormatError",
    "SnapshotNotFoundError",
    "SnapshotStore",
    "component_from_dict",
    "component_to_dict",
    "diff_to_dict",
    "snapshot_from_dict",
    "snapshot_to_dict",
]

"""Snapshot domain model: generated files, navigation tree, and diffs.

This package contains the non-UI preview primitives:
- ``SnapshotFile`` / ``TreeNode`` datatypes
- deterministic tree construction from flat file lists
- file-level change classification against a baseline snapshot
- filesystem capture of local generator output
"""

from __future__ import annotations

from .types import NodeKind, SnapshotFile, TreeNode
from .tree import build_preview_tree, count_files, find_node, iter_tree, name_sort_key, normalize_path
from .diff import ChangeStatus, FileDiff, PreviewDiff, compute_preview_diff, resolve_dependency_diff
from .fs import decode_text, scan_snapshot_files, snapshot_file_from_bytes

__all__ = [
    "NodeKind",
    "SnapshotFile",
    "TreeNode",
    "build_preview_tree",
    "count_files",
    "find_node",
    "iter_tree",
    "name_sort_key",
    "normalize_path",
    "ChangeStatus",
    "FileDiff",
    "PreviewDiff",
    "compute_preview_diff",
    "resolve_dependency_diff",
    "decode_text",
    "scan_snapshot_files",
    "snapshot_file_from_bytes",
]

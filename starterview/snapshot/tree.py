"""Flat snapshot file list to deterministic navigation tree.

Directories are merged by segment name while walking each normalized path,
then every level is sorted directories-first so the output never depends on
input order.
"""

from __future__ import annotations

import locale
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .types import SnapshotFile, TreeNode


def normalize_path(path: str) -> str:
    """Return ``path`` with ``/`` separators and no empty segments."""
    return "/".join(segment for segment in path.replace("\\", "/").split("/") if segment)


def name_sort_key(name: str) -> tuple[str, str]:
    """Locale-aware, case-insensitive sort key with a stable raw-name tie-break."""
    return locale.strxfrm(name.casefold()), name


@dataclass
class _MutableDirectory:
    """Directory under construction; finalized into ``TreeNode`` tuples."""

    name: str
    path: str
    directories: dict[str, _MutableDirectory] = field(default_factory=dict)
    files: dict[str, TreeNode] = field(default_factory=dict)


def _finalize(directory: _MutableDirectory) -> tuple[TreeNode, ...]:
    directory_nodes = [
        TreeNode(
            id=f"dir:{child.path}",
            name=child.name,
            path=child.path,
            kind="directory",
            children=_finalize(child),
        )
        for child in sorted(directory.directories.values(), key=lambda item: name_sort_key(item.name))
    ]
    file_nodes = sorted(directory.files.values(), key=lambda item: name_sort_key(item.name))
    return (*directory_nodes, *file_nodes)


def build_preview_tree(files: Iterable[SnapshotFile]) -> list[TreeNode]:
    """Build the top-level forest for ``files``.

    Files whose normalized path is empty are skipped. When two files share a
    normalized path the later one replaces the earlier one, so sibling names
    stay unique within each kind. Directories and files are separate
    namespaces: a snapshot holding both ``a`` and ``a/b`` yields a ``dir:a``
    node followed by a ``file:a`` node at the same level. Generators do not
    emit such snapshots.
    """
    root = _MutableDirectory(name="", path="")

    for file in files:
        normalized = normalize_path(file.path)
        if not normalized:
            continue

        *directory_segments, file_name = normalized.split("/")
        directory = root
        for segment in directory_segments:
            child = directory.directories.get(segment)
            if child is None:
                child_path = f"{directory.path}/{segment}" if directory.path else segment
                child = _MutableDirectory(name=segment, path=child_path)
                directory.directories[segment] = child
            directory = child

        directory.files[file_name] = TreeNode(
            id=f"file:{normalized}",
            name=file_name,
            path=normalized,
            kind="file",
            file=file,
        )

    return list(_finalize(root))


def iter_tree(nodes: Iterable[TreeNode], depth: int = 0) -> Iterator[tuple[int, TreeNode]]:
    """Depth-first pre-order walk yielding ``(depth, node)``."""
    for node in nodes:
        yield depth, node
        if node.children:
            yield from iter_tree(node.children, depth + 1)


def find_node(nodes: Iterable[TreeNode], path: str) -> TreeNode | None:
    """Return the node at ``path`` (normalized before lookup) or ``None``."""
    target = normalize_path(path)
    if not target:
        return None
    for _depth, node in iter_tree(nodes):
        if node.path == target:
            return node
    return None


def count_files(nodes: Iterable[TreeNode]) -> int:
    return sum(1 for _depth, node in iter_tree(nodes) if node.kind == "file")


__all__ = [
    "normalize_path",
    "name_sort_key",
    "build_preview_tree",
    "iter_tree",
    "find_node",
    "count_files",
]

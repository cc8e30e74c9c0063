"""Snapshot datatypes shared by tree, diff, and preview modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

NodeKind = Literal["file", "directory"]


@dataclass(frozen=True)
class SnapshotFile:
    """One generated file; equal ``hash`` values mean identical bytes."""

    path: str
    size: int
    binary: bool
    hash: str
    content: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, object]) -> SnapshotFile:
        """Build from a collaborator payload, coercing loose scalar types."""
        content = raw.get("content")
        return cls(
            path=str(raw.get("path", "")),
            size=max(0, int(raw.get("size", 0) or 0)),
            binary=bool(raw.get("binary", False)),
            hash=str(raw.get("hash", "")),
            content=content if isinstance(content, str) else None,
        )


@dataclass(frozen=True)
class TreeNode:
    """One navigable node; ``id`` is derived from kind and path."""

    id: str
    name: str
    path: str
    kind: NodeKind
    file: SnapshotFile | None = None
    children: tuple["TreeNode", ...] | None = None

    @property
    def is_dir(self) -> bool:
        return self.kind == "directory"


__all__ = [
    "NodeKind",
    "SnapshotFile",
    "TreeNode",
]

"""File-level change classification between a baseline and current snapshot.

Content hashes are the only identity criterion: a file whose ``binary`` flag
differs but whose hash matches is ``unchanged``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from .tree import name_sort_key, normalize_path
from .types import SnapshotFile

if TYPE_CHECKING:
    from ..preview.service import GenerateResult

ChangeStatus = Literal["added", "removed", "modified", "unchanged"]


@dataclass(frozen=True)
class FileDiff:
    """Change status for one normalized path."""

    path: str
    status: ChangeStatus
    binary: bool


@dataclass(frozen=True)
class PreviewDiff:
    """Per-path classification plus sorted path groups."""

    files: Mapping[str, FileDiff]
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    unchanged: tuple[str, ...] = ()

    def status_for(self, path: str) -> ChangeStatus | None:
        """Return the status for ``path`` or ``None`` when neither side has it."""
        entry = self.files.get(normalize_path(path))
        return entry.status if entry is not None else None

    @property
    def changed_paths(self) -> tuple[str, ...]:
        return tuple(sorted((*self.added, *self.removed, *self.modified), key=_path_key))

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)


def _path_key(path: str) -> tuple[tuple[str, str], ...]:
    return tuple(name_sort_key(segment) for segment in path.split("/"))


def _file_map(files: Iterable[SnapshotFile]) -> dict[str, SnapshotFile]:
    out: dict[str, SnapshotFile] = {}
    for file in files:
        path = normalize_path(file.path)
        if path:
            out[path] = file
    return out


def compute_preview_diff(
    baseline_files: Iterable[SnapshotFile] | None,
    current_files: Iterable[SnapshotFile] | None,
) -> PreviewDiff | None:
    """Classify every path present in either snapshot.

    Returns ``None`` when either side is unavailable (still loading or
    failed); a diff is only meaningful once both snapshots are known.
    """
    if baseline_files is None or current_files is None:
        return None

    baseline = _file_map(baseline_files)
    current = _file_map(current_files)

    files: dict[str, FileDiff] = {}
    groups: dict[ChangeStatus, list[str]] = {
        "added": [],
        "removed": [],
        "modified": [],
        "unchanged": [],
    }
    for path in sorted(baseline.keys() | current.keys(), key=_path_key):
        before = baseline.get(path)
        after = current.get(path)
        if after is None:
            status: ChangeStatus = "removed"
            binary = baseline[path].binary
        elif before is None:
            status = "added"
            binary = after.binary
        elif before.hash == after.hash:
            status = "unchanged"
            binary = after.binary
        else:
            status = "modified"
            binary = before.binary or after.binary

        files[path] = FileDiff(path=path, status=status, binary=binary)
        groups[status].append(path)

    return PreviewDiff(
        files=files,
        added=tuple(groups["added"]),
        removed=tuple(groups["removed"]),
        modified=tuple(groups["modified"]),
        unchanged=tuple(groups["unchanged"]),
    )


def resolve_dependency_diff(
    baseline: GenerateResult | None,
    current: GenerateResult | None,
) -> PreviewDiff | None:
    """Diff two generator results; ``None`` unless both succeeded."""
    if baseline is None or current is None or not baseline.ok or not current.ok:
        return None
    return compute_preview_diff(baseline.files, current.files)


__all__ = [
    "ChangeStatus",
    "FileDiff",
    "PreviewDiff",
    "compute_preview_diff",
    "resolve_dependency_diff",
]

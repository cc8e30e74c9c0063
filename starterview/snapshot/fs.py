"""Filesystem-backed snapshot capture for local generator output."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from .types import SnapshotFile


def decode_text(data: bytes) -> str | None:
    """Decode strict UTF-8 text, returning ``None`` for binary payloads.

    Empty payloads are text. Bytes that fail to decode or contain NUL are
    treated as binary.
    """
    if not data:
        return ""
    try:
        decoded = data.decode("utf-8")
    except UnicodeDecodeError:
        return None
    return None if "\x00" in decoded else decoded


def snapshot_file_from_bytes(path: str, data: bytes) -> SnapshotFile:
    """Build a ``SnapshotFile`` fingerprinted with SHA-256 of ``data``."""
    content = decode_text(data)
    return SnapshotFile(
        path=path,
        size=len(data),
        binary=content is None,
        hash=hashlib.sha256(data).hexdigest(),
        content=content,
    )


def scan_snapshot_files(root: Path, show_hidden: bool = True) -> list[SnapshotFile]:
    """Capture every regular file under ``root`` as a snapshot file.

    Paths are ``/``-separated and relative to ``root``. Unreadable entries
    and symlinks are skipped. Output is sorted by path.
    """
    root = root.resolve()
    files: list[SnapshotFile] = []

    def walk(directory: Path, prefix: str) -> None:
        try:
            with os.scandir(directory) as entries:
                children = sorted(entries, key=lambda item: item.name)
        except OSError:
            return

        for child in children:
            name = child.name
            if not show_hidden and name.startswith("."):
                continue
            relative = f"{prefix}{name}"
            try:
                if child.is_symlink():
                    continue
                if child.is_dir(follow_symlinks=False):
                    walk(Path(child.path), f"{relative}/")
                    continue
                if not child.is_file(follow_symlinks=False):
                    continue
                data = Path(child.path).read_bytes()
            except OSError:
                continue
            files.append(snapshot_file_from_bytes(relative, data))

    walk(root, "")
    files.sort(key=lambda item: item.path)
    return files


__all__ = [
    "decode_text",
    "snapshot_file_from_bytes",
    "scan_snapshot_files",
]

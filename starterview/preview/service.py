"""Collaborator contracts consumed by the preview pipeline, plus a local generator.

``DirectoryGenerator`` stands in for the remote project generator by layering
per-dependency overlay directories on top of a base template directory.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from ..errors import PreviewError, UpstreamRejected, UpstreamUnavailable
from ..snapshot.fs import scan_snapshot_files
from ..snapshot.tree import normalize_path
from ..snapshot.types import SnapshotFile
from .request import AuxValue, ProjectConfig

logger = logging.getLogger(__name__)

BASE_DIRNAME = "base"
DEPENDENCIES_DIRNAME = "dependencies"


@dataclass(frozen=True)
class GenerateResult:
    """Either ``ok`` with ``files`` or a failure carrying ``error``."""

    ok: bool
    files: tuple[SnapshotFile, ...] = ()
    error: PreviewError | None = None

    @classmethod
    def success(cls, files: Sequence[SnapshotFile]) -> GenerateResult:
        return cls(ok=True, files=tuple(files))

    @classmethod
    def failure(cls, error: PreviewError) -> GenerateResult:
        return cls(ok=False, error=error)


class GeneratorService(Protocol):
    """Produces the generated file snapshot for one configuration."""

    async def generate(
        self,
        config: ProjectConfig,
        dependency_ids: Sequence[str],
        auxiliary_options: Mapping[str, AuxValue],
    ) -> GenerateResult: ...


class MetadataService(Protocol):
    """Fetches the generator metadata payload (dependency catalog, versions)."""

    async def fetch_metadata(self) -> Any: ...


class DirectoryGenerator:
    """Generator backed by a template tree on disk.

    Layout::

        <root>/base/...                      files present for every request
        <root>/dependencies/<id>/...         files added or replaced per dependency

    Overlays apply in sorted dependency order, so later ids win on path
    conflicts. A missing template root is reported as retryable; unknown
    dependency ids are rejected.
    """

    def __init__(self, root: Path, show_hidden: bool = True) -> None:
        self.root = root
        self.show_hidden = show_hidden

    def available_dependencies(self) -> list[str]:
        overlay_root = self.root / DEPENDENCIES_DIRNAME
        if not overlay_root.is_dir():
            return []
        return sorted(child.name for child in overlay_root.iterdir() if child.is_dir())

    def _collect(self, dependency_ids: Sequence[str]) -> list[SnapshotFile]:
        base = self.root / BASE_DIRNAME
        if not base.is_dir():
            raise UpstreamUnavailable(f"Template directory not found: {base}")

        merged: dict[str, SnapshotFile] = {}
        for file in scan_snapshot_files(base, show_hidden=self.show_hidden):
            merged[normalize_path(file.path)] = file

        for dependency_id in sorted(dependency_ids):
            overlay = self.root / DEPENDENCIES_DIRNAME / dependency_id
            if not overlay.is_dir():
                raise UpstreamRejected(f"Unknown dependency: {dependency_id}")
            for file in scan_snapshot_files(overlay, show_hidden=self.show_hidden):
                merged[normalize_path(file.path)] = file

        return [merged[path] for path in sorted(merged)]

    async def generate(
        self,
        config: ProjectConfig,
        dependency_ids: Sequence[str],
        auxiliary_options: Mapping[str, AuxValue],
    ) -> GenerateResult:
        logger.debug("Generating %s from %s with %d dependencies", config.name, self.root, len(dependency_ids))
        files = await asyncio.to_thread(self._collect, list(dependency_ids))
        return GenerateResult.success(files)


__all__ = [
    "GenerateResult",
    "GeneratorService",
    "MetadataService",
    "DirectoryGenerator",
    "BASE_DIRNAME",
    "DEPENDENCIES_DIRNAME",
]

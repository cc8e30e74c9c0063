"""Per-session wiring of caches, metadata provider, and preview coordinator.

The metadata cache is normally shared by every session of a process; pass
the application's instance to ``PreviewSession.create`` to share it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from ..cache.highlight import HighlightCache
from ..cache.metadata import TtlMetadataCache
from ..config import PreviewSettings
from .coordinator import PreviewCoordinator, Sleep
from .metadata import MetadataProvider
from .request import ProjectConfig
from .service import GeneratorService, MetadataService


@dataclass
class PreviewSession:
    settings: PreviewSettings
    highlight_cache: HighlightCache
    metadata_cache: TtlMetadataCache[Any]
    coordinator: PreviewCoordinator
    metadata: MetadataProvider | None = None

    @classmethod
    def create(
        cls,
        generator: GeneratorService,
        metadata_service: MetadataService | None = None,
        settings: PreviewSettings | None = None,
        *,
        metadata_cache: TtlMetadataCache[Any] | None = None,
        sleep: Sleep = asyncio.sleep,
        auto_baseline: bool = True,
        baseline_config: ProjectConfig | None = None,
    ) -> PreviewSession:
        settings = settings or PreviewSettings()
        highlight_cache = HighlightCache(
            max_token_entries=settings.max_token_entries,
            max_line_entries=settings.max_line_entries,
        )
        if metadata_cache is None:
            metadata_cache = TtlMetadataCache(default_ttl_ms=settings.metadata_ttl_ms)
        coordinator = PreviewCoordinator(
            generator,
            settings,
            highlight_cache,
            sleep=sleep,
            auto_baseline=auto_baseline,
            baseline_config=baseline_config,
        )
        provider = MetadataProvider(metadata_service, metadata_cache) if metadata_service is not None else None
        return cls(
            settings=settings,
            highlight_cache=highlight_cache,
            metadata_cache=metadata_cache,
            coordinator=coordinator,
            metadata=provider,
        )

    async def close(self) -> None:
        await self.coordinator.close()
        self.highlight_cache.clear()


__all__ = ["PreviewSession"]

"""Cache-first metadata lookup over the metadata collaborator."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from ..cache.metadata import CacheInfo, TtlMetadataCache
from ..errors import PreviewError, UpstreamError
from .service import MetadataService

logger = logging.getLogger(__name__)

METADATA_UNAVAILABLE = "METADATA_UNAVAILABLE"

MetadataSource = Literal["cache", "upstream"]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class MetadataResponse:
    """Metadata payload with its source and cache instrumentation, or an error."""

    ok: bool
    metadata: Any = None
    source: MetadataSource | None = None
    cache: CacheInfo | None = None
    error: PreviewError | None = None


class MetadataProvider:
    """Serve metadata from ``cache`` and refill it from ``service`` on a miss.

    Collaborator failures become retryable error responses; they never raise
    and never touch the cached slot.
    """

    def __init__(
        self,
        service: MetadataService,
        cache: TtlMetadataCache[Any],
        clock: Callable[[], int] = wall_clock_ms,
    ) -> None:
        self._service = service
        self._cache = cache
        self._clock = clock

    async def get_metadata(self, now: int | None = None) -> MetadataResponse:
        lookup = self._cache.get(now=self._clock() if now is None else now)
        if lookup.metadata is not None:
            return MetadataResponse(ok=True, metadata=lookup.metadata, source="cache", cache=lookup.cache)

        try:
            metadata = await self._service.fetch_metadata()
        except UpstreamError as exc:
            logger.warning("Metadata fetch failed: %s", exc)
            return MetadataResponse(
                ok=False,
                error=PreviewError(
                    code=METADATA_UNAVAILABLE,
                    message="Generator metadata is temporarily unavailable. Please try again in a moment.",
                    retryable=True,
                ),
            )
        except Exception:
            logger.exception("Unexpected metadata fetch failure")
            return MetadataResponse(
                ok=False,
                error=PreviewError(
                    code=METADATA_UNAVAILABLE,
                    message="Unable to load generator metadata right now. Please try again shortly.",
                    retryable=True,
                ),
            )

        # TTL counts from payload arrival, not from the lookup.
        cache_info = self._cache.set(metadata, now=self._clock() if now is None else now)
        return MetadataResponse(ok=True, metadata=metadata, source="upstream", cache=cache_info)


__all__ = [
    "METADATA_UNAVAILABLE",
    "MetadataResponse",
    "MetadataProvider",
    "wall_clock_ms",
]

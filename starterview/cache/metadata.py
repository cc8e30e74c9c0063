"""Single-slot metadata cache with explicit, caller-clocked expiry.

The cache never reads a clock: every call receives ``now`` in milliseconds,
which keeps expiry deterministic under test.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

T = TypeVar("T")

METADATA_CACHE_TTL_MS = 5 * 60 * 1000

CacheStatus = Literal["hit", "miss"]


@dataclass(frozen=True)
class CacheInfo:
    """Cache instrumentation reported alongside each lookup."""

    status: CacheStatus
    expires_at: int | None
    cached_at: int | None
    ttl_ms: int


@dataclass(frozen=True)
class CacheLookup(Generic[T]):
    """Result of ``TtlMetadataCache.get``; ``metadata`` is ``None`` on a miss."""

    metadata: T | None
    cache: CacheInfo


@dataclass(frozen=True)
class _CacheEntry(Generic[T]):
    value: T
    cached_at: int
    expires_at: int
    ttl_ms: int


class TtlMetadataCache(Generic[T]):
    """Holds at most one metadata payload until ``now >= expires_at``."""

    def __init__(self, default_ttl_ms: int = METADATA_CACHE_TTL_MS) -> None:
        self.default_ttl_ms = int(default_ttl_ms)
        self._entry: _CacheEntry[T] | None = None

    def set(self, value: T, ttl_ms: int | None = None, *, now: int) -> CacheInfo:
        """Replace the slot and return the resulting ``hit`` instrumentation."""
        ttl = self.default_ttl_ms if ttl_ms is None else int(ttl_ms)
        entry = _CacheEntry(value=value, cached_at=now, expires_at=now + ttl, ttl_ms=ttl)
        self._entry = entry
        return CacheInfo(status="hit", expires_at=entry.expires_at, cached_at=entry.cached_at, ttl_ms=ttl)

    def get(self, *, now: int) -> CacheLookup[T]:
        """Look up the payload.

        An expired entry is reported as a miss that still carries its
        ``expires_at`` so callers can see when it lapsed; the slot is then
        emptied.
        """
        entry = self._entry
        if entry is None:
            return CacheLookup(
                metadata=None,
                cache=CacheInfo(status="miss", expires_at=None, cached_at=None, ttl_ms=self.default_ttl_ms),
            )

        if now >= entry.expires_at:
            self._entry = None
            return CacheLookup(
                metadata=None,
                cache=CacheInfo(
                    status="miss",
                    expires_at=entry.expires_at,
                    cached_at=entry.cached_at,
                    ttl_ms=entry.ttl_ms,
                ),
            )

        return CacheLookup(
            metadata=entry.value,
            cache=CacheInfo(
                status="hit",
                expires_at=entry.expires_at,
                cached_at=entry.cached_at,
                ttl_ms=entry.ttl_ms,
            ),
        )

    def clear(self) -> None:
        self._entry = None


__all__ = [
    "METADATA_CACHE_TTL_MS",
    "CacheStatus",
    "CacheInfo",
    "CacheLookup",
    "TtlMetadataCache",
]

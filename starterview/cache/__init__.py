"""Bounded in-memory caches owned by the application or session context."""

from __future__ import annotations

from .lru import LruCache
from .metadata import METADATA_CACHE_TTL_MS, CacheInfo, CacheLookup, CacheStatus, TtlMetadataCache
from .highlight import (
    DEFAULT_MAX_LINE_ENTRIES,
    DEFAULT_MAX_TOKEN_ENTRIES,
    HighlightCache,
    HighlightCacheKey,
    TokenLine,
    TokenLines,
    split_text_lines,
)

__all__ = [
    "LruCache",
    "METADATA_CACHE_TTL_MS",
    "CacheInfo",
    "CacheLookup",
    "CacheStatus",
    "TtlMetadataCache",
    "DEFAULT_MAX_LINE_ENTRIES",
    "DEFAULT_MAX_TOKEN_ENTRIES",
    "HighlightCache",
    "HighlightCacheKey",
    "TokenLine",
    "TokenLines",
    "split_text_lines",
]

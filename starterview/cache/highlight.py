"""Per-session caches for split source lines and tokenized lines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .lru import LruCache

DEFAULT_MAX_TOKEN_ENTRIES = 96
DEFAULT_MAX_LINE_ENTRIES = 192

TokenLine = list[tuple[Any, str]]
TokenLines = list[TokenLine]


@dataclass(frozen=True)
class HighlightCacheKey:
    """Same content under another theme or language is a distinct entry."""

    file_hash: str
    theme: str
    language: str


def split_text_lines(content: str) -> list[str]:
    """Split on ``\\n`` after normalizing ``\\r\\n`` line endings."""
    return content.replace("\r\n", "\n").split("\n")


class HighlightCache:
    """Two independent LRU caches: content-addressed lines and token lines."""

    def __init__(
        self,
        max_token_entries: int = DEFAULT_MAX_TOKEN_ENTRIES,
        max_line_entries: int = DEFAULT_MAX_LINE_ENTRIES,
    ) -> None:
        self.token_lines: LruCache[HighlightCacheKey, TokenLines] = LruCache(max_token_entries)
        self.split_lines: LruCache[str, list[str]] = LruCache(max_line_entries)

    def get_split_lines(self, file_hash: str, content: str) -> list[str]:
        """Return cached lines for ``file_hash``, splitting ``content`` once."""
        cached = self.split_lines.get(file_hash)
        if cached is not None:
            return cached
        lines = split_text_lines(content)
        self.split_lines.set(file_hash, lines)
        return lines

    def get_token_lines(self, key: HighlightCacheKey) -> TokenLines | None:
        return self.token_lines.get(key)

    def set_token_lines(self, key: HighlightCacheKey, token_lines: TokenLines) -> None:
        self.token_lines.set(key, token_lines)

    def clear(self) -> None:
        self.token_lines.clear()
        self.split_lines.clear()


__all__ = [
    "DEFAULT_MAX_TOKEN_ENTRIES",
    "DEFAULT_MAX_LINE_ENTRIES",
    "TokenLine",
    "TokenLines",
    "HighlightCacheKey",
    "HighlightCache",
    "split_text_lines",
]

"""Selected-file preview: split lines, highlight policy, and token caching.

Tokenization failures degrade to plain text; nothing here raises for file
content.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from ..cache.highlight import HighlightCache, HighlightCacheKey, TokenLines
from ..snapshot.types import SnapshotFile
from .language import infer_language
from .tokens import tokenize_lines

logger = logging.getLogger(__name__)

DEFAULT_MAX_HIGHLIGHT_BYTES = 300 * 1024
DEFAULT_MAX_HIGHLIGHT_LINES = 5_000

LARGE_FILE_MESSAGE = "Plain text mode for large file"
HIGHLIGHT_FAILED_MESSAGE = "Syntax highlighting unavailable. Showing plain text."

PreviewStatus = Literal["idle", "skipped", "done", "failed"]
Tokenizer = Callable[[str, str], TokenLines]


@dataclass(frozen=True)
class HighlightPolicy:
    """Size limits above which files render as plain text."""

    max_bytes: int = DEFAULT_MAX_HIGHLIGHT_BYTES
    max_lines: int = DEFAULT_MAX_HIGHLIGHT_LINES


@dataclass(frozen=True)
class FilePreview:
    """Renderable content for one selected file."""

    lines: list[str]
    token_lines: TokenLines | None
    status: PreviewStatus
    language: str | None
    message: str | None = None


def should_skip_highlighting(file_size: int, line_count: int, policy: HighlightPolicy) -> bool:
    return file_size > policy.max_bytes or line_count > policy.max_lines


def build_file_preview(
    file: SnapshotFile | None,
    theme: str,
    cache: HighlightCache,
    policy: HighlightPolicy | None = None,
    tokenizer: Tokenizer = tokenize_lines,
) -> FilePreview:
    """Resolve lines and token lines for ``file`` through ``cache``.

    Token lines are cached per ``(hash, theme, language)``; failed
    tokenization is reported with a message and never cached.
    """
    policy = policy or HighlightPolicy()
    language = infer_language(file.path) if file is not None else None

    if file is None or file.binary or file.content is None:
        return FilePreview(lines=[], token_lines=None, status="idle", language=language)

    lines = cache.get_split_lines(file.hash, file.content)
    if language is None:
        return FilePreview(lines=lines, token_lines=None, status="skipped", language=None)

    if should_skip_highlighting(file.size, len(lines), policy):
        return FilePreview(
            lines=lines,
            token_lines=None,
            status="skipped",
            language=language,
            message=LARGE_FILE_MESSAGE,
        )

    key = HighlightCacheKey(file_hash=file.hash, theme=theme, language=language)
    cached = cache.get_token_lines(key)
    if cached is not None:
        return FilePreview(lines=lines, token_lines=cached, status="done", language=language)

    try:
        token_lines = tokenizer(file.content, language)
    except Exception:
        logger.debug("Highlighting failed for %s (%s)", file.path, language, exc_info=True)
        return FilePreview(
            lines=lines,
            token_lines=None,
            status="failed",
            language=language,
            message=HIGHLIGHT_FAILED_MESSAGE,
        )

    cache.set_token_lines(key, token_lines)
    return FilePreview(lines=lines, token_lines=token_lines, status="done", language=language)


__all__ = [
    "DEFAULT_MAX_HIGHLIGHT_BYTES",
    "DEFAULT_MAX_HIGHLIGHT_LINES",
    "LARGE_FILE_MESSAGE",
    "HIGHLIGHT_FAILED_MESSAGE",
    "PreviewStatus",
    "Tokenizer",
    "HighlightPolicy",
    "FilePreview",
    "should_skip_highlighting",
    "build_file_preview",
]

"""Source content preview: language inference, tokenization, and caching policy."""

from __future__ import annotations

from .language import LEXER_ALIASES, SUPPORTED_LANGUAGES, infer_language, language_label
from .tokens import DEFAULT_STYLE, render_token_lines, resolve_style, sanitize_terminal_text, tokenize_lines
from .engine import (
    HIGHLIGHT_FAILED_MESSAGE,
    LARGE_FILE_MESSAGE,
    FilePreview,
    HighlightPolicy,
    build_file_preview,
    should_skip_highlighting,
)

__all__ = [
    "LEXER_ALIASES",
    "SUPPORTED_LANGUAGES",
    "infer_language",
    "language_label",
    "DEFAULT_STYLE",
    "render_token_lines",
    "resolve_style",
    "sanitize_terminal_text",
    "tokenize_lines",
    "HIGHLIGHT_FAILED_MESSAGE",
    "LARGE_FILE_MESSAGE",
    "FilePreview",
    "HighlightPolicy",
    "build_file_preview",
    "should_skip_highlighting",
]

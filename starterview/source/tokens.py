"""Pygments tokenization into per-line token lists, and ANSI rendering.

Token lines keep exactly one entry per ``\\n``-separated source line so they
align with the split-line cache.
"""

from __future__ import annotations

import re

from pygments import format as pygments_format
from pygments.formatters import Terminal256Formatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from ..cache.highlight import TokenLines
from .language import LEXER_ALIASES

DEFAULT_STYLE = "monokai"

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

_FORMATTERS: dict[str, Terminal256Formatter] = {}
_VALID_STYLES: set[str] = set()
_INVALID_STYLES: set[str] = set()


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def tokenize_lines(content: str, language: str) -> TokenLines:
    """Tokenize ``content`` with the Pygments lexer for ``language``.

    Raises ``pygments.util.ClassNotFound`` for languages without a lexer.
    """
    alias = LEXER_ALIASES.get(language, language)
    lexer = get_lexer_by_name(alias, stripnl=False, ensurenl=False)

    lines: TokenLines = [[]]
    for token_type, value in lexer.get_tokens(content.replace("\r\n", "\n")):
        parts = value.split("\n")
        for index, part in enumerate(parts):
            if index > 0:
                lines.append([])
            if part:
                lines[-1].append((token_type, part))
    return lines


def resolve_style(theme: str) -> str:
    """Validate/canonicalize requested style name with cache-backed checks."""
    if theme in _VALID_STYLES:
        return theme
    if theme in _INVALID_STYLES:
        return DEFAULT_STYLE

    try:
        get_style_by_name(theme)
    except ClassNotFound:
        _INVALID_STYLES.add(theme)
        return DEFAULT_STYLE
    _VALID_STYLES.add(theme)
    return theme


def _formatter_for_style(style: str) -> Terminal256Formatter:
    """Return cached Pygments terminal formatter for style name."""
    formatter = _FORMATTERS.get(style)
    if formatter is not None:
        return formatter
    formatter = Terminal256Formatter(style=style)
    _FORMATTERS[style] = formatter
    return formatter


def render_token_lines(token_lines: TokenLines, theme: str = DEFAULT_STYLE) -> list[str]:
    """Render each token line to one ANSI string without a trailing newline."""
    formatter = _formatter_for_style(resolve_style(theme))
    out: list[str] = []
    for line in token_lines:
        sanitized = [(token_type, sanitize_terminal_text(value)) for token_type, value in line]
        out.append(pygments_format(sanitized, formatter).rstrip("\n"))
    return out


__all__ = [
    "DEFAULT_STYLE",
    "sanitize_terminal_text",
    "tokenize_lines",
    "resolve_style",
    "render_token_lines",
]

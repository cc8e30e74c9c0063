"""Persistent JSON config helpers.

Stores preview pipeline tuning knobs and the highlight theme.
All access is defensive: malformed or missing config falls back to defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "starterview"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_DEBOUNCE_MS = 350
DEFAULT_RETRY_COUNT = 2
DEFAULT_BACKOFF_BASE_MS = 1000
DEFAULT_BACKOFF_CAP_MS = 8000
DEFAULT_METADATA_TTL_MS = 5 * 60 * 1000
DEFAULT_THEME = "monokai"


@dataclass(frozen=True)
class PreviewSettings:
    """Tuning knobs for debounce, retry, caching, and highlighting."""

    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    retry_count: int = DEFAULT_RETRY_COUNT
    backoff_base_ms: int = DEFAULT_BACKOFF_BASE_MS
    backoff_cap_ms: int = DEFAULT_BACKOFF_CAP_MS
    metadata_ttl_ms: int = DEFAULT_METADATA_TTL_MS
    max_token_entries: int = 96
    max_line_entries: int = 192
    max_highlight_bytes: int = 300 * 1024
    max_highlight_lines: int = 5_000
    theme: str = DEFAULT_THEME

    def backoff_delay_ms(self, attempt: int) -> int:
        """Delay before retrying after failed ``attempt`` (0-based)."""
        return min(self.backoff_base_ms * 2 ** max(0, attempt), self.backoff_cap_ms)


_INT_FIELDS = (
    "debounce_ms",
    "retry_count",
    "backoff_base_ms",
    "backoff_cap_ms",
    "metadata_ttl_ms",
    "max_token_entries",
    "max_line_entries",
    "max_highlight_bytes",
    "max_highlight_lines",
)
_POSITIVE_FIELDS = frozenset({"max_token_entries", "max_line_entries"})


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are ignored to keep runtime behavior non-fatal when
    config cannot be written.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError:
        pass


def _coerce_int(value: object, *, minimum: int) -> int | None:
    """Accept plain JSON integers at or above ``minimum``; booleans are rejected."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < minimum:
        return None
    return value


def settings_from_mapping(data: dict[str, object], base: PreviewSettings | None = None) -> PreviewSettings:
    """Overlay valid entries of ``data`` on ``base`` (defaults when omitted)."""
    settings = base or PreviewSettings()
    overrides: dict[str, object] = {}
    for name in _INT_FIELDS:
        if name not in data:
            continue
        coerced = _coerce_int(data[name], minimum=1 if name in _POSITIVE_FIELDS else 0)
        if coerced is not None:
            overrides[name] = coerced

    theme = data.get("theme")
    if isinstance(theme, str) and theme.strip():
        overrides["theme"] = theme.strip()
    return replace(settings, **overrides)


def load_preview_settings() -> PreviewSettings:
    """Return persisted preview settings with invalid values replaced by defaults."""
    return settings_from_mapping(load_config())


def load_theme_name() -> str | None:
    """Load persisted theme name, returning ``None`` when unset/invalid."""
    value = load_config().get("theme")
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def save_theme_name(theme_name: str) -> None:
    """Persist selected highlight theme name."""
    stripped = str(theme_name).strip()
    if not stripped:
        return
    config = load_config()
    config["theme"] = stripped
    save_config(config)


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "PreviewSettings",
    "load_config",
    "save_config",
    "settings_from_mapping",
    "load_preview_settings",
    "load_theme_name",
    "save_theme_name",
]

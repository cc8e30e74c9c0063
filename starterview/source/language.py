"""Preview language inference for generated project files."""

from __future__ import annotations

SUPPORTED_LANGUAGES = frozenset(
    {
        "bash",
        "bat",
        "dockerfile",
        "dotenv",
        "groovy",
        "ini",
        "java",
        "json",
        "kotlin",
        "markdown",
        "properties",
        "toml",
        "xml",
        "yaml",
    }
)

# Preview language name -> Pygments lexer alias.
LEXER_ALIASES: dict[str, str] = {
    "bash": "bash",
    "bat": "batch",
    "dockerfile": "docker",
    "dotenv": "bash",
    "groovy": "groovy",
    "ini": "ini",
    "java": "java",
    "json": "json",
    "kotlin": "kotlin",
    "markdown": "markdown",
    "properties": "properties",
    "toml": "toml",
    "xml": "xml",
    "yaml": "yaml",
}

_SHELL_WRAPPER_NAMES = frozenset({"mvnw", "gradlew"})
_WINDOWS_WRAPPER_NAMES = frozenset({"mvnw.cmd", "gradlew.bat"})
_SUFFIX_LANGUAGES: tuple[tuple[tuple[str, ...], str], ...] = (
    ((".xml",), "xml"),
    ((".gradle",), "groovy"),
    ((".kts", ".kt"), "kotlin"),
    ((".yaml", ".yml"), "yaml"),
    ((".java",), "java"),
    ((".md",), "markdown"),
    ((".properties",), "properties"),
    ((".json",), "json"),
    ((".groovy",), "groovy"),
    ((".sh", ".bash", ".zsh"), "bash"),
    ((".toml",), "toml"),
    ((".conf", ".ini"), "ini"),
)


def infer_language(path: str | None) -> str | None:
    """Return the preview language for ``path`` or ``None`` for plain text."""
    if not path:
        return None

    normalized = path.replace("\\", "/").lower()
    file_name = normalized.rsplit("/", 1)[-1]
    if file_name == ".gitignore":
        return None

    language: str | None = None
    if file_name in _SHELL_WRAPPER_NAMES:
        language = "bash"
    elif file_name in _WINDOWS_WRAPPER_NAMES:
        language = "bat"
    elif file_name == ".env" or file_name.startswith(".env."):
        language = "dotenv"
    elif file_name == "dockerfile":
        language = "dockerfile"
    else:
        for suffixes, candidate in _SUFFIX_LANGUAGES:
            if normalized.endswith(suffixes):
                language = candidate
                break

    return language if language in SUPPORTED_LANGUAGES else None


def language_label(language: str | None) -> str:
    return language or "plain text"


__all__ = [
    "SUPPORTED_LANGUAGES",
    "LEXER_ALIASES",
    "infer_language",
    "language_label",
]

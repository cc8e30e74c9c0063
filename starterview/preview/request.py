"""Project configuration and order-independent preview request keys.

Two inputs that select the same dependency set in a different order, or with
duplicates, normalize to equal ``PreviewRequest`` values and therefore share
a debounce identity and a result-cache entry.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

AuxValue = str | bool | int | tuple[str, ...]

_MILESTONE_RE = re.compile(r"\.M(\d+)$")
_RELEASE_CANDIDATE_RE = re.compile(r"\.RC(\d+)$")


@dataclass(frozen=True)
class ProjectConfig:
    """User-selected project settings sent to the generator."""

    build_tool: str = "maven-project"
    language: str = "java"
    boot_version: str | None = None
    group: str = "com.example"
    artifact: str = "demo"
    name: str = "demo"
    description: str | None = None
    package_name: str | None = None
    packaging: str = "jar"
    java_version: str = "17"


@dataclass(frozen=True)
class PreviewRequest:
    """Normalized request identity: config, sorted dependency ids, auxiliary options."""

    config: ProjectConfig
    dependency_ids: tuple[str, ...] = ()
    auxiliary_options: tuple[tuple[str, AuxValue], ...] = ()

    @classmethod
    def build(
        cls,
        config: ProjectConfig,
        dependency_ids: Iterable[str] = (),
        auxiliary_options: Mapping[str, object] | None = None,
    ) -> PreviewRequest:
        return cls(
            config=config,
            dependency_ids=normalize_dependency_ids(dependency_ids),
            auxiliary_options=normalize_auxiliary_options(auxiliary_options),
        )

    def baseline(self, config: ProjectConfig | None = None) -> PreviewRequest:
        """Dependency-free reference request.

        Uses ``config`` (the default ``ProjectConfig`` when omitted) rather
        than this request's config, and keeps the auxiliary options so files
        they contribute show up on both sides of the diff.
        """
        return PreviewRequest(config=config or ProjectConfig(), auxiliary_options=self.auxiliary_options)

    @property
    def options(self) -> dict[str, AuxValue]:
        return dict(self.auxiliary_options)


def normalize_dependency_ids(dependency_ids: Iterable[str]) -> tuple[str, ...]:
    """Trim, drop blanks, deduplicate, and sort dependency ids."""
    return tuple(sorted({item.strip() for item in dependency_ids if item and item.strip()}))


def _normalize_aux_value(value: object) -> AuxValue | None:
    if value is None:
        return None
    if isinstance(value, (bool, int)):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    if isinstance(value, Iterable):
        return normalize_dependency_ids(str(item) for item in value)
    return str(value)


def normalize_auxiliary_options(options: Mapping[str, object] | None) -> tuple[tuple[str, AuxValue], ...]:
    """Sorted ``(name, value)`` pairs; collections become sorted unique tuples, blanks are dropped."""
    if not options:
        return ()
    normalized: list[tuple[str, AuxValue]] = []
    for name in sorted(options):
        value = _normalize_aux_value(options[name])
        if value is not None:
            normalized.append((name, value))
    return tuple(normalized)


def normalize_boot_version_for_build_tool(build_tool: str, boot_version: str | None) -> str | None:
    """Rewrite Maven-style version qualifiers into their Gradle spelling.

    ``3.3.0.BUILD-SNAPSHOT`` -> ``3.3.0-SNAPSHOT``, ``3.3.0.RELEASE`` ->
    ``3.3.0``, ``.M1`` -> ``-M1``, ``.RC2`` -> ``-RC2``. Other build tools
    keep the trimmed version.
    """
    version = (boot_version or "").strip()
    if not version:
        return None
    if build_tool != "gradle-project":
        return version

    if version.endswith(".BUILD-SNAPSHOT"):
        version = version[: -len(".BUILD-SNAPSHOT")] + "-SNAPSHOT"
    elif version.endswith(".RELEASE"):
        version = version[: -len(".RELEASE")]
    version = _MILESTONE_RE.sub(r"-M\1", version)
    version = _RELEASE_CANDIDATE_RE.sub(r"-RC\1", version)
    return version


def _push_optional(params: list[tuple[str, str]], key: str, value: str | None) -> None:
    stripped = (value or "").strip()
    if stripped:
        params.append((key, stripped))


def build_generate_params(request: PreviewRequest) -> list[tuple[str, str]]:
    """Render the generator query parameters for ``request`` in wire order."""
    config = request.config
    params: list[tuple[str, str]] = [("type", config.build_tool), ("language", config.language)]
    _push_optional(
        params,
        "bootVersion",
        normalize_boot_version_for_build_tool(config.build_tool, config.boot_version),
    )
    params.extend(
        [
            ("baseDir", config.name.strip()),
            ("groupId", config.group.strip()),
            ("artifactId", config.artifact.strip()),
            ("name", config.name.strip()),
        ]
    )
    _push_optional(params, "description", config.description)
    _push_optional(params, "packageName", config.package_name)
    params.extend([("packaging", config.packaging), ("javaVersion", config.java_version.strip())])
    if request.dependency_ids:
        params.append(("dependencies", ",".join(request.dependency_ids)))
    return params


__all__ = [
    "AuxValue",
    "ProjectConfig",
    "PreviewRequest",
    "normalize_dependency_ids",
    "normalize_auxiliary_options",
    "normalize_boot_version_for_build_tool",
    "build_generate_params",
]

"""Preview pipeline orchestration.

Request normalization, collaborator contracts, the debounced coordinator
state machine, and session wiring live here. Pure snapshot logic lives in
``starterview.snapshot``.
"""

from __future__ import annotations

from .request import (
    PreviewRequest,
    ProjectConfig,
    build_generate_params,
    normalize_auxiliary_options,
    normalize_boot_version_for_build_tool,
    normalize_dependency_ids,
)
from .service import DirectoryGenerator, GenerateResult, GeneratorService, MetadataService
from .state import Debouncing, Failed, Fetching, Idle, Phase, PreviewState, Settled
from .metadata import MetadataProvider, MetadataResponse
from .coordinator import PreviewCoordinator, SelectedFilePreview
from .session import PreviewSession

__all__ = [
    "PreviewRequest",
    "ProjectConfig",
    "build_generate_params",
    "normalize_auxiliary_options",
    "normalize_boot_version_for_build_tool",
    "normalize_dependency_ids",
    "DirectoryGenerator",
    "GenerateResult",
    "GeneratorService",
    "MetadataService",
    "Debouncing",
    "Failed",
    "Fetching",
    "Idle",
    "Phase",
    "PreviewState",
    "Settled",
    "MetadataProvider",
    "MetadataResponse",
    "PreviewCoordinator",
    "SelectedFilePreview",
    "PreviewSession",
]

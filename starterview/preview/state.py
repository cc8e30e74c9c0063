"""Tagged preview phases and the immutable state exposed to the UI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..errors import PreviewError
from ..snapshot.diff import PreviewDiff
from ..snapshot.types import SnapshotFile, TreeNode
from .request import PreviewRequest

PhaseName = Literal["idle", "debouncing", "fetching", "settled", "failed"]


@dataclass(frozen=True)
class Idle:
    name: PhaseName = "idle"


@dataclass(frozen=True)
class Debouncing:
    request: PreviewRequest
    name: PhaseName = "debouncing"


@dataclass(frozen=True)
class Fetching:
    request: PreviewRequest
    attempt: int = 0
    name: PhaseName = "fetching"


@dataclass(frozen=True)
class Settled:
    request: PreviewRequest
    name: PhaseName = "settled"


@dataclass(frozen=True)
class Failed:
    request: PreviewRequest
    error: PreviewError
    name: PhaseName = "failed"


Phase = Idle | Debouncing | Fetching | Settled | Failed


@dataclass(frozen=True)
class PreviewState:
    """Snapshot of everything the UI renders.

    ``files``/``tree`` always belong to ``request``, the last input whose
    fetch succeeded; they stay in place while newer inputs debounce, fetch,
    or fail.
    """

    phase: Phase = Idle()
    request: PreviewRequest | None = None
    files: tuple[SnapshotFile, ...] | None = None
    tree: tuple[TreeNode, ...] = ()
    diff: PreviewDiff | None = None
    error: PreviewError | None = None
    baseline_files: tuple[SnapshotFile, ...] | None = None
    baseline_error: PreviewError | None = None
    selected_path: str | None = None

    @property
    def pending_request(self) -> PreviewRequest | None:
        return getattr(self.phase, "request", None)

    @property
    def is_placeholder(self) -> bool:
        """Whether displayed files belong to an older input than the pending one."""
        if self.files is None or isinstance(self.phase, (Idle, Settled)):
            return False
        return self.pending_request != self.request

    @property
    def is_loading(self) -> bool:
        return isinstance(self.phase, (Debouncing, Fetching))


__all__ = [
    "PhaseName",
    "Idle",
    "Debouncing",
    "Fetching",
    "Settled",
    "Failed",
    "Phase",
    "PreviewState",
]

"""Debounced, retrying, latest-input-wins preview coordinator.

Every ``update`` re-enters the debouncing phase. Only the input still
current when its debounce timer fires settles; each settled input gets one
fetch sequence (with retries for retryable failures). Sequences carry the
settle version they started under and re-check it after every ``await``, so
a response that arrives after a newer input settled is dropped without
touching state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, replace

from ..cache.highlight import HighlightCache
from ..cache.lru import LruCache
from ..config import PreviewSettings
from ..errors import PreviewError, UpstreamError
from ..snapshot.diff import ChangeStatus, compute_preview_diff
from ..snapshot.tree import build_preview_tree, find_node, normalize_path
from ..snapshot.types import SnapshotFile
from ..source.engine import FilePreview, HighlightPolicy, build_file_preview
from .request import PreviewRequest, ProjectConfig
from .service import GenerateResult, GeneratorService
from .state import Debouncing, Failed, Fetching, Idle, Phase, PreviewState, Settled

logger = logging.getLogger(__name__)

RESULT_CACHE_MAX = 16

Sleep = Callable[[float], Awaitable[None]]
StateListener = Callable[[PreviewState], None]


@dataclass(frozen=True)
class SelectedFilePreview:
    """Selected file with its change status and renderable content."""

    path: str
    file: SnapshotFile | None
    status: ChangeStatus | None
    preview: FilePreview


class PreviewCoordinator:
    """Drive generator fetches for the latest settled input.

    ``sleep`` receives seconds and backs both the debounce window and retry
    backoff; tests inject a recording coroutine. The diff baseline is always
    ``baseline_config`` with no dependencies and the current auxiliary
    options.
    """

    def __init__(
        self,
        generator: GeneratorService,
        settings: PreviewSettings | None = None,
        highlight_cache: HighlightCache | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        auto_baseline: bool = True,
        baseline_config: ProjectConfig | None = None,
        result_cache_size: int = RESULT_CACHE_MAX,
    ) -> None:
        self._generator = generator
        self.settings = settings or PreviewSettings()
        self.highlight_cache = highlight_cache or HighlightCache(
            max_token_entries=self.settings.max_token_entries,
            max_line_entries=self.settings.max_line_entries,
        )
        self._sleep = sleep
        self._auto_baseline = auto_baseline
        self.baseline_config = baseline_config or ProjectConfig()
        self._results: LruCache[PreviewRequest, tuple[SnapshotFile, ...]] = LruCache(result_cache_size)

        self._state = PreviewState()
        self._listeners: list[StateListener] = []
        self._tasks: set[asyncio.Task[None]] = set()

        self._input_version = 0
        self._settle_version = 0
        self._baseline_version = 0
        self._debounce_task: asyncio.Task[None] | None = None
        self._inflight: PreviewRequest | None = None
        self._baseline_request: PreviewRequest | None = None
        self._baseline_inflight: PreviewRequest | None = None

    @property
    def state(self) -> PreviewState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` after every state change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, **changes: object) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # Input handling

    def update(
        self,
        config: ProjectConfig,
        dependency_ids: Iterable[str] = (),
        auxiliary_options: Mapping[str, object] | None = None,
    ) -> PreviewRequest:
        """Record a new input and restart the debounce window.

        Must be called from a running event loop. Returns the normalized
        request key.
        """
        request = PreviewRequest.build(config, dependency_ids, auxiliary_options)
        self._input_version += 1
        version = self._input_version

        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._set_state(phase=Debouncing(request))
        self._debounce_task = self._spawn(self._debounce(version, request))
        return request

    async def _debounce(self, version: int, request: PreviewRequest) -> None:
        await self._sleep(self.settings.debounce_ms / 1000)
        if version != self._input_version:
            return
        self._settle(request)

    def _settle(self, request: PreviewRequest) -> None:
        if self._auto_baseline:
            self._ensure_baseline(request.baseline(self.baseline_config))

        if self._inflight == request:
            self._set_state(phase=Fetching(request))
            return

        self._settle_version += 1
        version = self._settle_version
        self._inflight = None

        cached = self._results.get(request)
        if cached is not None:
            self._apply_success(request, cached)
            return

        self._inflight = request
        self._set_state(phase=Fetching(request))
        self._spawn(self._fetch_current(version, request))

    def retry(self) -> PreviewRequest | None:
        """Refetch the pending (or displayed) request now, skipping the debounce window.

        Cached results are bypassed. Returns the request being fetched, or
        ``None`` when there is nothing to retry.
        """
        request = self._state.pending_request or self._state.request
        if request is None:
            return None

        self._input_version += 1
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        if self._auto_baseline:
            self._ensure_baseline(request.baseline(self.baseline_config))

        self._settle_version += 1
        version = self._settle_version
        self._inflight = request
        self._set_state(phase=Fetching(request))
        self._spawn(self._fetch_current(version, request))
        return request

    # Fetching

    async def _invoke(self, request: PreviewRequest) -> GenerateResult:
        try:
            return await self._generator.generate(
                request.config,
                list(request.dependency_ids),
                request.options,
            )
        except UpstreamError as exc:
            return GenerateResult.failure(PreviewError.from_exception(exc))
        except Exception as exc:
            logger.exception("Unexpected generator failure")
            return GenerateResult.failure(PreviewError.from_exception(exc))

    async def _fetch_with_retry(
        self,
        request: PreviewRequest,
        is_current: Callable[[], bool],
        on_retry: Callable[[int], None],
    ) -> GenerateResult | None:
        """Run one fetch sequence; ``None`` means it was superseded."""
        attempt = 0
        while True:
            logger.debug("Fetching preview %s (attempt %d)", request.dependency_ids, attempt)
            result = await self._invoke(request)
            if not is_current():
                return None
            if result.ok:
                return result

            error = result.error
            if error is None or not error.retryable or attempt >= self.settings.retry_count:
                return result

            delay_ms = self.settings.backoff_delay_ms(attempt)
            logger.info("Retrying preview in %d ms after %s: %s", delay_ms, error.code, error.message)
            await self._sleep(delay_ms / 1000)
            if not is_current():
                return None
            attempt += 1
            on_retry(attempt)

    async def _fetch_current(self, version: int, request: PreviewRequest) -> None:
        def is_current() -> bool:
            return version == self._settle_version

        def on_retry(attempt: int) -> None:
            if isinstance(self._state.phase, Fetching) and self._state.phase.request == request:
                self._set_state(phase=Fetching(request, attempt))

        result = await self._fetch_with_retry(request, is_current, on_retry)
        if result is None:
            return
        if self._inflight == request:
            self._inflight = None

        if result.ok:
            self._results.set(request, result.files)
            self._apply_success(request, result.files)
            return

        error = result.error or PreviewError.generic()
        logger.warning("Preview failed (%s): %s", error.code, error.message)
        self._apply_failure(request, error)

    def _phase_after_fetch(self, request: PreviewRequest, outcome: Settled | Failed) -> Phase:
        # A newer input may be debouncing; keep that phase visible.
        if isinstance(self._state.phase, Debouncing) and self._state.phase.request != request:
            return self._state.phase
        return outcome

    def _apply_success(self, request: PreviewRequest, files: tuple[SnapshotFile, ...]) -> None:
        selected = self._state.selected_path
        # Selection does not survive a snapshot that no longer has the file.
        if selected is not None and all(normalize_path(file.path) != selected for file in files):
            selected = None
        self._set_state(
            phase=self._phase_after_fetch(request, Settled(request)),
            request=request,
            files=files,
            tree=tuple(build_preview_tree(files)),
            diff=compute_preview_diff(self._state.baseline_files, files),
            error=None,
            selected_path=selected,
        )

    def _apply_failure(self, request: PreviewRequest, error: PreviewError) -> None:
        self._set_state(phase=self._phase_after_fetch(request, Failed(request, error)), error=error)

    # Baseline

    def load_baseline(self, config: ProjectConfig | None = None) -> None:
        """Refetch the dependency-free snapshot used as diff reference.

        ``config`` replaces ``baseline_config`` when given; auxiliary options
        follow the pending or displayed request.
        """
        if config is not None:
            self.baseline_config = config
        current = self._state.pending_request or self._state.request
        source = current if current is not None else PreviewRequest(config=self.baseline_config)
        self._ensure_baseline(source.baseline(self.baseline_config), force=True)

    def _ensure_baseline(self, request: PreviewRequest, force: bool = False) -> None:
        if not force and (request == self._baseline_request or request == self._baseline_inflight):
            return

        self._baseline_version += 1
        version = self._baseline_version
        self._baseline_inflight = None

        cached = self._results.get(request)
        if cached is not None and not force:
            self._apply_baseline(request, cached)
            return

        if self._baseline_request is not None and self._baseline_request != request:
            # Badges against another baseline would be wrong until the new one arrives.
            self._baseline_request = None
            self._set_state(baseline_files=None, diff=None)

        self._baseline_inflight = request
        self._spawn(self._fetch_baseline(version, request))

    async def _fetch_baseline(self, version: int, request: PreviewRequest) -> None:
        def is_current() -> bool:
            return version == self._baseline_version

        result = await self._fetch_with_retry(request, is_current, lambda _attempt: None)
        if result is None:
            return
        self._baseline_inflight = None

        if result.ok:
            self._results.set(request, result.files)
            self._apply_baseline(request, result.files)
            return

        error = result.error or PreviewError.generic()
        logger.warning("Baseline preview failed (%s): %s", error.code, error.message)
        self._baseline_request = None
        self._set_state(baseline_files=None, baseline_error=error, diff=None)

    def _apply_baseline(self, request: PreviewRequest, files: tuple[SnapshotFile, ...]) -> None:
        self._baseline_request = request
        self._set_state(
            baseline_files=files,
            baseline_error=None,
            diff=compute_preview_diff(files, self._state.files),
        )

    # Selection

    def select_file(self, path: str | None) -> None:
        self._set_state(selected_path=normalize_path(path) if path else None)

    def selected_preview(self, theme: str | None = None) -> SelectedFilePreview | None:
        """Content and change status for the selected file, or ``None`` when nothing is selected."""
        path = self._state.selected_path
        if not path:
            return None

        node = find_node(self._state.tree, path)
        file = node.file if node is not None else None
        diff = self._state.diff
        preview = build_file_preview(
            file,
            theme or self.settings.theme,
            self.highlight_cache,
            HighlightPolicy(
                max_bytes=self.settings.max_highlight_bytes,
                max_lines=self.settings.max_highlight_lines,
            ),
        )
        return SelectedFilePreview(
            path=path,
            file=file,
            status=diff.status_for(path) if diff is not None else None,
            preview=preview,
        )

    # Lifecycle

    async def drain(self) -> None:
        """Wait until no debounce timer or fetch sequence is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel outstanding work; later results are never applied."""
        self._input_version += 1
        self._settle_version += 1
        self._baseline_version += 1
        self._inflight = None
        self._baseline_inflight = None
        for task in list(self._tasks):
            task.cancel()
        await self.drain()
        if isinstance(self._state.phase, (Debouncing, Fetching)):
            self._set_state(phase=Settled(self._state.request) if self._state.request else Idle())


__all__ = [
    "PreviewCoordinator",
    "SelectedFilePreview",
    "RESULT_CACHE_MAX",
]

"""Tests for the debounced, retrying, latest-input-wins preview coordinator."""

from __future__ import annotations

import asyncio
import unittest

from starterview.config import PreviewSettings
from starterview.errors import PreviewError, UpstreamRejected, UpstreamUnavailable
from starterview.preview import (
    Debouncing,
    Failed,
    Fetching,
    GenerateResult,
    Idle,
    PreviewCoordinator,
    ProjectConfig,
    Settled,
)
from starterview.snapshot import SnapshotFile

CONFIG = ProjectConfig(name="demo")


def _files_for(dependency_ids: tuple[str, ...], options=None) -> list[SnapshotFile]:
    pom = "<project>" + "".join(f"<dependency>{item}</dependency>" for item in dependency_ids) + "</project>\n"
    files = [SnapshotFile(path="pom.xml", size=len(pom), binary=False, hash=f"pom:{','.join(dependency_ids)}", content=pom)]
    for item in dependency_ids:
        source = f"class {item.capitalize()}Config {{}}\n"
        files.append(
            SnapshotFile(path=f"src/{item}.java", size=len(source), binary=False, hash=f"src:{item}", content=source)
        )
    if options and options.get("ai_extras"):
        files.append(SnapshotFile(path="AGENTS.md", size=8, binary=False, hash="agents", content="# Agents"))
    return files


class _FakeGenerator:
    """Records calls; per-dependency-set gates hold a call until released."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.requests: list[tuple[ProjectConfig, dict]] = []
        self.gates: dict[tuple[str, ...], asyncio.Event] = {}
        self.failures: dict[tuple[str, ...], list[object]] = {}

    def gate(self, *dependency_ids: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[tuple(dependency_ids)] = event
        return event

    def fail(self, dependency_ids: tuple[str, ...], *outcomes: object) -> None:
        self.failures.setdefault(dependency_ids, []).extend(outcomes)

    async def generate(self, config, dependency_ids, auxiliary_options):
        key = tuple(dependency_ids)
        self.calls.append(key)
        self.requests.append((config, dict(auxiliary_options)))
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        pending = self.failures.get(key)
        if pending:
            outcome = pending.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return GenerateResult.success(_files_for(key, auxiliary_options))


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


async def _until(predicate, rounds: int = 200) -> None:
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


class PreviewCoordinatorTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.generator = _FakeGenerator()
        self.sleep = _RecordingSleep()

    def _coordinator(self, auto_baseline: bool = False, **settings: int) -> PreviewCoordinator:
        return PreviewCoordinator(
            self.generator,
            PreviewSettings(**settings),
            sleep=self.sleep,
            auto_baseline=auto_baseline,
        )

    async def test_rapid_inputs_produce_one_fetch_with_last_input(self) -> None:
        coordinator = self._coordinator()
        for dependencies in (["a"], ["a", "b"], ["b"], ["c"], ["c", "d"]):
            coordinator.update(CONFIG, dependencies)
        self.assertIsInstance(coordinator.state.phase, Debouncing)

        await coordinator.drain()

        self.assertEqual(self.generator.calls, [("c", "d")])
        self.assertEqual(self.sleep.delays, [0.35])
        self.assertIsInstance(coordinator.state.phase, Settled)
        self.assertEqual(coordinator.state.request.dependency_ids, ("c", "d"))

    async def test_stale_result_arriving_late_does_not_overwrite_newer_state(self) -> None:
        coordinator = self._coordinator()
        gate_a = self.generator.gate("a")
        gate_b = self.generator.gate("b")

        coordinator.update(CONFIG, ["a"])
        await _until(lambda: len(self.generator.calls) == 1)
        coordinator.update(CONFIG, ["b"])
        await _until(lambda: len(self.generator.calls) == 2)
        self.assertIsNone(coordinator.state.files)

        gate_b.set()
        await _until(lambda: isinstance(coordinator.state.phase, Settled))
        gate_a.set()
        await coordinator.drain()

        state = coordinator.state
        self.assertEqual(state.request.dependency_ids, ("b",))
        self.assertEqual([file.path for file in state.files], ["pom.xml", "src/b.java"])
        self.assertIsInstance(state.phase, Settled)

    async def test_retryable_failures_back_off_then_succeed(self) -> None:
        coordinator = self._coordinator()
        self.generator.fail(("web",), UpstreamUnavailable("busy"), UpstreamUnavailable("busy"))
        attempts: list[int] = []
        coordinator.subscribe(
            lambda state: attempts.append(state.phase.attempt) if isinstance(state.phase, Fetching) else None
        )

        with self.assertLogs("starterview.preview.coordinator", level="INFO") as logs:
            coordinator.update(CONFIG, ["web"])
            await coordinator.drain()

        self.assertEqual(len(self.generator.calls), 3)
        self.assertEqual(self.sleep.delays, [0.35, 1.0, 2.0])
        for attempt, delay in enumerate(self.sleep.delays[1:]):
            self.assertLessEqual(delay, min(1000 * 2**attempt, 8000) / 1000)
        self.assertEqual(attempts, [0, 1, 2])
        self.assertIsInstance(coordinator.state.phase, Settled)
        self.assertIsNone(coordinator.state.error)
        self.assertTrue(any("Retrying preview" in line for line in logs.output))

    async def test_retry_budget_exhausted_surfaces_retryable_error(self) -> None:
        coordinator = self._coordinator()
        self.generator.fail(("web",), *(UpstreamUnavailable("busy") for _ in range(3)))

        with self.assertLogs("starterview.preview.coordinator", level="WARNING"):
            coordinator.update(CONFIG, ["web"])
            await coordinator.drain()

        self.assertEqual(len(self.generator.calls), 3)
        self.assertIsInstance(coordinator.state.phase, Failed)
        self.assertEqual(coordinator.state.error.code, "PREVIEW_UNAVAILABLE")
        self.assertTrue(coordinator.state.error.retryable)

    async def test_error_results_are_retried_like_exceptions(self) -> None:
        coordinator = self._coordinator(retry_count=1)
        retryable = PreviewError(code="PREVIEW_UNAVAILABLE", message="busy", retryable=True)
        self.generator.fail(("web",), GenerateResult.failure(retryable))

        coordinator.update(CONFIG, ["web"])
        await coordinator.drain()

        self.assertEqual(len(self.generator.calls), 2)
        self.assertIsInstance(coordinator.state.phase, Settled)

    async def test_non_retryable_failure_keeps_previous_files_as_placeholder(self) -> None:
        coordinator = self._coordinator()
        coordinator.update(CONFIG, ["a"])
        await coordinator.drain()
        shown = coordinator.state.files

        self.generator.fail(("b",), UpstreamRejected("invalid dependency"))
        coordinator.update(CONFIG, ["b"])
        self.assertTrue(coordinator.state.is_placeholder)
        self.assertIs(coordinator.state.files, shown)

        with self.assertLogs("starterview.preview.coordinator", level="WARNING"):
            await coordinator.drain()

        state = coordinator.state
        self.assertEqual(self.generator.calls, [("a",), ("b",)])
        self.assertEqual(self.sleep.delays, [0.35, 0.35])
        self.assertIsInstance(state.phase, Failed)
        self.assertEqual(state.error.code, "PREVIEW_REJECTED")
        self.assertFalse(state.error.retryable)
        self.assertIs(state.files, shown)
        self.assertEqual(state.request.dependency_ids, ("a",))
        self.assertTrue(state.is_placeholder)
        self.assertFalse(state.is_loading)

    async def test_unexpected_exception_is_retried(self) -> None:
        coordinator = self._coordinator()
        self.generator.fail(("a",), ConnectionError("socket closed"))

        with self.assertLogs("starterview.preview.coordinator", level="ERROR"):
            coordinator.update(CONFIG, ["a"])
            await coordinator.drain()

        self.assertEqual(len(self.generator.calls), 2)
        self.assertEqual(self.sleep.delays, [0.35, 1.0])
        self.assertIsInstance(coordinator.state.phase, Settled)
        self.assertIsNone(coordinator.state.error)

    async def test_persistent_unexpected_exception_surfaces_generic_retryable_error(self) -> None:
        coordinator = self._coordinator()
        self.generator.fail(("a",), *(RuntimeError("socket closed") for _ in range(3)))

        with self.assertLogs("starterview.preview.coordinator", level="ERROR"):
            coordinator.update(CONFIG, ["a"])
            await coordinator.drain()

        self.assertEqual(len(self.generator.calls), 3)
        self.assertEqual(coordinator.state.error, PreviewError.generic())
        self.assertTrue(coordinator.state.error.retryable)

    async def test_retry_refetches_failed_request_without_debounce(self) -> None:
        coordinator = self._coordinator()
        self.assertIsNone(coordinator.retry())
        self.generator.fail(("web",), UpstreamRejected("generator rejected the request"))

        with self.assertLogs("starterview.preview.coordinator", level="WARNING"):
            coordinator.update(CONFIG, ["web"])
            await coordinator.drain()
        self.assertIsInstance(coordinator.state.phase, Failed)

        request = coordinator.retry()
        self.assertEqual(request.dependency_ids, ("web",))
        self.assertIsInstance(coordinator.state.phase, Fetching)
        await coordinator.drain()

        self.assertEqual(self.generator.calls, [("web",), ("web",)])
        self.assertEqual(self.sleep.delays, [0.35])
        self.assertIsInstance(coordinator.state.phase, Settled)
        self.assertIsNone(coordinator.state.error)

    async def test_retry_during_debounce_settles_pending_input_immediately(self) -> None:
        coordinator = self._coordinator()
        coordinator.update(CONFIG, ["a"])
        coordinator.retry()
        await coordinator.drain()

        self.assertEqual(self.generator.calls, [("a",)])
        self.assertEqual(self.sleep.delays, [])
        self.assertEqual(coordinator.state.request.dependency_ids, ("a",))

    async def test_returning_to_earlier_input_uses_result_cache(self) -> None:
        coordinator = self._coordinator()
        for dependencies in (["a"], ["b"], ["a"]):
            coordinator.update(CONFIG, dependencies)
            await coordinator.drain()

        self.assertEqual(self.generator.calls, [("a",), ("b",)])
        self.assertEqual(coordinator.state.request.dependency_ids, ("a",))
        self.assertIsInstance(coordinator.state.phase, Settled)

    async def test_settling_on_in_flight_request_does_not_refetch(self) -> None:
        coordinator = self._coordinator()
        gate = self.generator.gate("a")

        coordinator.update(CONFIG, ["a"])
        await _until(lambda: len(self.generator.calls) == 1)
        coordinator.update(CONFIG, ["a", "a"])
        await _until(lambda: isinstance(coordinator.state.phase, Fetching))
        gate.set()
        await coordinator.drain()

        self.assertEqual(self.generator.calls, [("a",)])
        self.assertIsInstance(coordinator.state.phase, Settled)

    async def test_baseline_is_fetched_and_diffed(self) -> None:
        coordinator = self._coordinator(auto_baseline=True)
        coordinator.update(CONFIG, ["web"])
        await coordinator.drain()

        self.assertCountEqual(self.generator.calls, [(), ("web",)])
        diff = coordinator.state.diff
        self.assertEqual(diff.status_for("pom.xml"), "modified")
        self.assertEqual(diff.status_for("src/web.java"), "added")

        coordinator.update(CONFIG, ["jpa"])
        await coordinator.drain()
        self.assertEqual(self.generator.calls.count(()), 1)

    async def test_baseline_failure_clears_diff_but_keeps_files(self) -> None:
        coordinator = self._coordinator(auto_baseline=True)
        self.generator.fail((), UpstreamRejected("no baseline"))

        with self.assertLogs("starterview.preview.coordinator", level="WARNING"):
            coordinator.update(CONFIG, ["web"])
            await coordinator.drain()

        state = coordinator.state
        self.assertIsNone(state.diff)
        self.assertEqual(state.baseline_error.code, "PREVIEW_REJECTED")
        self.assertIsNone(state.error)
        self.assertIsNotNone(state.files)

    async def test_baseline_uses_default_config_with_current_auxiliary_options(self) -> None:
        coordinator = self._coordinator(auto_baseline=True)
        coordinator.update(ProjectConfig(name="shop"), ["web"], {"ai_extras": ["agents-md"]})
        await coordinator.drain()

        baseline_config, baseline_options = self.generator.requests[self.generator.calls.index(())]
        self.assertEqual(baseline_config, ProjectConfig())
        self.assertEqual(baseline_options, {"ai_extras": ("agents-md",)})
        diff = coordinator.state.diff
        self.assertEqual(diff.status_for("AGENTS.md"), "unchanged")
        self.assertEqual(diff.added, ("src/web.java",))

    async def test_config_change_does_not_refetch_baseline(self) -> None:
        coordinator = self._coordinator(auto_baseline=True)
        coordinator.update(ProjectConfig(name="shop"), ["web"])
        await coordinator.drain()
        coordinator.update(ProjectConfig(name="store", language="kotlin"), ["web"])
        await coordinator.drain()

        self.assertEqual(self.generator.calls.count(()), 1)
        self.assertIsNotNone(coordinator.state.diff)

    async def test_diff_is_withheld_until_new_baseline_arrives(self) -> None:
        coordinator = self._coordinator(auto_baseline=True)
        coordinator.update(CONFIG, ["web"])
        await coordinator.drain()
        self.assertIsNotNone(coordinator.state.diff)

        gate = self.generator.gate()
        coordinator.update(CONFIG, ["web"], {"ai_extras": ["agents-md"]})
        await _until(lambda: any(file.path == "AGENTS.md" for file in coordinator.state.files or ()))

        self.assertIsNone(coordinator.state.diff)
        self.assertIsNone(coordinator.state.baseline_files)

        gate.set()
        await coordinator.drain()
        self.assertEqual(coordinator.state.diff.status_for("AGENTS.md"), "unchanged")

    async def test_selection_is_cleared_when_file_disappears(self) -> None:
        coordinator = self._coordinator()
        coordinator.update(CONFIG, ["web"])
        await coordinator.drain()
        coordinator.select_file("src/web.java")

        coordinator.update(CONFIG, ["web", "jpa"])
        await coordinator.drain()
        self.assertEqual(coordinator.state.selected_path, "src/web.java")

        coordinator.update(CONFIG, ["jpa"])
        await coordinator.drain()
        self.assertIsNone(coordinator.state.selected_path)
        self.assertIsNone(coordinator.selected_preview())

    async def test_explicit_baseline_load_refetches(self) -> None:
        coordinator = self._coordinator()
        coordinator.load_baseline(CONFIG)
        await coordinator.drain()
        coordinator.update(CONFIG, ["web"])
        await coordinator.drain()
        coordinator.load_baseline(CONFIG)
        await coordinator.drain()

        self.assertEqual(self.generator.calls, [(), ("web",), ()])
        self.assertEqual(coordinator.state.diff.added, ("src/web.java",))

    async def test_selected_preview_reports_status_and_content(self) -> None:
        coordinator = self._coordinator(auto_baseline=True)
        self.assertIsNone(coordinator.selected_preview())

        coordinator.update(CONFIG, ["web"])
        await coordinator.drain()
        coordinator.select_file("src\\web.java")

        selected = coordinator.selected_preview()
        self.assertEqual(selected.path, "src/web.java")
        self.assertEqual(selected.status, "added")
        self.assertEqual(selected.preview.status, "done")
        self.assertEqual(selected.preview.language, "java")
        self.assertEqual(selected.preview.lines, ["class WebConfig {}", ""])

        coordinator.select_file("missing.txt")
        missing = coordinator.selected_preview()
        self.assertIsNone(missing.file)
        self.assertEqual(missing.preview.status, "idle")

    async def test_subscribers_see_phase_transitions_until_unsubscribed(self) -> None:
        coordinator = self._coordinator()
        phases: list[str] = []
        unsubscribe = coordinator.subscribe(lambda state: phases.append(state.phase.name))

        coordinator.update(CONFIG, ["a"])
        await coordinator.drain()
        unsubscribe()
        coordinator.update(CONFIG, ["b"])
        await coordinator.drain()

        self.assertEqual(phases, ["debouncing", "fetching", "settled"])

    async def test_close_drops_in_flight_results(self) -> None:
        coordinator = self._coordinator()
        gate = self.generator.gate("a")

        coordinator.update(CONFIG, ["a"])
        await _until(lambda: len(self.generator.calls) == 1)
        await coordinator.close()
        gate.set()
        await asyncio.sleep(0)

        self.assertIsInstance(coordinator.state.phase, Idle)
        self.assertIsNone(coordinator.state.files)


if __name__ == "__main__":
    unittest.main()

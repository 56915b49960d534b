# tests/unit/pipeline/test_unit_orchestrator.py — v2
"""Tests for pipeline/orchestrator.py."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from shipwright.core.errors import RunAlreadyActiveError
from shipwright.core.models import (
    Phase,
    PhaseOutcome,
    RunStatus,
    TrailerResult,
)
from shipwright.narration.catalog import NARRATION
from shipwright.narration.narrator import NARRATION_PREFIX
from shipwright.pipeline.orchestrator import PhaseOrchestrator
from shipwright.pipeline.retry import RetryPolicy
from shipwright.storage.run_store import RunStore


def _make(bus, narrator, collaborators, **kwargs) -> tuple[PhaseOrchestrator, AsyncMock]:
    sleep = AsyncMock()
    orch = PhaseOrchestrator(
        bus=bus,
        narrator=narrator,
        sleep=sleep,
        **{**collaborators, **kwargs},
    )
    return orch, sleep


def _narrated(texts: list[str], category: str) -> bool:
    lines = {f"{NARRATION_PREFIX}{line}" for line in NARRATION[category]}
    return any(t in lines for t in texts)


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_completes_all_phases(self, bus, narrator, collaborators, static_feature):
        orch, sleep = _make(bus, narrator, collaborators)
        run = await orch.execute(static_feature)

        assert run.status is RunStatus.COMPLETED
        assert run.current_phase is Phase.COOLDOWN
        assert run.deploy_url == "https://example.com/feature"
        assert run.finished_at is not None
        succeeded = [a.phase for a in run.attempts if a.outcome is PhaseOutcome.SUCCESS]
        assert succeeded == [
            Phase.PLAN, Phase.BUILD, Phase.DEPLOY, Phase.VERIFY, Phase.TEST,
            Phase.RECORD, Phase.TRAILER, Phase.PUBLISH, Phase.HOMEPAGE, Phase.CLEANUP,
        ]
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_narrates_cycle_complete(self, bus, narrator, collaborators, memory_sink, static_feature):
        orch, _ = _make(bus, narrator, collaborators)
        await orch.execute(static_feature)
        assert _narrated(memory_sink.texts, "planning")
        assert _narrated(memory_sink.texts, "deploy_success")
        assert _narrated(memory_sink.texts, "cycle_complete")

    @pytest.mark.asyncio
    async def test_publisher_receives_trailer(self, bus, narrator, collaborators, static_feature):
        orch, _ = _make(bus, narrator, collaborators)
        run = await orch.execute(static_feature)
        feature, url, trailer = collaborators["publisher"].publish.await_args.args
        assert feature == static_feature
        assert url == run.deploy_url
        assert trailer.success
        collaborators["homepage"].add_feature.assert_awaited_once_with(static_feature, run.deploy_url)

    @pytest.mark.asyncio
    async def test_manifest_written(self, tmp_path, bus, narrator, collaborators, static_feature):
        store = RunStore(tmp_path)
        orch, _ = _make(bus, narrator, collaborators, run_store=store)
        run = await orch.execute(static_feature)
        loaded = store.load(run.run_id)
        assert loaded.status is RunStatus.COMPLETED
        assert len(loaded.attempts) == len(run.attempts)


class TestRetries:
    @pytest.mark.asyncio
    async def test_failures_below_ceiling_then_success(self, bus, narrator, collaborators, static_feature):
        collaborators["builder"].build = AsyncMock(
            side_effect=[RuntimeError("compile error"), RuntimeError("compile error"), None]
        )
        orch, sleep = _make(
            bus, narrator, collaborators,
            retry_policy=RetryPolicy(base_delay_s=5, backoff_factor=2, max_delay_s=60),
        )
        run = orch.start_run(static_feature)
        for _ in range(2):  # plan, build#1
            await orch.step(run)
        assert run.current_phase is Phase.BUILD
        assert run.current_attempt == 1

        await orch.step(run)  # build#2 fails
        assert run.current_attempt == 2
        await orch.step(run)  # build#3 succeeds
        assert run.current_phase is Phase.DEPLOY
        assert run.current_attempt == 0

        builds = run.attempts_for(Phase.BUILD)
        assert [a.attempt_number for a in builds] == [1, 2, 3]
        assert [a.outcome for a in builds] == [
            PhaseOutcome.FAILURE, PhaseOutcome.FAILURE, PhaseOutcome.SUCCESS,
        ]
        assert builds[0].error_detail == "compile error"
        assert [c.args[0] for c in sleep.await_args_list] == [5, 10]

    @pytest.mark.asyncio
    async def test_exhaustion_defers(self, bus, narrator, collaborators, memory_sink, static_feature):
        collaborators["deployer"].deploy = AsyncMock(side_effect=RuntimeError("quota"))
        orch, _ = _make(bus, narrator, collaborators, retry_policy=RetryPolicy(strategy="immediate"))

        run = await orch.execute(static_feature)

        assert run.status is RunStatus.DEFERRED
        assert run.current_phase is Phase.DEPLOY
        assert len(run.attempts_for(Phase.DEPLOY)) == 3
        assert "quota" in run.deferred_reason
        assert _narrated(memory_sink.texts, "retrying")
        assert _narrated(memory_sink.texts, "max_retries_failed")
        collaborators["verifier"].verify.assert_not_awaited()
        collaborators["publisher"].publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unreachable_deployment_fails_verify(self, bus, narrator, collaborators, static_feature):
        collaborators["verifier"].verify = AsyncMock(return_value=False)
        orch, _ = _make(
            bus, narrator, collaborators,
            retry_policy=RetryPolicy(ceilings={"verify": 2}, strategy="immediate"),
        )
        run = await orch.execute(static_feature)
        assert run.status is RunStatus.DEFERRED
        assert "not reachable" in run.attempts_for(Phase.VERIFY)[-1].error_detail


class TestBestEffortPhases:
    @pytest.mark.asyncio
    async def test_trailer_failure_still_publishes(self, bus, narrator, collaborators, static_feature):
        collaborators["trailer_pipeline"].generate_trailer = AsyncMock(
            return_value=TrailerResult(success=False, error="boom", error_kind="render_failed")
        )
        orch, _ = _make(bus, narrator, collaborators)
        run = await orch.execute(static_feature)

        assert run.status is RunStatus.COMPLETED
        assert run.trailer_result.success is False
        trailer = collaborators["publisher"].publish.await_args.args[2]
        assert trailer is None

    @pytest.mark.asyncio
    async def test_renderer_unavailable_not_retried(self, bus, narrator, collaborators, static_feature):
        collaborators["trailer_pipeline"].generate_trailer = AsyncMock(
            return_value=TrailerResult(
                success=False, error="renderer not installed", error_kind="renderer_unavailable",
            )
        )
        orch, _ = _make(
            bus, narrator, collaborators,
            retry_policy=RetryPolicy(ceilings={"trailer": 3}, strategy="immediate"),
        )
        run = await orch.execute(static_feature)
        assert run.status is RunStatus.COMPLETED
        assert len(run.attempts_for(Phase.TRAILER)) == 1

    @pytest.mark.asyncio
    async def test_record_captures_for_dynamic_feature(self, bus, narrator, collaborators, dynamic_feature):
        capture = MagicMock()
        capture.capture_footage = AsyncMock(return_value="footage/moon-mission_footage.mp4")
        orch, _ = _make(bus, narrator, collaborators, capture=capture)

        run = await orch.execute(dynamic_feature)

        assert run.footage_path == "footage/moon-mission_footage.mp4"
        kwargs = collaborators["trailer_pipeline"].generate_trailer.await_args.kwargs
        assert kwargs["footage_path"] == "footage/moon-mission_footage.mp4"
        # Footage already handled by the record phase; the pipeline must not capture again.
        assert collaborators["trailer_pipeline"].generate_trailer.await_args.args[1] is None

    @pytest.mark.asyncio
    async def test_record_failure_advances_without_footage(self, bus, narrator, collaborators, dynamic_feature):
        capture = MagicMock()
        capture.capture_footage = AsyncMock(return_value=None)
        orch, _ = _make(bus, narrator, collaborators, capture=capture)

        run = await orch.execute(dynamic_feature)

        assert run.status is RunStatus.COMPLETED
        assert run.footage_path is None
        record = run.attempts_for(Phase.RECORD)
        assert [a.outcome for a in record] == [PhaseOutcome.FAILURE]

    @pytest.mark.asyncio
    async def test_static_feature_skips_capture(self, bus, narrator, collaborators, static_feature):
        capture = MagicMock()
        capture.capture_footage = AsyncMock(return_value="x")
        orch, _ = _make(bus, narrator, collaborators, capture=capture)
        await orch.execute(static_feature)
        capture.capture_footage.assert_not_awaited()


class TestRunLifecycle:
    def test_second_run_rejected_while_running(self, bus, narrator, collaborators, static_feature, dynamic_feature):
        orch, _ = _make(bus, narrator, collaborators)
        run = orch.start_run(static_feature)
        assert orch.active_run is run
        with pytest.raises(RunAlreadyActiveError):
            orch.start_run(dynamic_feature)

    @pytest.mark.asyncio
    async def test_new_run_allowed_after_completion(self, bus, narrator, collaborators, static_feature):
        orch, _ = _make(bus, narrator, collaborators)
        first = await orch.execute(static_feature)
        assert orch.active_run is None
        second = orch.start_run(static_feature)
        assert second.run_id != first.run_id
        assert second.current_phase is Phase.PLAN

    @pytest.mark.asyncio
    async def test_cancelled_run_is_deferred_and_releases_slot(
        self, tmp_path, bus, narrator, collaborators, static_feature, dynamic_feature
    ):
        async def hang(feature):
            await asyncio.Event().wait()

        collaborators["builder"].build.side_effect = hang
        store = RunStore(tmp_path)
        orch, _ = _make(bus, narrator, collaborators, run_store=store)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(orch.execute(static_feature), 0.05)

        assert orch.active_run is None
        parked = store.list_runs()[0]
        assert parked.status is RunStatus.DEFERRED
        assert parked.deferred_reason == "cancelled during build"
        assert parked.finished_at is not None

        second = orch.start_run(dynamic_feature)
        assert orch.active_run is second

    @pytest.mark.asyncio
    async def test_step_on_terminal_run_is_noop(self, bus, narrator, collaborators, static_feature):
        orch, _ = _make(bus, narrator, collaborators)
        run = await orch.execute(static_feature)
        count = len(run.attempts)
        await orch.step(run)
        assert len(run.attempts) == count


class TestCooldown:
    @pytest.mark.asyncio
    async def test_sleeps_remaining_window(self, bus, narrator, collaborators, memory_sink):
        orch, sleep = _make(bus, narrator, collaborators, cooldown_s=30, clock=lambda: 0.0)
        await orch.cooldown()
        sleep.assert_awaited_once_with(30)
        assert _narrated(memory_sink.texts, "waiting")

    @pytest.mark.asyncio
    async def test_side_activity_errors_are_swallowed(self, bus, narrator, collaborators):
        failing = MagicMock()
        failing.run = AsyncMock(side_effect=RuntimeError("meme generator down"))
        ok = MagicMock()
        ok.run = AsyncMock()
        orch, sleep = _make(
            bus, narrator, collaborators,
            side_activities=[failing, ok], cooldown_s=30, clock=lambda: 0.0,
        )
        await orch.cooldown()
        ok.run.assert_awaited_once()
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_side_activity_bounded_by_window(self, bus, narrator, collaborators):
        async def forever():
            await asyncio.sleep(60)

        slow = MagicMock()
        slow.run = forever
        orch, _ = _make(bus, narrator, collaborators, side_activities=[slow], cooldown_s=0.05)
        await asyncio.wait_for(orch.cooldown(), timeout=5)


class TestRunForever:
    @pytest.mark.asyncio
    async def test_runs_until_source_exhausted(self, bus, narrator, collaborators, static_feature, dynamic_feature):
        queue = [static_feature, dynamic_feature]

        async def source():
            return queue.pop(0) if queue else None

        orch, sleep = _make(bus, narrator, collaborators, cooldown_s=10, clock=lambda: 0.0)
        runs = await orch.run_forever(source)

        assert [r.feature.slug for r in runs] == ["pricing-page", "moon-mission"]
        assert all(r.status is RunStatus.COMPLETED for r in runs)
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_max_runs(self, bus, narrator, collaborators, static_feature):
        async def source():
            return static_feature

        orch, sleep = _make(bus, narrator, collaborators, cooldown_s=10, clock=lambda: 0.0)
        runs = await orch.run_forever(source, max_runs=2)
        assert len(runs) == 2
        # No cooldown after the final run.
        assert sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_deferred_run_skips_cooldown(self, bus, narrator, collaborators, static_feature):
        collaborators["builder"].build = AsyncMock(side_effect=RuntimeError("nope"))
        queue = [static_feature, static_feature]

        async def source():
            return queue.pop(0) if queue else None

        orch, sleep = _make(
            bus, narrator, collaborators,
            retry_policy=RetryPolicy(strategy="immediate"), cooldown_s=10, clock=lambda: 0.0,
        )
        runs = await orch.run_forever(source)
        assert [r.status for r in runs] == [RunStatus.DEFERRED, RunStatus.DEFERRED]
        sleep.assert_not_awaited()

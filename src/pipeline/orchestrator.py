# src/pipeline/orchestrator.py — v2
"""Phase orchestrator and retry engine.

Drives one feature through the fixed phase sequence:

    plan -> build -> deploy -> verify -> test -> record -> trailer
         -> publish -> homepage -> cleanup -> cooldown

Each phase action resolves to an ActionResult; collaborator exceptions are caught at
that boundary. Failures are retried in place up to the per-phase ceiling, after which
the run is deferred. ``record`` and ``trailer`` are best-effort: exhausting them moves
the run forward without video.

Every transition narrates on the event bus and, when a RunStore is configured,
rewrites the run manifest.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone

from shipwright.capture.coordinator import FootageCaptureCoordinator
from shipwright.core.errors import RunAlreadyActiveError
from shipwright.core.models import (
    FeatureSpec,
    Phase,
    PhaseAttempt,
    PhaseOutcome,
    RunState,
    RunStatus,
)
from shipwright.events.bus import EventBus
from shipwright.logging.context import clear_context, set_phase_context, set_run_context
from shipwright.narration.narrator import Narrator
from shipwright.pipeline.actions import (
    ActionResult,
    BuildExecutor,
    CleanupHook,
    DeployExecutor,
    DeploymentVerifier,
    FeatureTester,
    HomepageUpdater,
    Planner,
    ReleasePublisher,
    SideActivity,
)
from shipwright.pipeline.phases import next_transition
from shipwright.pipeline.retry import RetryPolicy
from shipwright.storage.run_store import RunStore
from shipwright.trailer import classifier
from shipwright.trailer.pipeline import TrailerPipeline

logger = logging.getLogger(__name__)

FeatureSource = Callable[[], Awaitable[FeatureSpec | None]]
Sleep = Callable[[float], Awaitable[None]]

DEFAULT_COOLDOWN_S = 3600.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PhaseOrchestrator:
    """Sequence phases for one run at a time.

    Args:
        bus: Event bus all narration goes to.
        narrator: Narration service.
        builder: Build collaborator.
        deployer: Deploy collaborator; returns the public URL.
        verifier: Deployment reachability check.
        trailer_pipeline: Promotional video pipeline.
        capture: Footage coordinator used by the record phase.
        planner: Optional planning collaborator.
        tester: Optional functional tester.
        publisher: Optional release publisher.
        homepage: Optional homepage updater.
        cleanup_hook: Optional cleanup collaborator.
        side_activities: Run during cooldown, each bounded by the remaining window.
        retry_policy: Per-phase ceilings and inter-attempt delay.
        run_store: Optional manifest persistence.
        cooldown_s: Length of the pause between runs.
        sleep: Awaitable sleep, injectable for tests.
        clock: Monotonic seconds source for cooldown accounting.
    """

    def __init__(
        self,
        *,
        bus: EventBus,
        narrator: Narrator,
        builder: BuildExecutor,
        deployer: DeployExecutor,
        verifier: DeploymentVerifier,
        trailer_pipeline: TrailerPipeline | None = None,
        capture: FootageCaptureCoordinator | None = None,
        planner: Planner | None = None,
        tester: FeatureTester | None = None,
        publisher: ReleasePublisher | None = None,
        homepage: HomepageUpdater | None = None,
        cleanup_hook: CleanupHook | None = None,
        side_activities: Sequence[SideActivity] = (),
        retry_policy: RetryPolicy | None = None,
        run_store: RunStore | None = None,
        cooldown_s: float = DEFAULT_COOLDOWN_S,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._bus = bus
        self._narrator = narrator
        self._builder = builder
        self._deployer = deployer
        self._verifier = verifier
        self._trailer = trailer_pipeline
        self._capture = capture
        self._planner = planner
        self._tester = tester
        self._publisher = publisher
        self._homepage = homepage
        self._cleanup = cleanup_hook
        self._side_activities = list(side_activities)
        self._policy = retry_policy or RetryPolicy()
        self._store = run_store
        self._cooldown_s = cooldown_s
        self._sleep = sleep
        self._clock = clock
        self._current: RunState | None = None

        self._actions: dict[Phase, Callable[[RunState], Awaitable[ActionResult]]] = {
            Phase.PLAN: self._plan,
            Phase.BUILD: self._build,
            Phase.DEPLOY: self._deploy,
            Phase.VERIFY: self._verify,
            Phase.TEST: self._test,
            Phase.RECORD: self._record,
            Phase.TRAILER: self._make_trailer,
            Phase.PUBLISH: self._publish,
            Phase.HOMEPAGE: self._update_homepage,
            Phase.CLEANUP: self._run_cleanup,
        }

    @property
    def active_run(self) -> RunState | None:
        """The run currently in progress, if any."""
        if self._current is not None and self._current.status is RunStatus.RUNNING:
            return self._current
        return None

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def start_run(self, feature: FeatureSpec) -> RunState:
        """Create a fresh run at ``plan``.

        Raises:
            RunAlreadyActiveError: Another run is still running.
        """
        active = self.active_run
        if active is not None:
            raise RunAlreadyActiveError(active.run_id, active.feature.slug)

        run = RunState(feature=feature)
        self._current = run
        set_run_context(run.run_id, feature.slug)
        logger.info("Run %s started for '%s'", run.run_id, feature.slug)
        self._bus.publish(f"🚀 Shipping {feature.name} ({feature.slug})")
        self._save(run)
        return run

    async def execute(self, feature: FeatureSpec) -> RunState:
        """Drive a new run until it completes or is deferred."""
        run = self.start_run(feature)
        try:
            while not run.is_terminal:
                await self.step(run)
        except BaseException:
            if not run.is_terminal:
                self._park(run, f"cancelled during {run.current_phase.value}")
            raise
        finally:
            set_phase_context(None)
        return run

    async def step(self, run: RunState) -> RunState:
        """Execute one attempt of the current phase and apply its transition."""
        if run.is_terminal:
            return run

        phase = run.current_phase
        attempt_number = run.current_attempt + 1
        run.current_attempt = attempt_number
        set_phase_context(phase.value, attempt_number)

        if attempt_number == 1:
            self._narrator.announce_phase(self._bus, phase, PhaseOutcome.START)
        logger.info("Phase %s attempt %d", phase.value, attempt_number)

        result = await self._perform(phase, run)

        if result.ok:
            self._on_success(run, phase, attempt_number, result)
        else:
            await self._on_failure(run, phase, attempt_number, result)

        self._save(run)
        return run

    async def cooldown(self) -> None:
        """Pause between runs, using the window for side activities."""
        set_phase_context(Phase.COOLDOWN.value)
        self._narrator.announce(self._bus, "waiting")
        self._bus.publish(f"⏳ Cooling down for {self._cooldown_s:g}s")

        started = self._clock()
        for activity in self._side_activities:
            remaining = self._cooldown_s - (self._clock() - started)
            if remaining <= 0:
                break
            self._narrator.announce(self._bus, "cooldown_active")
            try:
                await asyncio.wait_for(activity.run(), timeout=remaining)
            except asyncio.TimeoutError:
                logger.warning("Side activity %r ran past the cooldown window", activity)
            except Exception:
                logger.exception("Side activity %r failed", activity)

        remaining = self._cooldown_s - (self._clock() - started)
        if remaining > 0:
            await self._sleep(remaining)
        set_phase_context(None)

    async def run_forever(
        self, feature_source: FeatureSource, max_runs: int | None = None
    ) -> list[RunState]:
        """Ship features from ``feature_source`` until it returns None or ``max_runs``."""
        self._narrator.announce(self._bus, "startup")
        runs: list[RunState] = []
        while max_runs is None or len(runs) < max_runs:
            feature = await feature_source()
            if feature is None:
                logger.info("Feature source exhausted after %d runs", len(runs))
                break
            run = await self.execute(feature)
            runs.append(run)
            # Deferred runs go straight to the next feature.
            last = max_runs is not None and len(runs) >= max_runs
            if run.status is RunStatus.COMPLETED and not last:
                await self.cooldown()
        clear_context()
        return runs

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _on_success(
        self, run: RunState, phase: Phase, attempt_number: int, result: ActionResult
    ) -> None:
        run.attempts.append(
            PhaseAttempt(phase=phase, attempt_number=attempt_number, outcome=PhaseOutcome.SUCCESS)
        )
        self._narrator.announce_phase(self._bus, phase, PhaseOutcome.SUCCESS)
        if result.detail:
            self._bus.publish(f"✅ {phase.value}: {result.detail}")
        self._advance(run, phase, PhaseOutcome.SUCCESS)

    async def _on_failure(
        self, run: RunState, phase: Phase, attempt_number: int, result: ActionResult
    ) -> None:
        detail = result.detail or f"{phase.value} failed"
        run.attempts.append(
            PhaseAttempt(
                phase=phase,
                attempt_number=attempt_number,
                outcome=PhaseOutcome.FAILURE,
                error_detail=detail,
            )
        )
        logger.warning("Phase %s attempt %d failed: %s", phase.value, attempt_number, detail)
        self._narrator.announce_phase(self._bus, phase, PhaseOutcome.FAILURE)
        self._bus.publish(f"❌ {phase.value} failed: {detail}")

        if result.retryable and self._policy.should_retry(phase, attempt_number):
            self._narrator.announce(self._bus, "retrying")
            delay = self._policy.delay_for(attempt_number)
            ceiling = self._policy.ceiling_for(phase)
            self._bus.publish(
                f"🔁 Retrying {phase.value} ({attempt_number + 1}/{ceiling})"
                + (f" in {delay:g}s" if delay > 0 else "")
            )
            if delay > 0:
                await self._sleep(delay)
            return

        transition = next_transition(phase, PhaseOutcome.EXHAUSTED)
        if transition.status is RunStatus.DEFERRED:
            self._narrator.announce(self._bus, "max_retries_failed")
            run.status = RunStatus.DEFERRED
            run.deferred_reason = (
                f"{phase.value} failed after {attempt_number} attempt(s): {detail}"
            )
            run.finished_at = _utcnow()
            logger.error("Run %s deferred: %s", run.run_id, run.deferred_reason)
            self._bus.publish(f"⏸️ Deferred {run.feature.slug}: {run.deferred_reason}")
            return

        self._bus.publish(f"↪️ Continuing without {phase.value}")
        self._advance(run, phase, PhaseOutcome.EXHAUSTED)

    def _advance(self, run: RunState, phase: Phase, outcome: PhaseOutcome) -> None:
        transition = next_transition(phase, outcome)
        run.current_phase = transition.next_phase
        run.current_attempt = 0
        run.status = transition.status
        if run.status is RunStatus.COMPLETED:
            run.finished_at = _utcnow()
            logger.info("Run %s completed", run.run_id)
            self._narrator.announce(self._bus, "cycle_complete")
            self._bus.publish(f"🎉 Shipped {run.feature.name}")

    def _park(self, run: RunState, reason: str) -> None:
        """Defer an interrupted run so the orchestrator accepts the next one."""
        run.status = RunStatus.DEFERRED
        run.deferred_reason = reason
        run.finished_at = _utcnow()
        logger.warning("Run %s deferred: %s", run.run_id, reason)
        self._save(run)

    def _save(self, run: RunState) -> None:
        if self._store is None:
            return
        try:
            self._store.save(run)
        except OSError as e:
            logger.warning("Failed to write run manifest for %s: %s", run.run_id, e)

    # ------------------------------------------------------------------
    # Phase actions
    # ------------------------------------------------------------------

    async def _perform(self, phase: Phase, run: RunState) -> ActionResult:
        action = self._actions[phase]
        try:
            return await action(run)
        except Exception as e:
            logger.debug("Phase %s raised", phase.value, exc_info=True)
            return ActionResult.failure(str(e) or type(e).__name__)

    async def _plan(self, run: RunState) -> ActionResult:
        if self._planner is not None:
            await self._planner.plan(run.feature)
        return ActionResult.success()

    async def _build(self, run: RunState) -> ActionResult:
        await self._builder.build(run.feature)
        return ActionResult.success()

    async def _deploy(self, run: RunState) -> ActionResult:
        url = await self._deployer.deploy(run.feature)
        if not url:
            return ActionResult.failure("deploy returned no URL")
        run.deploy_url = url
        return ActionResult.success(url, detail=f"live at {url}")

    async def _verify(self, run: RunState) -> ActionResult:
        if not run.deploy_url:
            return ActionResult.failure("no deploy URL to verify")
        if not await self._verifier.verify(run.deploy_url):
            return ActionResult.failure(f"deployment not reachable at {run.deploy_url}")
        return ActionResult.success()

    async def _test(self, run: RunState) -> ActionResult:
        if self._tester is not None:
            await self._tester.test(run.feature, run.deploy_url or "")
        return ActionResult.success()

    async def _record(self, run: RunState) -> ActionResult:
        feature = run.feature
        run.footage_path = None
        decision = classifier.classify(feature.slug, feature.description)
        if not decision.needs_footage:
            return ActionResult.success(detail="static feature, no footage needed")
        if self._capture is None or not run.deploy_url:
            return ActionResult.success(detail="footage capture unavailable")
        path = await self._capture.capture_footage(feature.trailer_config(), run.deploy_url)
        if path is None:
            return ActionResult.failure("footage capture failed")
        run.footage_path = path
        return ActionResult.success(path)

    async def _make_trailer(self, run: RunState) -> ActionResult:
        if self._trailer is None:
            return ActionResult.success(detail="trailer rendering disabled")
        # Footage was already attempted by the record phase; never capture twice.
        deploy_url = None if run.attempts_for(Phase.RECORD) else run.deploy_url
        result = await self._trailer.generate_trailer(
            run.feature.trailer_config(), deploy_url, footage_path=run.footage_path,
        )
        run.trailer_result = result
        if not result.success:
            return ActionResult.failure(
                result.error or "trailer generation failed",
                value=result,
                retryable=result.error_kind != "renderer_unavailable",
            )
        return ActionResult.success(result)

    async def _publish(self, run: RunState) -> ActionResult:
        if self._publisher is not None:
            trailer = run.trailer_result if run.trailer_result and run.trailer_result.success else None
            await self._publisher.publish(run.feature, run.deploy_url, trailer)
        return ActionResult.success()

    async def _update_homepage(self, run: RunState) -> ActionResult:
        if self._homepage is not None:
            await self._homepage.add_feature(run.feature, run.deploy_url)
        return ActionResult.success()

    async def _run_cleanup(self, run: RunState) -> ActionResult:
        if self._cleanup is not None:
            await self._cleanup.cleanup(run)
        return ActionResult.success()

# src/pipeline/factory.py — v1
"""Wire the orchestrator and the trailer pipeline from Settings."""

from __future__ import annotations

import logging

from shipwright.cache.command_cache import CommandOutputCache
from shipwright.cache.ttl_cache import TTLCache
from shipwright.capture.coordinator import FootageCaptureCoordinator
from shipwright.capture.recorder import CommandRecorder
from shipwright.collaborators.commands import (
    CommandBuildExecutor,
    CommandDeployExecutor,
    CommandFeatureTester,
)
from shipwright.collaborators.homepage import JsonHomepageRegistry
from shipwright.collaborators.http_verifier import HttpDeploymentVerifier
from shipwright.collaborators.publisher import JsonlReleasePublisher
from shipwright.collaborators.status import StatusReport
from shipwright.collaborators.stubs import (
    DryRunBuilder,
    DryRunCleanup,
    DryRunDeployer,
    DryRunVerifier,
)
from shipwright.config.settings import Settings
from shipwright.events.bus import EventBus
from shipwright.narration.narrator import Narrator
from shipwright.pipeline.actions import SideActivity
from shipwright.pipeline.orchestrator import PhaseOrchestrator
from shipwright.pipeline.retry import IMMEDIATE, RetryPolicy
from shipwright.process.runner import ProcessRunner
from shipwright.storage import layout
from shipwright.storage.run_store import RunStore
from shipwright.trailer.pipeline import TrailerPipeline
from shipwright.trailer.renderer import CompositionRenderer

logger = logging.getLogger(__name__)


def create_capture(settings: Settings, bus: EventBus) -> FootageCaptureCoordinator:
    recorder = CommandRecorder(
        settings.recorder_command,
        work_dir=settings.output_dir / "captures",
        grace_s=settings.capture_grace_s,
        ext=settings.video_ext,
    )
    return FootageCaptureCoordinator(
        recorder,
        composition_root=settings.composition_root,
        bus=bus,
        duration_s=settings.capture_duration_s,
        timeout_s=settings.capture_duration_s + settings.capture_grace_s,
    )


def create_side_activities(
    settings: Settings, bus: EventBus, runner: ProcessRunner | None = None,
) -> list[SideActivity]:
    """Cooldown activities enabled by Settings; empty when no status command is set."""
    if not settings.status_command:
        return []
    cache = CommandOutputCache(
        runner or ProcessRunner(),
        TTLCache(settings.status_cache_ttl_s),
        timeout_s=settings.command_timeout_s,
    )
    return [StatusReport(settings.status_command, cache, bus)]


def create_trailer_pipeline(
    settings: Settings,
    bus: EventBus,
    capture: FootageCaptureCoordinator | None = None,
) -> TrailerPipeline:
    renderer = CompositionRenderer(
        settings.composition_root,
        command=settings.renderer_command,
        marker=settings.renderer_marker,
        runner=ProcessRunner(max_output_bytes=settings.render_max_output_bytes),
        timeout_s=settings.render_timeout_s,
        max_output_bytes=settings.render_max_output_bytes,
    )
    return TrailerPipeline(
        renderer,
        output_dir=settings.output_dir,
        bus=bus,
        capture=capture if capture is not None else create_capture(settings, bus),
        composition=settings.composition_name,
        video_ext=settings.video_ext,
    )


def create_orchestrator(
    settings: Settings,
    bus: EventBus,
    *,
    narrator: Narrator | None = None,
    dry_run: bool = False,
) -> PhaseOrchestrator:
    """Build a fully wired orchestrator.

    Args:
        settings: Application settings.
        bus: Event bus shared by every component.
        narrator: Narration service (a fresh unseeded one by default).
        dry_run: Replace build, deploy, verify and cleanup with logging stubs, and
            retry without waiting.
    """
    layout.ensure_output_directories(settings.output_dir)
    capture = create_capture(settings, bus)
    runner = ProcessRunner()

    if dry_run:
        logger.info("Dry run: external build and deploy commands are disabled")
        builder = DryRunBuilder()
        deployer = DryRunDeployer(settings.public_base_url)
        verifier = DryRunVerifier()
        cleanup = DryRunCleanup()
        retry_policy = IMMEDIATE
    else:
        builder = CommandBuildExecutor(
            settings.build_command, runner=runner, timeout_s=settings.command_timeout_s,
        )
        deployer = CommandDeployExecutor(
            settings.deploy_command,
            public_base_url=settings.public_base_url,
            runner=runner,
            timeout_s=settings.command_timeout_s,
        )
        verifier = HttpDeploymentVerifier(timeout_s=settings.verify_timeout_s)
        cleanup = None
        retry_policy = RetryPolicy.from_settings(settings)

    return PhaseOrchestrator(
        bus=bus,
        narrator=narrator or Narrator(),
        builder=builder,
        deployer=deployer,
        verifier=verifier,
        trailer_pipeline=create_trailer_pipeline(settings, bus, capture),
        capture=capture,
        tester=CommandFeatureTester(
            settings.test_command, runner=runner, timeout_s=settings.command_timeout_s,
        ),
        publisher=JsonlReleasePublisher(settings.output_dir, bus=bus),
        homepage=JsonHomepageRegistry(layout.homepage_path(settings.output_dir)),
        cleanup_hook=cleanup,
        side_activities=create_side_activities(settings, bus, runner),
        retry_policy=retry_policy,
        run_store=RunStore(settings.output_dir),
        cooldown_s=settings.cooldown_s,
    )

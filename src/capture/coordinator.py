# src/capture/coordinator.py — v1
"""Footage capture coordinator.

Records a running feature for a fixed duration and files the clip into the shared
footage directory under ``<slug>_footage.<ext>``. Capture failure is a degraded
outcome, never an error: callers get ``None`` and proceed without footage.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

from shipwright.capture.recorder import Recorder
from shipwright.core.models import TrailerConfig
from shipwright.events.bus import EventBus
from shipwright.storage import layout

logger = logging.getLogger(__name__)

DEFAULT_CAPTURE_DURATION_S = 6.0


class FootageCaptureCoordinator:
    """Invoke the recorder and persist its output.

    Args:
        recorder: Recorder collaborator.
        composition_root: Renderer project root; footage goes under public/footage.
        bus: Event bus for operator-visible progress.
        duration_s: Capture length.
        timeout_s: Hard wall-clock bound on the recorder call.
    """

    def __init__(
        self,
        recorder: Recorder,
        composition_root: Path,
        bus: EventBus,
        duration_s: float = DEFAULT_CAPTURE_DURATION_S,
        timeout_s: float | None = None,
    ) -> None:
        self._recorder = recorder
        self._composition_root = Path(composition_root)
        self._bus = bus
        self._duration_s = duration_s
        self._timeout_s = timeout_s if timeout_s is not None else duration_s + 60.0

    @property
    def footage_dir(self) -> Path:
        return layout.footage_dir(self._composition_root)

    async def capture_footage(self, config: TrailerConfig, deploy_url: str) -> str | None:
        """Return the footage path relative to the composition public dir, or None."""
        self._bus.publish(f"📹 Capturing intercut footage at {deploy_url}...")

        try:
            result = await asyncio.wait_for(
                self._recorder.record(deploy_url, config.slug, self._duration_s),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError:
            return self._degrade(config, f"recorder timed out after {self._timeout_s:g}s")
        except Exception as e:
            return self._degrade(config, str(e) or type(e).__name__)

        if not result.success or not result.video_path:
            return self._degrade(config, result.error or "recorder reported failure")

        source = Path(result.video_path)
        if not source.is_file():
            return self._degrade(config, f"recorder output missing at {source}")

        ext = source.suffix.lstrip(".") or "mp4"
        target = self.footage_dir / layout.footage_filename(config.slug, ext)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as e:
            return self._degrade(config, f"could not store footage: {e}")

        self._bus.publish(f"📁 Footage saved: {target.name}")
        return layout.footage_relative_path(config.slug, ext)

    def _degrade(self, config: TrailerConfig, reason: str) -> None:
        logger.warning("Footage capture failed for '%s': %s", config.slug, reason)
        self._bus.publish(f"⚠️ Footage capture failed: {reason}")
        self._bus.publish("   Trailer will render without intercut footage")
        return None

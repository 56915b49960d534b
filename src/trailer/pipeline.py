# src/trailer/pipeline.py — v1
"""Promotional video pipeline.

classify -> (capture footage) -> build render params -> render -> read artifact.

Every failure mode is folded into a ``TrailerResult`` with ``success=False``; nothing
here raises to the caller.
"""

from __future__ import annotations

import base64
import logging
import time
from collections.abc import Callable
from pathlib import Path

from shipwright.capture.coordinator import FootageCaptureCoordinator
from shipwright.core.errors import (
    EmptyRenderOutputError,
    RendererUnavailableError,
    TrailerError,
)
from shipwright.core.models import RenderParams, TrailerConfig, TrailerResult
from shipwright.events.bus import EventBus
from shipwright.storage import layout
from shipwright.trailer import classifier
from shipwright.trailer.renderer import CompositionRenderer

logger = logging.getLogger(__name__)

DURATION_WITH_FOOTAGE_S = 30
DURATION_STATIC_S = 15
DEFAULT_COMPOSITION = "FeatureTrailer"


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class TrailerPipeline:
    """Generate a trailer for a shipped feature.

    Args:
        renderer: Composition renderer.
        output_dir: Where rendered trailers are written.
        bus: Event bus.
        capture: Footage coordinator; without one, trailers are always static.
        composition: Composition name passed to the renderer.
        video_ext: Output container extension.
        clock_ms: Millisecond clock used in output filenames.
    """

    def __init__(
        self,
        renderer: CompositionRenderer,
        output_dir: Path,
        bus: EventBus,
        capture: FootageCaptureCoordinator | None = None,
        composition: str = DEFAULT_COMPOSITION,
        video_ext: str = "mp4",
        clock_ms: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        self._renderer = renderer
        self._output_dir = Path(output_dir)
        self._bus = bus
        self._capture = capture
        self._composition = composition
        self._video_ext = video_ext
        self._clock_ms = clock_ms
        self._last_ts = 0

    async def generate_trailer(
        self,
        config: TrailerConfig,
        deploy_url: str | None = None,
        *,
        footage_path: str | None = None,
    ) -> TrailerResult:
        """Render a trailer for ``config``.

        When ``footage_path`` is given it is used as-is and no capture happens.
        """
        self._bus.publish(f"🎬 Generating trailer for {config.name}...")
        try:
            return await self._generate(config, deploy_url, footage_path)
        except TrailerError as e:
            logger.warning("Trailer generation failed for '%s': %s", config.slug, e)
            self._bus.publish(f"❌ Trailer generation failed: {e}")
            return TrailerResult(success=False, error=str(e), error_kind=e.kind)
        except Exception as e:
            logger.warning(
                "Trailer generation failed for '%s': %s", config.slug, e, exc_info=True,
            )
            message = str(e) or type(e).__name__
            self._bus.publish(f"❌ Trailer generation failed: {message}")
            return TrailerResult(success=False, error=message, error_kind="render_failed")

    async def _generate(
        self, config: TrailerConfig, deploy_url: str | None, footage_path: str | None
    ) -> TrailerResult:
        # Checked before capture so a missing renderer never costs a recording.
        if not self._renderer.is_installed():
            raise RendererUnavailableError()

        if footage_path is None:
            footage_path = await self._maybe_capture(config, deploy_url)

        params = RenderParams(
            feature_name=config.name,
            feature_slug=config.slug,
            description=config.description,
            feature_type="dynamic" if footage_path else "static",
            tagline=config.tagline,
            footage_path=footage_path,
        )

        self._output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self._next_output_path(config.slug)

        self._bus.publish(f"🎥 Rendering {params.feature_type} trailer...")
        await self._renderer.render(self._composition, output_path, params)

        if not output_path.is_file():
            raise EmptyRenderOutputError(str(output_path))

        data = output_path.read_bytes()
        if not data:
            raise EmptyRenderOutputError(str(output_path))

        duration = DURATION_WITH_FOOTAGE_S if footage_path else DURATION_STATIC_S
        size_mb = len(data) / (1024 * 1024)
        self._bus.publish(f"✅ Trailer rendered: {output_path.name} ({size_mb:.1f}MB)")
        logger.info(
            "Trailer rendered for '%s': %s (%d bytes, %ds)",
            config.slug, output_path, len(data), duration,
        )
        return TrailerResult(
            success=True,
            video_path=str(output_path),
            video_encoded_payload=base64.b64encode(data).decode("ascii"),
            duration_seconds=duration,
            size_bytes=len(data),
            render_params=params,
        )

    async def _maybe_capture(self, config: TrailerConfig, deploy_url: str | None) -> str | None:
        decision = classifier.classify(config.slug, config.description)
        if not decision.needs_footage:
            self._bus.publish("📄 Static feature, rendering without footage")
            return None
        if not deploy_url:
            logger.info("'%s' needs footage but has no deploy URL", config.slug)
            return None
        if self._capture is None:
            return None
        self._bus.publish(f"🎮 Dynamic feature detected ({decision.reason})")
        return await self._capture.capture_footage(config, deploy_url)

    def _next_output_path(self, slug: str) -> Path:
        """Unique output path: timestamps strictly increase and skip existing files."""
        ts = max(self._clock_ms(), self._last_ts + 1)
        path = layout.trailer_path(self._output_dir, slug, ts, self._video_ext)
        while path.exists():
            ts += 1
            path = layout.trailer_path(self._output_dir, slug, ts, self._video_ext)
        self._last_ts = ts
        return path

# src/trailer/renderer.py — v1
"""Composition renderer adapter.

Wraps the video-composition CLI. The renderer project lives at the composition root
and is considered installed when its marker file exists there.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from shipwright.core.models import RenderParams
from shipwright.process.runner import DEFAULT_MAX_OUTPUT_BYTES, ProcessResult, ProcessRunner

logger = logging.getLogger(__name__)

DEFAULT_RENDER_TIMEOUT_S = 180.0


class CompositionRenderer:
    """Render a named composition to a video file.

    Args:
        composition_root: Renderer project directory, used as the working directory.
        command: Renderer argv prefix, e.g. ``["npx", "remotion", "render"]``.
        marker: Installation marker relative to the composition root.
        runner: Process runner.
        timeout_s: Wall-clock bound for one render.
        max_output_bytes: Cap on captured renderer output.
    """

    def __init__(
        self,
        composition_root: Path,
        command: Sequence[str] = ("npx", "remotion", "render"),
        marker: str = "package.json",
        runner: ProcessRunner | None = None,
        timeout_s: float = DEFAULT_RENDER_TIMEOUT_S,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        self.composition_root = Path(composition_root)
        self._command = list(command)
        self._marker = marker
        self._runner = runner or ProcessRunner(max_output_bytes=max_output_bytes)
        self._timeout_s = timeout_s
        self._max_output_bytes = max_output_bytes

    def is_installed(self) -> bool:
        return (self.composition_root / self._marker).exists()

    def build_argv(self, composition: str, output_path: Path, params: RenderParams) -> list[str]:
        return [
            *self._command,
            composition,
            str(output_path),
            f"--props={params.to_props_json()}",
            "--log=error",
        ]

    async def render(
        self, composition: str, output_path: Path, params: RenderParams
    ) -> ProcessResult:
        """Run the renderer. Raises ProcessError subclasses on any process failure."""
        argv = self.build_argv(composition, output_path, params)
        logger.info("Rendering %s -> %s", composition, output_path)
        return await self._runner.run(
            argv,
            timeout_s=self._timeout_s,
            cwd=self.composition_root,
            max_output_bytes=self._max_output_bytes,
        )

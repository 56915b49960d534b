# src/capture/recorder.py — v1
"""Recorder interface and the command-driven adapter.

The recorder drives a headless browser against a live URL and writes N seconds of
video. Only its contract lives here: ``record(url, slug, duration_s) -> RecordResult``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from shipwright.core.errors import ProcessError
from shipwright.process.runner import ProcessRunner

logger = logging.getLogger(__name__)


class RecordResult(BaseModel):
    """What the recorder reports back."""

    success: bool
    video_path: str | None = None
    error: str | None = None


class Recorder(Protocol):
    async def record(self, url: str, slug: str, duration_s: float) -> RecordResult: ...


class CommandRecorder:
    """Run a recorder CLI from an argv template.

    Placeholders ``{url}``, ``{slug}``, ``{duration}`` and ``{output}`` are substituted
    per argument; nothing goes through a shell.

    Args:
        argv_template: Command template.
        work_dir: Where raw recordings are written.
        runner: Process runner.
        grace_s: Extra wall-clock time on top of the capture duration (browser start,
            page load, encoding).
        ext: Output container extension.
    """

    def __init__(
        self,
        argv_template: Sequence[str],
        work_dir: Path,
        runner: ProcessRunner | None = None,
        grace_s: float = 60.0,
        ext: str = "mp4",
    ) -> None:
        self._template = list(argv_template)
        self._work_dir = Path(work_dir)
        self._runner = runner or ProcessRunner()
        self._grace_s = grace_s
        self._ext = ext

    def build_argv(self, url: str, slug: str, duration_s: float, output: Path) -> list[str]:
        values = {
            "url": url,
            "slug": slug,
            "duration": f"{duration_s:g}",
            "output": str(output),
        }
        return [part.format(**values) for part in self._template]

    async def record(self, url: str, slug: str, duration_s: float) -> RecordResult:
        self._work_dir.mkdir(parents=True, exist_ok=True)
        output = self._work_dir / f"{slug}_capture_{int(time.time() * 1000)}.{self._ext}"
        argv = self.build_argv(url, slug, duration_s, output)
        try:
            await self._runner.run(argv, timeout_s=duration_s + self._grace_s)
        except ProcessError as e:
            return RecordResult(success=False, error=str(e))
        if not output.exists():
            return RecordResult(success=False, error=f"recorder wrote no file at {output}")
        return RecordResult(success=True, video_path=str(output))

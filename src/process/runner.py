# src/process/runner.py — v1
"""Structured external process invocation.

Commands are argv lists executed without a shell. Every call carries a wall-clock
timeout and a cap on captured output; on either limit the process is killed and
reaped before the error is raised, so nothing is left running.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from shipwright.core.errors import (
    ProcessFailedError,
    ProcessOutputLimitError,
    ProcessSpawnError,
    ProcessTimeoutError,
    describe_command,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
_READ_CHUNK = 64 * 1024


class _OutputLimitReached(Exception):
    pass


@dataclass(frozen=True)
class ProcessResult:
    """Captured outcome of a finished process."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner:
    """Run external commands with timeout and bounded output capture.

    Args:
        max_output_bytes: Default cap on stdout + stderr combined.
    """

    def __init__(self, max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES) -> None:
        self._max_output_bytes = max_output_bytes

    async def run(
        self,
        argv: Sequence[str],
        *,
        timeout_s: float,
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
        max_output_bytes: int | None = None,
        check: bool = True,
    ) -> ProcessResult:
        """Run ``argv`` to completion.

        Raises:
            ProcessSpawnError: The executable could not be started.
            ProcessTimeoutError: Wall-clock timeout hit; the process was killed.
            ProcessOutputLimitError: Output cap exceeded; the process was killed.
            ProcessFailedError: Non-zero exit and ``check`` is true.
        """
        argv = [str(a) for a in argv]
        limit = max_output_bytes or self._max_output_bytes
        merged_env = {**os.environ, **env} if env else None

        logger.debug("Running %s (timeout=%.0fs)", describe_command(argv), timeout_s)
        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd) if cwd is not None else None,
                env=merged_env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ProcessSpawnError(argv, exc) from exc

        budget = [limit]
        try:
            stdout, stderr = await asyncio.wait_for(
                self._collect(proc, budget), timeout=timeout_s
            )
        except asyncio.TimeoutError:
            await _kill(proc)
            raise ProcessTimeoutError(argv, timeout_s) from None
        except _OutputLimitReached:
            await _kill(proc)
            raise ProcessOutputLimitError(argv, limit) from None
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        result = ProcessResult(
            argv=tuple(argv),
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        logger.debug(
            "%s exited %d in %dms", describe_command(argv), result.returncode, result.duration_ms,
        )
        if check and not result.ok:
            raise ProcessFailedError(argv, result.returncode, result.stderr)
        return result

    async def _collect(
        self, proc: asyncio.subprocess.Process, budget: list[int]
    ) -> tuple[bytes, bytes]:
        assert proc.stdout is not None and proc.stderr is not None
        stdout, stderr = await asyncio.gather(
            _drain(proc.stdout, budget), _drain(proc.stderr, budget)
        )
        await proc.wait()
        return stdout, stderr


async def _drain(stream: asyncio.StreamReader, budget: list[int]) -> bytes:
    """Read a stream to EOF, charging every chunk against the shared budget."""
    chunks: list[bytes] = []
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return b"".join(chunks)
        budget[0] -= len(chunk)
        if budget[0] < 0:
            raise _OutputLimitReached()
        chunks.append(chunk)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()

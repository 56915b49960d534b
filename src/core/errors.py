# src/core/errors.py — v1
"""Exception hierarchy.

Phase actions convert these into outcome values; none of them escape the orchestrator.
"""

from __future__ import annotations

from collections.abc import Sequence


class ShipwrightError(Exception):
    """Base class for all shipwright errors."""


# === PROCESS ===


def describe_command(argv: Sequence[str]) -> str:
    """Short human-readable identity of a command for error messages."""
    text = " ".join(argv)
    return text if len(text) <= 120 else text[:117] + "..."


class ProcessError(ShipwrightError):
    """An external process could not be run to a successful exit."""

    def __init__(self, argv: Sequence[str], message: str):
        self.argv = list(argv)
        self.command = describe_command(argv)
        super().__init__(f"{message}: {self.command}")


class ProcessSpawnError(ProcessError):
    def __init__(self, argv: Sequence[str], cause: OSError):
        self.cause = cause
        super().__init__(argv, f"Failed to start process ({cause})")


class ProcessTimeoutError(ProcessError):
    def __init__(self, argv: Sequence[str], timeout_s: float):
        self.timeout_s = timeout_s
        super().__init__(argv, f"Process timed out after {timeout_s:g}s")


class ProcessOutputLimitError(ProcessError):
    def __init__(self, argv: Sequence[str], limit_bytes: int):
        self.limit_bytes = limit_bytes
        super().__init__(argv, f"Process output exceeded {limit_bytes} bytes")


class ProcessFailedError(ProcessError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        tail = stderr.strip()[-500:]
        message = f"Process exited with code {returncode}"
        if tail:
            message = f"{message} ({tail})"
        super().__init__(argv, message)


# === TRAILER ===


class TrailerError(ShipwrightError):
    """Trailer rendering failed."""

    kind = "render_failed"


class RendererUnavailableError(TrailerError):
    """Renderer installation marker is missing. Configuration problem, not transient."""

    kind = "renderer_unavailable"

    def __init__(self, message: str = "renderer not installed"):
        super().__init__(message)


class EmptyRenderOutputError(TrailerError):
    """Renderer exited 0 but wrote no file."""

    kind = "empty_render_output"

    def __init__(self, output_path: str):
        self.output_path = output_path
        super().__init__(f"renderer produced no output at {output_path}")


# === ORCHESTRATION ===


class RunAlreadyActiveError(ShipwrightError):
    """A run is still running; a new one cannot start."""

    def __init__(self, run_id: str, slug: str):
        self.run_id = run_id
        self.slug = slug
        super().__init__(f"Run {run_id} for '{slug}' is still running")

# src/logging/context.py — v1
"""Contextual logging support: attach run_id, slug, phase and attempt to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per run, then per phase by the orchestrator.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_slug: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "slug", default=None
)
_phase: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "phase", default=None
)
_attempt: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "attempt", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    run_id: str | None = None
    slug: str | None = None
    phase: str | None = None
    attempt: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        slug=_slug.get(),
        phase=_phase.get(),
        attempt=_attempt.get(),
    )


def set_run_context(run_id: str, slug: str) -> None:
    """Set run-level context (called once per run)."""
    _run_id.set(run_id)
    _slug.set(slug)


def set_phase_context(phase: str | None, attempt: int | None = None) -> None:
    """Set phase-level context (called per phase attempt)."""
    _phase.set(phase)
    _attempt.set(attempt)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _slug.set(None)
    _phase.set(None)
    _attempt.set(None)

# src/pipeline/retry.py — v1
"""Per-phase retry policy with optional exponential backoff."""

from __future__ import annotations

import random
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from shipwright.config.settings import DEFAULT_RETRY_CEILINGS, Settings
from shipwright.core.models import Phase

RetryStrategy = Literal["immediate", "backoff"]


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts each phase gets and how long to wait between them.

    ``ceilings`` maps phase value to max attempts (including the first one).
    Phases without an entry get a single attempt.
    """

    ceilings: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_RETRY_CEILINGS))
    strategy: RetryStrategy = "backoff"
    base_delay_s: float = 5.0
    backoff_factor: float = 2.0
    max_delay_s: float = 60.0
    jitter: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            ceilings=dict(settings.retry_ceilings),
            strategy=settings.retry_strategy,
            base_delay_s=settings.retry_base_delay_s,
            backoff_factor=settings.retry_backoff_factor,
            max_delay_s=settings.retry_max_delay_s,
        )

    def ceiling_for(self, phase: Phase) -> int:
        return max(1, self.ceilings.get(phase.value, 1))

    def should_retry(self, phase: Phase, attempt_number: int) -> bool:
        """True when the failed ``attempt_number`` (1-based) leaves attempts to spare."""
        return attempt_number < self.ceiling_for(phase)

    def delay_for(self, attempt_number: int) -> float:
        """Delay before the attempt following failed ``attempt_number`` (1-based)."""
        if self.strategy == "immediate":
            return 0.0
        delay = self.base_delay_s * (self.backoff_factor ** (attempt_number - 1))
        if self.jitter:
            delay *= 0.5 + random.random()  # noqa: S311
        return min(delay, self.max_delay_s)


IMMEDIATE = RetryPolicy(strategy="immediate")

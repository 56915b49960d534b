# src/narration/narrator.py — v1
"""Narration service: pick a random line from one category.

The random source is injected so tests can seed it. There is no memory between
calls; repeats are allowed.
"""

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Protocol

from shipwright.core.models import Phase, PhaseOutcome
from shipwright.narration.catalog import NARRATION, category_for

if TYPE_CHECKING:
    from shipwright.events.bus import EventBus

NARRATION_PREFIX = "   💭 "


class RandomSource(Protocol):
    def choice(self, seq: Sequence[str]) -> str: ...


class Narrator:
    """Category -> message lookup with uniform selection inside the category.

    Args:
        rng: Random source (``random.Random`` or compatible).
        catalog: Category map; defaults to the built-in lines.
    """

    def __init__(
        self,
        rng: RandomSource | None = None,
        catalog: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        self._rng: RandomSource = rng if rng is not None else random.Random()
        self._catalog = catalog if catalog is not None else NARRATION

    def narrate(self, category: str) -> str:
        """Return a line for ``category``, or "" when the category is unknown or empty."""
        lines = self._catalog.get(category)
        if not lines:
            return ""
        return self._rng.choice(lines)

    def for_phase(self, phase: Phase, outcome: PhaseOutcome) -> str:
        return self.narrate(category_for(phase, outcome))

    def announce(self, bus: EventBus, category: str) -> str:
        """Publish a narration line on ``bus``; silent when there is nothing to say."""
        return self._publish(bus, self.narrate(category))

    def announce_phase(self, bus: EventBus, phase: Phase, outcome: PhaseOutcome) -> str:
        return self._publish(bus, self.for_phase(phase, outcome))

    @staticmethod
    def _publish(bus: EventBus, message: str) -> str:
        if message:
            bus.publish(f"{NARRATION_PREFIX}{message}")
        return message

    def categories(self) -> list[str]:
        return sorted(self._catalog)

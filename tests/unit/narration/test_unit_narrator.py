# tests/unit/narration/test_unit_narrator.py — v1
"""Tests for narration/narrator.py and narration/catalog.py."""

from __future__ import annotations

import random

import pytest

from shipwright.core.models import Phase, PhaseOutcome
from shipwright.events.bus import EventBus
from shipwright.events.sinks import MemorySink
from shipwright.narration.catalog import NARRATION, category_for
from shipwright.narration.narrator import NARRATION_PREFIX, Narrator

ACTIVE_PHASES = [p for p in Phase if p is not Phase.COOLDOWN]


class TestCatalog:
    def test_every_category_non_empty(self):
        assert all(len(lines) > 0 for lines in NARRATION.values())

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            NARRATION["new"] = ("x",)  # type: ignore[index]

    @pytest.mark.parametrize("phase", ACTIVE_PHASES)
    @pytest.mark.parametrize(
        "outcome", [PhaseOutcome.START, PhaseOutcome.SUCCESS, PhaseOutcome.FAILURE]
    )
    def test_every_phase_outcome_has_lines(self, phase, outcome):
        assert category_for(phase, outcome) in NARRATION

    def test_cross_cutting_categories(self):
        for category in (
            "retrying", "max_retries_failed", "waiting",
            "cooldown_active", "startup", "cycle_complete",
        ):
            assert category in NARRATION

    def test_category_names(self):
        assert category_for(Phase.BUILD, PhaseOutcome.START) == "building"
        assert category_for(Phase.BUILD, PhaseOutcome.SUCCESS) == "build_success"
        assert category_for(Phase.DEPLOY, PhaseOutcome.FAILURE) == "deploy_failed"
        assert category_for(Phase.TEST, PhaseOutcome.RETRY) == "retrying"
        assert category_for(Phase.TEST, PhaseOutcome.EXHAUSTED) == "max_retries_failed"
        assert category_for(Phase.COOLDOWN, PhaseOutcome.START) == "waiting"


class TestNarrator:
    def test_narrate_returns_category_member(self, narrator):
        for _ in range(20):
            assert narrator.narrate("building") in NARRATION["building"]

    def test_unknown_category_returns_empty(self, narrator):
        assert narrator.narrate("no_such_category") == ""

    def test_seeded_sources_agree(self):
        a = Narrator(rng=random.Random(7))
        b = Narrator(rng=random.Random(7))
        assert [a.narrate("planning") for _ in range(10)] == [
            b.narrate("planning") for _ in range(10)
        ]

    def test_custom_catalog(self):
        n = Narrator(rng=random.Random(0), catalog={"only": ("one line",), "empty": ()})
        assert n.narrate("only") == "one line"
        assert n.narrate("empty") == ""
        assert n.categories() == ["empty", "only"]

    def test_for_phase(self, narrator):
        assert narrator.for_phase(Phase.DEPLOY, PhaseOutcome.SUCCESS) in NARRATION["deploy_success"]

    def test_announce_publishes_with_prefix(self, narrator):
        bus = EventBus()
        sink = MemorySink()
        bus.subscribe(sink)
        message = narrator.announce(bus, "startup")
        assert sink.texts == [f"{NARRATION_PREFIX}{message}"]

    def test_announce_unknown_is_silent(self, narrator):
        bus = EventBus()
        assert narrator.announce(bus, "nope") == ""
        assert bus.history == ()

    def test_announce_phase(self, narrator):
        bus = EventBus()
        sink = MemorySink()
        bus.subscribe(sink)
        message = narrator.announce_phase(bus, Phase.VERIFY, PhaseOutcome.FAILURE)
        assert message in NARRATION[category_for(Phase.VERIFY, PhaseOutcome.FAILURE)]
        assert sink.texts == [f"{NARRATION_PREFIX}{message}"]

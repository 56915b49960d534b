# tests/unit/pipeline/test_unit_retry_phases.py — v1
"""Tests for pipeline/retry.py and pipeline/phases.py."""

from __future__ import annotations

import pytest

from shipwright.config.settings import Settings
from shipwright.core.models import Phase, PhaseOutcome, RunStatus
from shipwright.pipeline.phases import (
    PHASE_ORDER,
    TRANSITIONS,
    next_phase,
    next_transition,
)
from shipwright.pipeline.retry import RetryPolicy


class TestRetryPolicy:
    def test_default_ceilings(self):
        policy = RetryPolicy()
        assert policy.ceiling_for(Phase.DEPLOY) == 3
        assert policy.ceiling_for(Phase.TRAILER) == 1

    def test_should_retry(self):
        policy = RetryPolicy(ceilings={"build": 3})
        assert policy.should_retry(Phase.BUILD, 1)
        assert policy.should_retry(Phase.BUILD, 2)
        assert not policy.should_retry(Phase.BUILD, 3)
        assert not policy.should_retry(Phase.DEPLOY, 1)

    def test_immediate(self):
        assert RetryPolicy(strategy="immediate").delay_for(3) == 0.0

    def test_backoff_grows_and_caps(self):
        policy = RetryPolicy(base_delay_s=5, backoff_factor=2, max_delay_s=12)
        assert policy.delay_for(1) == 5
        assert policy.delay_for(2) == 10
        assert policy.delay_for(3) == 12

    def test_jitter_bounds(self):
        policy = RetryPolicy(base_delay_s=4, backoff_factor=1, max_delay_s=100, jitter=True)
        for _ in range(20):
            assert 2.0 <= policy.delay_for(1) <= 6.0

    def test_from_settings(self):
        s = Settings(
            _env_file=None,
            retry_ceilings={"build": 5},
            retry_strategy="immediate",
        )
        policy = RetryPolicy.from_settings(s)
        assert policy.ceiling_for(Phase.BUILD) == 5
        assert policy.strategy == "immediate"
        assert policy.ceiling_for(Phase.DEPLOY) == 3


class TestTransitions:
    def test_success_walks_phase_order(self):
        phase = Phase.PLAN
        visited = [phase]
        while phase is not Phase.COOLDOWN:
            phase = next_phase(phase)
            visited.append(phase)
        assert visited == [*PHASE_ORDER, Phase.COOLDOWN]

    def test_cleanup_success_completes(self):
        t = next_transition(Phase.CLEANUP, PhaseOutcome.SUCCESS)
        assert t.next_phase is Phase.COOLDOWN
        assert t.status is RunStatus.COMPLETED

    def test_cooldown_loops_to_plan(self):
        assert next_phase(Phase.COOLDOWN) is Phase.PLAN

    def test_retry_stays(self):
        t = next_transition(Phase.DEPLOY, PhaseOutcome.RETRY)
        assert t == (Phase.DEPLOY, RunStatus.RUNNING)

    def test_exhausted_defers_required_phase(self):
        t = next_transition(Phase.BUILD, PhaseOutcome.EXHAUSTED)
        assert t.status is RunStatus.DEFERRED

    @pytest.mark.parametrize("phase, following", [
        (Phase.RECORD, Phase.TRAILER),
        (Phase.TRAILER, Phase.PUBLISH),
    ])
    def test_exhausted_best_effort_advances(self, phase, following):
        t = next_transition(phase, PhaseOutcome.EXHAUSTED)
        assert t == (following, RunStatus.RUNNING)

    def test_unknown_pair(self):
        with pytest.raises(KeyError):
            next_transition(Phase.COOLDOWN, PhaseOutcome.FAILURE)

    def test_table_covers_every_phase(self):
        for phase in PHASE_ORDER:
            for outcome in (PhaseOutcome.SUCCESS, PhaseOutcome.RETRY, PhaseOutcome.EXHAUSTED):
                assert (phase, outcome) in TRANSITIONS

# src/pipeline/phases.py — v1
"""Phase sequence and transition table.

The orchestrator never hard-codes "what comes next"; it looks it up here.

    plan -> build -> deploy -> verify -> test -> record -> trailer
         -> publish -> homepage -> cleanup -> cooldown
"""

from __future__ import annotations

from typing import NamedTuple

from shipwright.core.models import Phase, PhaseOutcome, RunStatus

PHASE_ORDER: tuple[Phase, ...] = (
    Phase.PLAN,
    Phase.BUILD,
    Phase.DEPLOY,
    Phase.VERIFY,
    Phase.TEST,
    Phase.RECORD,
    Phase.TRAILER,
    Phase.PUBLISH,
    Phase.HOMEPAGE,
    Phase.CLEANUP,
)

# Failure of these phases degrades the release instead of stopping the run.
BEST_EFFORT_PHASES: frozenset[Phase] = frozenset({Phase.RECORD, Phase.TRAILER})


class Transition(NamedTuple):
    next_phase: Phase
    status: RunStatus


def _build_table() -> dict[tuple[Phase, PhaseOutcome], Transition]:
    table: dict[tuple[Phase, PhaseOutcome], Transition] = {}
    following = (*PHASE_ORDER[1:], Phase.COOLDOWN)
    for phase, nxt in zip(PHASE_ORDER, following):
        done = RunStatus.COMPLETED if nxt is Phase.COOLDOWN else RunStatus.RUNNING
        table[(phase, PhaseOutcome.SUCCESS)] = Transition(nxt, done)
        table[(phase, PhaseOutcome.RETRY)] = Transition(phase, RunStatus.RUNNING)
        if phase in BEST_EFFORT_PHASES:
            table[(phase, PhaseOutcome.EXHAUSTED)] = Transition(nxt, RunStatus.RUNNING)
        else:
            table[(phase, PhaseOutcome.EXHAUSTED)] = Transition(phase, RunStatus.DEFERRED)
    table[(Phase.COOLDOWN, PhaseOutcome.SUCCESS)] = Transition(Phase.PLAN, RunStatus.RUNNING)
    return table


TRANSITIONS: dict[tuple[Phase, PhaseOutcome], Transition] = _build_table()


def next_transition(phase: Phase, outcome: PhaseOutcome) -> Transition:
    """Look up the transition for ``(phase, outcome)``.

    Raises:
        KeyError: No transition is defined for the pair.
    """
    try:
        return TRANSITIONS[(phase, outcome)]
    except KeyError:
        raise KeyError(f"No transition for ({phase.value}, {outcome.value})") from None


def next_phase(phase: Phase) -> Phase:
    """The phase that follows ``phase`` on success."""
    return next_transition(phase, PhaseOutcome.SUCCESS).next_phase

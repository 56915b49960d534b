# src/narration/catalog.py — v1
"""Pre-authored narration lines, grouped by category.

Voice: casual, confident dev energy. Failures are setbacks, never defeat.
Each category is a fixed, non-empty tuple; selection happens only within one category.
"""

from __future__ import annotations

from types import MappingProxyType

from shipwright.core.models import Phase, PhaseOutcome

_LINES: dict[str, tuple[str, ...]] = {
    # --- Phase starts ---
    "planning": (
        "dev is thinking real hard...",
        "initiating vibe check",
        "the braincells are conferencing",
        "big brain time",
        "cooking up the architecture",
    ),
    "building": (
        "dev is devving",
        "time to cook",
        "entering the zone",
        "keyboard clacking intensifies",
        "fingers on keys, let's go",
    ),
    "deploying": (
        "yeeting to production",
        "pushing to prod (confident)",
        "sending it to the internet",
        "shipping heat",
    ),
    "verifying": (
        "moment of truth",
        "running the gauntlet",
        "quality check incoming",
        "verification speedrun",
    ),
    "testing": (
        "poking the feature to see if it's alive",
        "clicking all the buttons",
        "ux police on patrol",
        "feature inspection time",
    ),
    "recording": (
        "capturing the vibes",
        "lights camera action",
        "this deserves some footage",
    ),
    "trailer": (
        "making a movie",
        "this deserves a trailer",
        "rolling the render farm",
    ),
    "publishing": (
        "broadcasting to the timeline",
        "the people must know",
        "alerting the timeline",
    ),
    "homepage": (
        "adding to the collection",
        "homepage glow up",
        "new button who dis",
    ),
    "cleanup": (
        "sweeping under the rug",
        "the janitor has arrived",
        "resetting for the next W",
        "clean slate incoming",
    ),
    # --- Successes ---
    "plan_success": (
        "galaxy brain activated",
        "the vision is clear",
        "roadmap acquired",
    ),
    "build_success": (
        "code goes brrrr",
        "feature materialized",
        "clean build, clean conscience",
        "another banger shipped",
    ),
    "deploy_success": (
        "it's alive on the internet",
        "the cloud has accepted our offering",
        "live and looking good",
    ),
    "verify_success": (
        "works perfectly fr",
        "passed the vibe check",
        "verified and vibing",
    ),
    "test_success": (
        "buttons click, forms submit, games play",
        "ux approved",
        "functionally verified fr",
    ),
    "record_success": (
        "footage in the can",
        "that's a wrap on the b-roll",
    ),
    "trailer_success": (
        "cinema achieved",
        "trailer goes hard",
        "promotional content secured",
    ),
    "publish_success": (
        "the algorithm has been fed",
        "announcement deployed",
        "the timeline has been notified",
    ),
    "homepage_success": (
        "homepage updated",
        "button installed",
        "feature now discoverable",
    ),
    "cleanup_success": (
        "spotless",
        "ready for the next one",
    ),
    # --- Failures ---
    "plan_failed": (
        "the plan needs another pass",
        "back to the whiteboard",
    ),
    "build_failed": (
        "skill issue detected, fixing",
        "edge case found, handling it",
        "challenge accepted",
    ),
    "deploy_failed": (
        "infra being dramatic, retrying",
        "prod said wait, trying again",
        "network hiccup, we persist",
    ),
    "verify_failed": (
        "propagation in progress",
        "dns doing dns things",
        "almost there...",
    ),
    "test_failed": (
        "found an edge case, improving",
        "refinement arc",
    ),
    "record_failed": (
        "camera shy today, rolling without footage",
        "no b-roll, the edit still slaps",
    ),
    "trailer_failed": (
        "the movie got cut, shipping the text version",
        "trailer on hold, the feature speaks for itself",
    ),
    "publish_failed": (
        "the timeline is busy, trying again",
        "announcement stuck in traffic",
    ),
    "homepage_failed": (
        "homepage being stubborn, retrying",
    ),
    "cleanup_failed": (
        "mess is fighting back",
    ),
    # --- Retry / escalation ---
    "retrying": (
        "plot twist, adapting",
        "round 2, fight",
        "speedbump, not a wall",
        "persistence is key",
        "we go again",
    ),
    "max_retries_failed": (
        "this one's spicy, saving for later",
        "interesting problem, will revisit",
        "flagging for round 2",
        "tactical retreat, not defeat",
    ),
    # --- Cross-cutting ---
    "cycle_complete": (
        "another one for the portfolio",
        "feature unlocked",
        "shipped and blessed",
        "gg ez",
    ),
    "waiting": (
        "touching grass (briefly)",
        "cooldown arc",
        "recharging the dev energy",
        "intermission",
    ),
    "cooldown_active": (
        "making content while we wait",
        "productive vibes only",
        "cooldown? more like content time",
    ),
    "startup": (
        "brain online, ready to ship",
        "autonomous mode engaged",
        "the machine awakens",
        "dev bot reporting for duty",
    ),
}

NARRATION: MappingProxyType[str, tuple[str, ...]] = MappingProxyType(_LINES)

_PHASE_START: dict[Phase, str] = {
    Phase.PLAN: "planning",
    Phase.BUILD: "building",
    Phase.DEPLOY: "deploying",
    Phase.VERIFY: "verifying",
    Phase.TEST: "testing",
    Phase.RECORD: "recording",
    Phase.TRAILER: "trailer",
    Phase.PUBLISH: "publishing",
    Phase.HOMEPAGE: "homepage",
    Phase.CLEANUP: "cleanup",
    Phase.COOLDOWN: "waiting",
}


def category_for(phase: Phase, outcome: PhaseOutcome) -> str:
    """Map a (phase, outcome) pair to its narration category name."""
    if outcome is PhaseOutcome.START:
        return _PHASE_START[phase]
    if outcome is PhaseOutcome.SUCCESS:
        return f"{phase.value}_success"
    if outcome is PhaseOutcome.FAILURE:
        return f"{phase.value}_failed"
    if outcome is PhaseOutcome.RETRY:
        return "retrying"
    return "max_retries_failed"

# src/trailer/classifier.py — v1
"""Feature complexity classifier.

Decides whether a feature's trailer needs real captured footage intercut into the
composition, or can be purely synthetic. Pure and deterministic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Ordered: the first hit is the one reported.
FOOTAGE_KEYWORDS: tuple[str, ...] = (
    "game",
    "3d",
    "three.js",
    "canvas",
    "webgl",
    "physics",
    "real-time",
    "interactive game",
    "arcade",
    "shooter",
    "runner",
    "invaders",
    "animation",
)

COMPLEX_ROUTES: tuple[str, ...] = ("moon", "play", "game")


@dataclass(frozen=True)
class FootageDecision:
    """Classifier verdict plus what triggered it."""

    needs_footage: bool
    matched_keyword: str | None = None
    reason: str = "no dynamic keyword"


def classify(slug: str, description: str) -> FootageDecision:
    """Classify a feature by keyword match on slug/description, then by known routes."""
    slug_lower = slug.lower()
    desc_lower = description.lower()

    for keyword in FOOTAGE_KEYWORDS:
        if keyword in desc_lower or keyword in slug_lower:
            return FootageDecision(True, keyword, f"keyword: {keyword}")

    for route in COMPLEX_ROUTES:
        if route in slug_lower:
            return FootageDecision(True, route, f"known complex route: {route}")

    return FootageDecision(False)


def needs_footage(slug: str, description: str) -> bool:
    decision = classify(slug, description)
    logger.debug(
        "Feature '%s' needs_footage=%s (%s)", slug, decision.needs_footage, decision.reason,
    )
    return decision.needs_footage

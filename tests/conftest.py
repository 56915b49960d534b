# tests/conftest.py — v2
"""Shared test fixtures for all unit tests.

Provides sample features, a bus with an in-memory sink, a seeded narrator and
fake collaborators. No network, no external processes unless a test asks for one.
"""

from __future__ import annotations

import random
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from shipwright.core.models import FeatureSpec, TrailerResult
from shipwright.events.bus import EventBus
from shipwright.events.sinks import MemorySink
from shipwright.logging.context import clear_context
from shipwright.narration.narrator import Narrator


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


@pytest.fixture
def static_feature() -> FeatureSpec:
    return FeatureSpec(
        name="Pricing Page",
        slug="pricing-page",
        description="a static pricing table",
    )


@pytest.fixture
def dynamic_feature() -> FeatureSpec:
    return FeatureSpec(
        name="Moon Mission",
        slug="moon-mission",
        description="a 3d platformer on the moon",
        tagline="jump higher",
    )


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def bus(memory_sink: MemorySink) -> EventBus:
    b = EventBus()
    b.subscribe(memory_sink)
    return b


@pytest.fixture
def narrator() -> Narrator:
    return Narrator(rng=random.Random(42))


@pytest.fixture
def composition_root(tmp_path: Path) -> Path:
    """Composition root with the renderer installation marker present."""
    root = tmp_path / "video"
    root.mkdir()
    (root / "package.json").write_text("{}", encoding="utf-8")
    return root


@pytest.fixture
def collaborators() -> dict[str, AsyncMock]:
    """Async collaborator doubles that all succeed."""
    builder = AsyncMock()
    builder.build = AsyncMock(return_value=None)
    deployer = AsyncMock()
    deployer.deploy = AsyncMock(return_value="https://example.com/feature")
    verifier = AsyncMock()
    verifier.verify = AsyncMock(return_value=True)
    trailer = AsyncMock()
    trailer.generate_trailer = AsyncMock(
        return_value=TrailerResult(
            success=True, video_path="/tmp/out.mp4", duration_seconds=15, size_bytes=3,
        )
    )
    publisher = AsyncMock()
    publisher.publish = AsyncMock(return_value=None)
    homepage = AsyncMock()
    homepage.add_feature = AsyncMock(return_value=None)
    return {
        "builder": builder,
        "deployer": deployer,
        "verifier": verifier,
        "trailer_pipeline": trailer,
        "publisher": publisher,
        "homepage": homepage,
    }

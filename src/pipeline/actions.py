# src/pipeline/actions.py — v1
"""Collaborator interfaces for phase actions.

Implementations may raise; the orchestrator converts any exception into a failed
ActionResult before it reaches the retry logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from shipwright.core.models import FeatureSpec, RunState, TrailerResult


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one phase action."""

    ok: bool
    detail: str | None = None
    value: Any = None
    # False for configuration problems that another attempt cannot fix.
    retryable: bool = True

    @classmethod
    def success(cls, value: Any = None, detail: str | None = None) -> ActionResult:
        return cls(ok=True, detail=detail, value=value)

    @classmethod
    def failure(cls, detail: str, value: Any = None, retryable: bool = True) -> ActionResult:
        return cls(ok=False, detail=detail, value=value, retryable=retryable)


class Planner(Protocol):
    async def plan(self, feature: FeatureSpec) -> None: ...


class BuildExecutor(Protocol):
    async def build(self, feature: FeatureSpec) -> None: ...


class DeployExecutor(Protocol):
    async def deploy(self, feature: FeatureSpec) -> str:
        """Deploy the feature and return its public URL."""
        ...


class DeploymentVerifier(Protocol):
    async def verify(self, url: str) -> bool: ...


class FeatureTester(Protocol):
    async def test(self, feature: FeatureSpec, url: str) -> None: ...


class ReleasePublisher(Protocol):
    async def publish(
        self, feature: FeatureSpec, url: str | None, trailer: TrailerResult | None
    ) -> None: ...


class HomepageUpdater(Protocol):
    async def add_feature(self, feature: FeatureSpec, url: str | None) -> None: ...


class CleanupHook(Protocol):
    async def cleanup(self, run: RunState) -> None: ...


class SideActivity(Protocol):
    """Something to do while the orchestrator cools down between runs."""

    async def run(self) -> None: ...

# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_SLUG_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$", re.IGNORECASE)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# === FEATURE ===


class FeatureSpec(BaseModel):
    """A feature to ship. Immutable once a run starts."""

    model_config = ConfigDict(frozen=True)

    name: str
    slug: str
    description: str
    tagline: str | None = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        """Slug doubles as a filename component, so it must be filename-safe."""
        if not _SLUG_RE.match(v):
            raise ValueError(f"slug must match {_SLUG_RE.pattern!r}, got {v!r}")
        return v

    def trailer_config(self) -> TrailerConfig:
        return TrailerConfig(
            name=self.name,
            slug=self.slug,
            description=self.description,
            tagline=self.tagline or self.description,
        )


# === PHASES ===


class Phase(str, Enum):
    """Pipeline phases, declared in execution order."""

    PLAN = "plan"
    BUILD = "build"
    DEPLOY = "deploy"
    VERIFY = "verify"
    TEST = "test"
    RECORD = "record"
    TRAILER = "trailer"
    PUBLISH = "publish"
    HOMEPAGE = "homepage"
    CLEANUP = "cleanup"
    COOLDOWN = "cooldown"


class PhaseOutcome(str, Enum):
    START = "start"
    SUCCESS = "success"
    FAILURE = "failure"
    RETRY = "retry"
    EXHAUSTED = "exhausted"


class PhaseAttempt(BaseModel):
    """One execution of one phase."""

    phase: Phase
    attempt_number: int = Field(ge=1)
    outcome: PhaseOutcome
    error_detail: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


class RunStatus(str, Enum):
    RUNNING = "running"
    DEFERRED = "deferred"
    COMPLETED = "completed"


# === TRAILER ===


class TrailerConfig(BaseModel):
    """Feature metadata handed by value to the video composition pipeline."""

    name: str
    slug: str
    description: str
    tagline: str


class RenderParams(BaseModel):
    """Composition input, serialized with the renderer's camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    feature_name: str = Field(alias="featureName")
    feature_slug: str = Field(alias="featureSlug")
    description: str
    feature_type: Literal["dynamic", "static"] = Field(alias="featureType")
    tagline: str
    footage_path: str | None = Field(default=None, alias="footagePath")

    def to_props_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


TrailerErrorKind = Literal[
    "renderer_unavailable", "empty_render_output", "render_failed"
]


class TrailerResult(BaseModel):
    """Outcome of a trailer generation. Never raised, always returned."""

    success: bool
    video_path: str | None = None
    video_encoded_payload: str | None = Field(default=None, repr=False)
    duration_seconds: int | None = None
    size_bytes: int | None = None
    render_params: RenderParams | None = None
    error: str | None = None
    error_kind: TrailerErrorKind | None = None


# === RUN STATE ===


class RunState(BaseModel):
    """Mutable record of one pipeline execution, owned by the orchestrator."""

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    feature: FeatureSpec
    current_phase: Phase = Phase.PLAN
    current_attempt: int = 0
    attempts: list[PhaseAttempt] = Field(default_factory=list)
    deploy_url: str | None = None
    footage_path: str | None = None
    trailer_result: TrailerResult | None = None
    status: RunStatus = RunStatus.RUNNING
    deferred_reason: str | None = None
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not RunStatus.RUNNING

    def attempts_for(self, phase: Phase) -> list[PhaseAttempt]:
        return [a for a in self.attempts if a.phase is phase]


# === EVENTS ===


class Event(BaseModel):
    """A single published log line."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    text: str

    def render(self) -> str:
        return f"[{self.timestamp.isoformat()}] {self.text}"

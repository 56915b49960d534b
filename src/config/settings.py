# src/config/settings.py — v1
"""Typed configuration loaded from the environment / .env via pydantic-settings.

Single source of truth for directories, external commands, timeouts and the
per-phase retry policy. Every variable is prefixed with ``SHIPWRIGHT_``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shipwright.core.models import Phase


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


DEFAULT_RETRY_CEILINGS: dict[str, int] = {
    "plan": 3,
    "build": 3,
    "deploy": 3,
    "verify": 3,
    "test": 3,
    "record": 1,
    "trailer": 1,
    "publish": 3,
    "homepage": 3,
    "cleanup": 3,
}


class Settings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_prefix="SHIPWRIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Directories ===
    output_dir: Path = Path("./recordings")
    composition_root: Path = Path("./video")

    # === Renderer ===
    renderer_marker: str = "package.json"
    renderer_command: list[str] = ["npx", "remotion", "render"]
    composition_name: str = "FeatureTrailer"
    video_ext: str = "mp4"
    render_timeout_s: float = 180.0
    render_max_output_bytes: int = 10 * 1024 * 1024

    # === Footage capture ===
    capture_duration_s: float = 6.0
    capture_grace_s: float = 60.0
    recorder_command: list[str] = [
        "node", "record-feature.js", "{url}", "{output}", "--seconds", "{duration}",
    ]

    # === Retry policy ===
    retry_ceilings: dict[str, int] = dict(DEFAULT_RETRY_CEILINGS)
    retry_strategy: Literal["immediate", "backoff"] = "backoff"
    retry_base_delay_s: float = 5.0
    retry_backoff_factor: float = 2.0
    retry_max_delay_s: float = 60.0

    # === Cooldown ===
    cooldown_s: float = 3600.0

    # === Collaborator commands ===
    build_command: list[str] = ["npm", "run", "build"]
    deploy_command: list[str] = ["npx", "wrangler", "pages", "deploy", "out"]
    test_command: list[str] = []
    command_timeout_s: float = 300.0
    public_base_url: str = "https://example.com"
    verify_timeout_s: float = 15.0

    # === Cooldown status report ===
    status_command: list[str] = []
    status_cache_ttl_s: float = 300.0

    # === Events ===
    events_file: Path | None = None

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "render_timeout_s", "capture_duration_s", "command_timeout_s", "status_cache_ttl_s",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("timeouts and durations must be > 0")
        return v

    @field_validator("retry_ceilings", mode="after")
    @classmethod
    def merge_retry_ceilings(cls, v: dict[str, int]) -> dict[str, int]:  # noqa: N805
        """Partial overrides keep the defaults for every phase they do not name."""
        return {**DEFAULT_RETRY_CEILINGS, **v}

    @field_validator("video_ext")
    @classmethod
    def validate_video_ext(cls, v: str) -> str:  # noqa: N805
        return v.lstrip(".")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Cross-field consistency rules."""
        errors: list[str] = []

        known = {p.value for p in Phase if p is not Phase.COOLDOWN}
        unknown = sorted(set(self.retry_ceilings) - known)
        if unknown:
            errors.append(f"RETRY_CEILINGS has unknown phases: {', '.join(unknown)}")

        low = sorted(k for k, v in self.retry_ceilings.items() if v < 1)
        if low:
            errors.append(f"RETRY_CEILINGS must be >= 1 for: {', '.join(low)}")

        if self.retry_max_delay_s < self.retry_base_delay_s:
            errors.append("RETRY_MAX_DELAY_S must be >= RETRY_BASE_DELAY_S")

        if not self.renderer_command:
            errors.append("RENDERER_COMMAND must not be empty")

        if self.cooldown_s < 0:
            errors.append("COOLDOWN_S must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    def ceiling_for(self, phase: Phase) -> int:
        """Max attempts for a phase; phases without an entry get a single attempt."""
        return self.retry_ceilings.get(phase.value, 1)

    @property
    def renderer_marker_path(self) -> Path:
        return self.composition_root / self.renderer_marker


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment / .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]

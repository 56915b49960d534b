# src/collaborators/stubs.py — v1
"""Dry-run collaborators: log what would happen and succeed."""

from __future__ import annotations

import logging

from shipwright.core.models import FeatureSpec, RunState

logger = logging.getLogger(__name__)


class DryRunBuilder:
    async def build(self, feature: FeatureSpec) -> None:
        logger.info("[dry-run] build %s", feature.slug)


class DryRunDeployer:
    def __init__(self, public_base_url: str = "https://example.com") -> None:
        self._base = public_base_url.rstrip("/")

    async def deploy(self, feature: FeatureSpec) -> str:
        url = f"{self._base}/{feature.slug}"
        logger.info("[dry-run] deploy %s -> %s", feature.slug, url)
        return url


class DryRunVerifier:
    async def verify(self, url: str) -> bool:
        logger.info("[dry-run] verify %s", url)
        return True


class DryRunCleanup:
    async def cleanup(self, run: RunState) -> None:
        logger.info("[dry-run] cleanup after run %s", run.run_id)

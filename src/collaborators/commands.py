# src/collaborators/commands.py — v1
"""Command-driven build, test and deploy executors.

Each wraps a configured argv template. ``{slug}`` and ``{name}`` placeholders are
substituted per argument; commands never go through a shell. A non-zero exit raises
ProcessFailedError, which the orchestrator turns into a failed attempt.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from pathlib import Path

from shipwright.core.models import FeatureSpec
from shipwright.process.runner import ProcessResult, ProcessRunner

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"https://[^\s'\"<>]+")


def render_argv(template: Sequence[str], feature: FeatureSpec, **extra: str) -> list[str]:
    values = {"slug": feature.slug, "name": feature.name, **extra}
    return [part.format(**values) for part in template]


class _CommandStep:
    def __init__(
        self,
        argv_template: Sequence[str],
        runner: ProcessRunner | None = None,
        timeout_s: float = 300.0,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._template = list(argv_template)
        self._runner = runner or ProcessRunner()
        self._timeout_s = timeout_s
        self._cwd = cwd
        self._env = env

    async def _run(self, feature: FeatureSpec, **extra: str) -> ProcessResult | None:
        if not self._template:
            return None
        argv = render_argv(self._template, feature, **extra)
        return await self._runner.run(
            argv, timeout_s=self._timeout_s, cwd=self._cwd, env=self._env,
        )


class CommandBuildExecutor(_CommandStep):
    """Build succeeds when the command exits 0."""

    async def build(self, feature: FeatureSpec) -> None:
        await self._run(feature)
        logger.info("Build finished for '%s'", feature.slug)


class CommandFeatureTester(_CommandStep):
    """Functional test; an empty template means there is nothing to run."""

    async def test(self, feature: FeatureSpec, url: str) -> None:
        await self._run(feature, url=url)


class CommandDeployExecutor(_CommandStep):
    """Deploy and report where the feature went live.

    The URL is the last ``https://`` URL on the command's stdout, falling back to
    ``<public_base_url>/<slug>`` when the tool prints none.
    """

    def __init__(
        self,
        argv_template: Sequence[str],
        public_base_url: str,
        runner: ProcessRunner | None = None,
        timeout_s: float = 300.0,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(argv_template, runner=runner, timeout_s=timeout_s, cwd=cwd, env=env)
        self._public_base_url = public_base_url.rstrip("/")

    async def deploy(self, feature: FeatureSpec) -> str:
        result = await self._run(feature)
        url = extract_url(result.stdout) if result is not None else None
        if url is None:
            url = f"{self._public_base_url}/{feature.slug}"
        logger.info("Deployed '%s' to %s", feature.slug, url)
        return url


def extract_url(output: str) -> str | None:
    """Last https URL in ``output``, trailing punctuation stripped."""
    matches = _URL_RE.findall(output)
    if not matches:
        return None
    return matches[-1].rstrip(".,);")

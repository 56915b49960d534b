# src/cache/command_cache.py — v1
"""Cache the stdout of slow status commands (wallet balance, deploy listings, ...)."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from shipwright.cache.ttl_cache import TTLCache
from shipwright.process.runner import ProcessRunner

logger = logging.getLogger(__name__)


class CommandOutputCache:
    """Run a command at most once per TTL window and reuse its stdout.

    Failures are not cached; the next call runs the command again.

    Args:
        runner: Process runner.
        cache: Backing TTL cache.
        timeout_s: Timeout for each command run.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        cache: TTLCache[str],
        timeout_s: float = 30.0,
    ) -> None:
        self._runner = runner
        self._cache = cache
        self._timeout_s = timeout_s

    @staticmethod
    def key_for(argv: Sequence[str]) -> str:
        return "\x00".join(argv)

    async def get(self, argv: Sequence[str]) -> str:
        """Cached stdout of ``argv``. Raises ProcessError when a fresh run fails."""
        key = self.key_for(argv)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Command cache hit: %s", argv[0] if argv else "")
            return cached
        result = await self._runner.run(argv, timeout_s=self._timeout_s)
        output = result.stdout.strip()
        self._cache.set(key, output)
        return output

    def invalidate(self, argv: Sequence[str] | None = None) -> None:
        self._cache.invalidate(None if argv is None else self.key_for(argv))

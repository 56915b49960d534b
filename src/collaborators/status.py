# src/collaborators/status.py — v1
"""Cooldown side activity: report a status command's output on the bus."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from shipwright.cache.command_cache import CommandOutputCache
from shipwright.events.bus import EventBus

logger = logging.getLogger(__name__)


class StatusReport:
    """Publish the first line of a status command (wallet balance, deploy listing, ...).

    The command runs through a CommandOutputCache, so repeated cooldowns inside
    the TTL window reuse the previous output. Process errors propagate to the
    orchestrator, which logs them and carries on with the cooldown.
    """

    def __init__(
        self, argv: Sequence[str], cache: CommandOutputCache, bus: EventBus
    ) -> None:
        self._argv = list(argv)
        self._cache = cache
        self._bus = bus

    async def run(self) -> None:
        output = await self._cache.get(self._argv)
        first_line = output.splitlines()[0] if output else ""
        if not first_line:
            logger.info("Status command %s printed nothing", self._argv[0])
            return
        self._bus.publish(f"📊 {first_line}")

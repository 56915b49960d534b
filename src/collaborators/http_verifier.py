# src/collaborators/http_verifier.py — v1
"""Deployment reachability check over HTTP."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class HttpDeploymentVerifier:
    """A deployment is live when a HEAD request, after redirects, answers 2xx.

    Args:
        timeout_s: Per-request timeout.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._transport = transport

    async def verify(self, url: str) -> bool:
        async with httpx.AsyncClient(
            timeout=self._timeout_s, transport=self._transport, follow_redirects=True,
        ) as client:
            try:
                response = await client.head(url)
            except httpx.TimeoutException:
                logger.warning("Verification of %s timed out", url)
                return False
            except httpx.HTTPError as e:
                logger.warning("Verification of %s failed: %s", url, e)
                return False

        reachable = response.is_success
        if not reachable:
            logger.warning("Verification of %s returned HTTP %d", url, response.status_code)
        return reachable

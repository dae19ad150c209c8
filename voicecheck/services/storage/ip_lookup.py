"""Best-effort public IP resolution for access-log metadata."""

import logging

import httpx

from voicecheck.core.config import get_settings

logger = logging.getLogger(__name__)

UNKNOWN_IP = "Unknown IP"


class IpLookup:
    """Resolves the caller's public IP through an external JSON service.

    Never raises: every failure yields :data:`UNKNOWN_IP`.

    Args:
        url: Service returning ``{"ip": "..."}``.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (used in tests).
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._url = url or settings.ip_lookup_url
        self._timeout = timeout or settings.ip_lookup_timeout_seconds
        self._transport = transport

    async def __call__(self) -> str:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(self._url)
                resp.raise_for_status()
                ip = resp.json().get("ip")
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("IP lookup failed: %s", exc)
            return UNKNOWN_IP
        if not ip or not isinstance(ip, str):
            logger.warning("IP lookup returned no address")
            return UNKNOWN_IP
        return ip

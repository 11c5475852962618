from __future__ import annotations

import httpx

from devspace_core.logging import get_logger

logger = get_logger("probe")

_HTTP_OK = 200


def normalize_health_url(url: str) -> str:
    """Append the trailing slash the agent's router needs.

    Without it the agent answers 404 on its root path.
    """
    return url if url.endswith("/") else url + "/"


class HttpHealthProbe:
    """GET a health URL and report whether it answered 200.

    Transport errors (refused connection, DNS failure, timeouts) are
    reported as unhealthy rather than raised. When *client* is given it
    is reused for every probe and left open; otherwise each probe opens
    and closes its own client.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = normalize_health_url(url)
        self._timeout = httpx.Timeout(timeout)
        self._client = client

    async def __call__(self) -> bool:
        try:
            if self._client is not None:
                response = await self._client.get(self.url, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(self.url)
        except httpx.HTTPError as exc:
            logger.debug("Health probe %s failed: %s", self.url, exc)
            return False
        return response.status_code == _HTTP_OK

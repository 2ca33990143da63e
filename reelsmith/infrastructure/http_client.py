"""Shared httpx client.

One AsyncClient per process, injected into the image generator for
downloads and API calls.
"""

from typing import Any

import httpx

from reelsmith.core.logging import get_logger

logger = get_logger(__name__)


class HTTPClient:
    """Managed HTTP client with connection reuse.

    Create once, inject where needed, close at shutdown.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        max_connections: int = 20,
        max_keepalive_connections: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            max_connections: Maximum number of connections
            max_keepalive_connections: Maximum keepalive connections
            transport: Custom transport (``httpx.MockTransport`` in tests)
        """
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_keepalive_connections,
            ),
            follow_redirects=True,
            transport=transport,
        )
        logger.debug("HTTP client initialized", timeout=timeout, max_connections=max_connections)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.get(url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.post(url, **kwargs)

    async def close(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()
        logger.debug("HTTP client closed")


__all__ = ["HTTPClient"]

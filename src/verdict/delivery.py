"""
Callback delivery clients.

The dispatch engine only needs something with an async `send(url, body)`
that reports success or failure. HttpDeliveryClient POSTs JSON with httpx;
RecordingClient keeps deliveries in memory for tests and dry runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import httpx

from .core.config import get_settings
from .core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SendResult:
    """Result of a single delivery attempt."""

    success: bool
    status_code: int | None = None
    error: str | None = None


@runtime_checkable
class DeliveryClient(Protocol):
    """Protocol for notification delivery transports."""

    async def send(self, url: str, body: dict[str, Any]) -> SendResult:
        """
        Deliver a JSON body to a URL.

        Args:
            url: Callback URL
            body: JSON-serializable notification body

        Returns:
            SendResult describing the outcome
        """
        ...


class HttpDeliveryClient:
    """
    HTTP POST delivery over httpx.

    Any response below 400 counts as delivered. Transport errors and
    4xx/5xx responses are reported as failed SendResults. There is no retry:
    one call, one attempt.

    Usage:
        async with HttpDeliveryClient() as client:
            result = await client.send(url, {"title": "...", "message": "..."})
    """

    def __init__(
        self,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the delivery client.

        Args:
            timeout: Request timeout in seconds (default: VERDICT_DELIVERY_TIMEOUT)
            headers: Extra headers sent with every request
            client: Pre-built httpx.AsyncClient to use instead of creating one
        """
        settings = get_settings()
        self._timeout = timeout if timeout is not None else settings.delivery_timeout
        self._headers = {"User-Agent": settings.delivery_user_agent}
        if headers:
            self._headers.update(headers)
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers=self._headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpDeliveryClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def send(self, url: str, body: dict[str, Any]) -> SendResult:
        client = await self._get_client()

        try:
            response = await client.post(url, json=body)
        except httpx.RequestError as e:
            logger.warning("Delivery to %s failed: %s: %s", url, type(e).__name__, e)
            return SendResult(success=False, error=f"Request error: {e}")

        if response.status_code >= 400:
            logger.warning("Delivery to %s rejected with HTTP %d", url, response.status_code)
            return SendResult(
                success=False,
                status_code=response.status_code,
                error=f"HTTP {response.status_code}: {response.text[:200]}",
            )

        logger.debug("Delivered notification to %s (HTTP %d)", url, response.status_code)
        return SendResult(success=True, status_code=response.status_code)


@dataclass
class RecordingClient:
    """
    In-memory delivery client.

    Records every (url, body) pair and reports success, unless the URL is
    listed in `fail_urls`.
    """

    fail_urls: set[str] = field(default_factory=set)
    sent: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    async def send(self, url: str, body: dict[str, Any]) -> SendResult:
        self.sent.append((url, body))
        if url in self.fail_urls:
            return SendResult(success=False, error="Configured to fail")
        return SendResult(success=True)

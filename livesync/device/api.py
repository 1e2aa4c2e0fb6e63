"""
Device supervisor API client.

Async client for the supervisor's local API, which reports the state of
the application running on the device.

Usage:
    async with DeviceAPI("http://192.168.1.20:48484") as api:
        status = await api.get_status()
        if status.is_settled:
            ...

Error mapping:
    - timeouts and network errors: DeviceStatusError(retryable=True)
    - 5xx: DeviceStatusError(retryable=True)
    - other non-2xx or a malformed body: DeviceStatusError(retryable=False)
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from livesync.errors import DeviceStatusError

from .schemas import DeviceStatus

logger = logging.getLogger(__name__)

DEFAULT_SUPERVISOR_PORT = 48484
STATUS_ENDPOINT = "/v2/state/status"
PING_ENDPOINT = "/ping"


@runtime_checkable
class DeviceStateProvider(Protocol):
    """
    Protocol for runtime state providers.

    get_status() may raise DeviceStatusError (an OSError) on failure.
    """

    async def get_status(self) -> DeviceStatus:
        """Fetch the current device state."""
        ...


class DeviceAPI:
    """httpx-based DeviceStateProvider for the supervisor local API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            base_url: Supervisor URL, e.g. "http://192.168.1.20:48484"
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def for_address(
        cls,
        address: str,
        port: int = DEFAULT_SUPERVISOR_PORT,
        **kwargs: Any,
    ) -> DeviceAPI:
        return cls(f"http://{address}:{port}", **kwargs)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str) -> httpx.Response:
        client = await self._get_client()
        try:
            response = await client.get(path)
        except httpx.TimeoutException as e:
            raise DeviceStatusError(f"Request timeout: GET {path}: {e}") from e
        except httpx.NetworkError as e:
            raise DeviceStatusError(f"Network error: GET {path}: {e}") from e

        if not response.is_success:
            status = response.status_code
            raise DeviceStatusError(
                f"Request failed: GET {path}: {response.text[:200]}",
                status_code=status,
                retryable=status >= 500,
            )
        return response

    async def get_status(self) -> DeviceStatus:
        """Fetch the application state from the supervisor."""
        response = await self._get(STATUS_ENDPOINT)
        try:
            return DeviceStatus.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise DeviceStatusError(
                f"Malformed device status response: {e}",
                status_code=response.status_code,
                retryable=False,
            ) from e

    async def ping(self) -> bool:
        """Check whether the supervisor API is reachable."""
        try:
            await self._get(PING_ENDPOINT)
        except DeviceStatusError as e:
            logger.debug(f"Device ping failed: {e}")
            return False
        return True

    async def __aenter__(self) -> DeviceAPI:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"DeviceAPI(base_url='{self.base_url}')"

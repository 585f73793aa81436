"""Upstream client for the LLM provider API.

Issues authenticated JSON calls and turns any non-2xx answer into an
UpstreamStageError carrying the status and raw body. Holds no business
logic and never retries: each call is attempted exactly once.
"""

from typing import Any, Optional

import httpx

from shared.errors import UpstreamStageError
from shared.logging import get_logger
from shared.models import DEFAULT_BASE_URL, RelayConfig

logger = get_logger(__name__)


class UpstreamClient:
    """
    Client for the provider's REST API.

    Every call names the protocol stage it belongs to so that failures
    can be traced back to the step that produced them.

    Intended to live for a single relay request:

        async with UpstreamClient.from_config(config) as client:
            thread = await client.post("create_thread", "/threads", json={})
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        """
        Initialize the upstream client.

        Args:
            api_key: Provider API key, sent as a bearer token
            base_url: Provider API base URL
            timeout: Per-call timeout in seconds
            transport: Optional httpx transport (used to fake the provider)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(
        cls,
        config: RelayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "UpstreamClient":
        """Create a client from the relay configuration."""
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    def _get_headers(self) -> dict[str, str]:
        """Get request headers including authentication."""
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._get_headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "UpstreamClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def request(
        self,
        stage: str,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None
    ) -> dict[str, Any]:
        """
        Perform one upstream call.

        Args:
            stage: Protocol stage name, used in logs and failures
            method: HTTP method
            path: Path relative to the base URL
            json: Optional JSON body
            params: Optional query parameters
            headers: Extra headers for this call

        Returns:
            Decoded JSON body

        Raises:
            UpstreamStageError: If the provider answers with a non-2xx status
            httpx.HTTPError: On transport failures
        """
        client = await self._get_client()

        logger.debug("Upstream call", stage=stage, method=method, path=path)
        response = await client.request(
            method,
            path,
            json=json,
            params=params,
            headers=headers,
        )

        if not response.is_success:
            logger.warning(
                "Upstream stage failed",
                stage=stage,
                status_code=response.status_code,
            )
            raise UpstreamStageError(stage, response.status_code, response.text)

        return response.json()

    async def get(self, stage: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Perform a GET call."""
        return await self.request(stage, "GET", path, **kwargs)

    async def post(self, stage: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Perform a POST call."""
        return await self.request(stage, "POST", path, **kwargs)

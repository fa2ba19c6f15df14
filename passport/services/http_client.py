"""
Outbound HTTP client shared by identity, storage and data providers.
Single attempt per call with a fixed timeout; failures surface as ExternalAPIError.
"""

from typing import Any, Dict, Optional
import httpx
import logging
import time

from passport.config import settings
from passport.utils.exceptions import ExternalAPIError

logger = logging.getLogger(__name__)


class ExternalApiClient:
    """
    Thin wrapper over httpx.AsyncClient for one upstream service.

    A transport can be injected so tests can stand in a httpx.MockTransport.
    """

    def __init__(
        self,
        provider: str,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        auth: Optional[httpx.Auth] = None,
    ):
        self.provider = provider
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Accept": "application/json",
            "User-Agent": settings.external_api_user_agent,
            **(headers or {}),
        }
        self.timeout = timeout or settings.external_api_timeout
        self.transport = transport
        self.auth = auth

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self.transport,
            auth=self.auth,
        )

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Perform one request and return the raw response.

        Raises:
            ExternalAPIError: On network failure or timeout
        """
        start = time.perf_counter()
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            logger.error(f"{self.provider} request timed out: {method} {path}")
            raise ExternalAPIError(self.provider, f"Request timeout after {self.timeout}s")
        except httpx.HTTPError as e:
            logger.error(f"{self.provider} request failed: {method} {path}: {e}")
            raise ExternalAPIError(self.provider, str(e))

        elapsed = time.perf_counter() - start
        logger.debug(
            f"{self.provider} {method} {path} -> {response.status_code} in {elapsed:.3f}s",
            extra={"provider": self.provider, "status_code": response.status_code, "elapsed": elapsed}
        )
        return response

    async def get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        allow_not_found: bool = False,
    ) -> Optional[Any]:
        """
        GET a JSON document.

        Returns:
            Decoded JSON, or None for a 404 when `allow_not_found` is set

        Raises:
            ExternalAPIError: On any non-2xx status or undecodable body
        """
        response = await self.request("GET", path, params=params)

        if response.status_code == 404 and allow_not_found:
            return None

        if response.status_code >= 400:
            raise ExternalAPIError(
                self.provider, f"HTTP {response.status_code}: {response.reason_phrase}"
            )

        try:
            return response.json()
        except ValueError:
            raise ExternalAPIError(self.provider, "Invalid JSON response")

"""
postcodes.io provider: postcode lookup, free-text search and reverse geocoding.
"""

from typing import Any, Dict, List, Optional
import httpx
import logging

from passport.config import settings
from passport.schemas.postcodes import PostcodeData, PostcodeQuery
from passport.services.http_client import ExternalApiClient
from passport.services.providers.base import LookupProvider
from passport.utils.exceptions import ExternalAPIError, NotFoundError
from passport.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

LOOKUP_TTL = 24 * 60 * 60
SEARCH_TTL = 60 * 60


class PostcodesProvider(LookupProvider):
    name = "postcodes"
    ttl = LOOKUP_TTL

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.client = ExternalApiClient(
            provider="Postcodes",
            base_url=settings.postcodes_api_url,
            transport=transport,
        )

    def ttl_for(self, request: PostcodeQuery) -> int:
        return SEARCH_TTL if request.action == "search" else LOOKUP_TTL

    def cache_key(self, request: PostcodeQuery) -> str:
        if request.action == "search":
            return f"search:{request.q}:{request.limit}"
        if request.action == "reverse":
            return f"reverse:{request.lat:.4f}:{request.lng:.4f}"
        return f"postcode:{ValidationUtils.normalize_postcode(request.postcode)}"

    async def fetch(self, request: PostcodeQuery) -> Optional[Any]:
        if request.action == "search":
            return await self.search(request.q, request.limit)
        if request.action == "reverse":
            return await self.reverse(request.lat, request.lng)
        return await self.lookup(request.postcode)

    async def lookup(self, postcode: str) -> Dict:
        """
        Full record for one postcode.

        Raises:
            NotFoundError: If postcodes.io does not know the postcode
        """
        data = await self.client.get_json(f"/postcodes/{postcode}", allow_not_found=True)
        if data is None:
            raise NotFoundError("Postcode")
        if not data.get("result"):
            raise ExternalAPIError("Postcodes", "Invalid postcode data received")
        return _dump(data["result"])

    async def search(self, query: str, limit: int) -> List[Dict]:
        data = await self.client.get_json("/postcodes", params={"q": query, "limit": limit})
        results = (data or {}).get("result")
        if not isinstance(results, list):
            return []
        return [_dump(result) for result in results]

    async def reverse(self, latitude: float, longitude: float) -> Optional[Dict]:
        """Nearest postcode to a coordinate, or None when nothing is in range."""
        data = await self.client.get_json(
            "/postcodes", params={"lat": latitude, "lon": longitude}, allow_not_found=True
        )
        results = (data or {}).get("result")
        if not results:
            return None
        # Reverse geocoding returns candidates nearest first
        return _dump(results[0] if isinstance(results, list) else results)


def _dump(result: Dict[str, Any]) -> Dict:
    return PostcodeData.model_validate(result).model_dump(mode="json")

"""
Lookup pipeline shared by every third-party data endpoint.

Authentication and body validation happen before a handler runs; the pipeline
then authorizes property-scoped requests, consults the cache, fetches on a
miss, stores the payload with the provider's TTL and builds the envelope.
"""

from typing import Any, FrozenSet, Optional
import logging
import time
import uuid

from passport.models.enums import Relationship
from passport.schemas.envelope import envelope
from passport.services.access import AccessService, READ_RELATIONSHIPS
from passport.services.cache import CacheManager
from passport.services.providers.base import LookupProvider
from passport.utils.exceptions import InternalServerError

logger = logging.getLogger(__name__)


class LookupPipeline:
    """Runs a provider behind authorization and the cache."""

    def __init__(self, cache: CacheManager, access_service: Optional[AccessService] = None):
        self.cache = cache
        self.access_service = access_service

    async def run(
        self,
        provider: LookupProvider,
        request: Any,
        request_id: str,
        user_id: Optional[uuid.UUID] = None,
        property_id: Optional[uuid.UUID] = None,
        allowed: FrozenSet[Relationship] = READ_RELATIONSHIPS,
    ) -> dict:
        """
        Serve one lookup.

        Args:
            provider: Data provider to consult on a cache miss
            request: Validated request model
            request_id: Id echoed in the envelope
            user_id: Authenticated caller, required when property_id is given
            property_id: Property the lookup is scoped to, if any
            allowed: Relationships permitted to read the property

        Returns:
            Success envelope

        Raises:
            PropertyAccessDeniedError: If the caller may not access the property
            InternalServerError: If a property-scoped lookup runs without an access service
            ExternalAPIError: If the upstream provider fails
        """
        if property_id is not None:
            if self.access_service is None:
                raise InternalServerError("Property-scoped lookup requires an access service")
            await self.access_service.authorize_property_access(user_id, property_id, allowed)

        cache_key = provider.cache_key(request)
        entry = await self.cache.get_entry(cache_key)
        if entry is not None:
            logger.info(
                f"Returning cached {provider.name} data",
                extra={"request_id": request_id, "cache_key": cache_key}
            )
            return envelope(entry.value, request_id, cached=True, cache_expires_at=entry.expires_at_datetime)

        start = time.perf_counter()
        data = await provider.fetch(request)
        elapsed = time.perf_counter() - start
        logger.info(
            f"{provider.name} fetch completed in {elapsed:.3f}s",
            extra={"request_id": request_id, "provider": provider.name, "elapsed": elapsed}
        )

        if data is None:
            return envelope(None, request_id)

        stored = await self.cache.set(cache_key, data, provider.ttl_for(request))
        return envelope(data, request_id, cached=False, cache_expires_at=stored.expires_at_datetime)

"""
FastAPI dependency injection utilities for authentication, services and rate limits.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone
import uuid

from passport.config import settings
from passport.database import get_db
from passport.schemas.auth import AuthenticatedUser
from passport.schemas.envelope import RequestContext
from passport.services.access import AccessService
from passport.services.cache import CacheManager, get_cache_manager
from passport.services.identity import IdentityProvider, build_identity_provider
from passport.services.media import MediaService
from passport.services.pipeline import LookupPipeline
from passport.services.property import PropertyService
from passport.services.providers import ProviderRegistry, get_providers
from passport.services.rate_limit import RateLimiter
from passport.services.storage import StorageBackend, get_storage_backend
from passport.middleware.request_context import get_client_ip
from passport.utils.exceptions import MissingTokenError


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)

_identity_provider: Optional[IdentityProvider] = None
_hmlr_rate_limiter = RateLimiter(
    limit=settings.hmlr_rate_limit_requests,
    window=settings.rate_limit_window,
)


def get_request_context(request: Request) -> RequestContext:
    """Context attached by RequestContextMiddleware, or a fresh one outside it."""
    context = getattr(request.state, "context", None)
    if context is None:
        context = RequestContext(
            request_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            ip_address=get_client_ip(request),
        )
        request.state.context = context
    return context


def get_identity_provider() -> IdentityProvider:
    global _identity_provider
    if _identity_provider is None:
        _identity_provider = build_identity_provider()
    return _identity_provider


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    context: RequestContext = Depends(get_request_context),
) -> AuthenticatedUser:
    """
    Resolve the bearer token to the calling user.

    Args:
        credentials: HTTP Bearer credentials
        identity_provider: Configured identity provider
        context: Request context, updated with the user id

    Returns:
        Authenticated user

    Raises:
        MissingTokenError: If no bearer token was sent
        InvalidTokenError: If the token is invalid or expired
    """
    if not credentials or not credentials.credentials:
        raise MissingTokenError()

    user = await identity_provider.get_user(credentials.credentials)
    context.user_id = str(user.id)
    return user


def get_cache() -> CacheManager:
    return get_cache_manager()


async def get_access_service(db: AsyncSession = Depends(get_db)) -> AccessService:
    return AccessService(db)


async def get_lookup_pipeline(
    cache: CacheManager = Depends(get_cache),
    access_service: AccessService = Depends(get_access_service),
) -> LookupPipeline:
    """Pipeline for property-scoped lookups."""
    return LookupPipeline(cache, access_service)


def get_public_pipeline(cache: CacheManager = Depends(get_cache)) -> LookupPipeline:
    """Pipeline for lookups that are not tied to a property."""
    return LookupPipeline(cache)


def get_provider_registry() -> ProviderRegistry:
    return get_providers()


async def get_property_service(db: AsyncSession = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


def get_storage() -> StorageBackend:
    return get_storage_backend()


async def get_media_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
) -> MediaService:
    return MediaService(db, storage)


def get_hmlr_rate_limiter() -> RateLimiter:
    return _hmlr_rate_limiter


async def hmlr_rate_limit(
    context: RequestContext = Depends(get_request_context),
    limiter: RateLimiter = Depends(get_hmlr_rate_limiter),
) -> None:
    """
    Count the request against the per-IP Land Registry allowance.

    Raises:
        RateLimitExceededError: Once the client has used its hourly allowance
    """
    await limiter.check(f"hmlr:{context.ip_address}")

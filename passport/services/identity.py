"""
Identity providers that turn a bearer token into an authenticated user.

Two strategies are supported: local verification of the Supabase-signed JWT,
or asking Supabase Auth (`GET /auth/v1/user`) to resolve the token.
"""

from typing import Optional
from jose import JWTError
import httpx
import logging
import uuid

from passport.config import settings
from passport.schemas.auth import AuthenticatedUser
from passport.services.http_client import ExternalApiClient
from passport.utils.auth import verify_token
from passport.utils.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)


class IdentityProvider:
    """Resolves a bearer token to a user identity."""

    async def get_user(self, token: str) -> AuthenticatedUser:
        raise NotImplementedError


class JWTIdentityProvider(IdentityProvider):
    """Verifies tokens locally with the project's JWT secret."""

    async def get_user(self, token: str) -> AuthenticatedUser:
        try:
            payload = verify_token(token)
            user_id = uuid.UUID(payload.user_id)
        except (JWTError, ValueError) as e:
            logger.info(f"Rejected bearer token: {e}")
            raise InvalidTokenError()

        return AuthenticatedUser(id=user_id, email=payload.email, role=payload.role)


class SupabaseIdentityProvider(IdentityProvider):
    """Delegates token resolution to Supabase Auth."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.client = ExternalApiClient(
            provider="Supabase Auth",
            base_url=f"{settings.supabase_url.rstrip('/')}/auth/v1",
            headers={"apikey": settings.supabase_anon_key},
            transport=transport,
        )

    async def get_user(self, token: str) -> AuthenticatedUser:
        response = await self.client.request(
            "GET", "/user", headers={"Authorization": f"Bearer {token}"}
        )

        if response.status_code in (401, 403):
            raise InvalidTokenError()
        if response.status_code >= 400:
            logger.error(f"Supabase Auth returned {response.status_code} resolving token")
            raise InvalidTokenError()

        data = response.json()
        try:
            user_id = uuid.UUID(data["id"])
        except (KeyError, TypeError, ValueError):
            raise InvalidTokenError()

        return AuthenticatedUser(id=user_id, email=data.get("email"), role=data.get("role"))


def build_identity_provider() -> IdentityProvider:
    """Identity provider selected by IDENTITY_PROVIDER."""
    if settings.identity_provider == "supabase":
        return SupabaseIdentityProvider()
    return JWTIdentityProvider()

"""
JWT utilities for Supabase-issued access tokens.
Supabase signs user tokens with the project's JWT secret (HS256, audience "authenticated").
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passport.config import settings
import uuid


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: str, email: Optional[str], role: Optional[str], exp: datetime):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from dictionary."""
        return cls(
            user_id=data["sub"],
            email=data.get("email"),
            role=data.get("role"),
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def create_access_token(
    user_id: uuid.UUID,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    secret: Optional[str] = None
) -> str:
    """
    Create a token shaped like a Supabase user access token.
    Used for local development and tests against the "jwt" identity provider.

    Args:
        user_id: Auth user UUID
        email: User's email address
        expires_delta: Optional custom expiration time
        secret: Signing secret, defaults to the configured project secret

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=1))

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "role": "authenticated",
        "aud": settings.jwt_audience,
        "exp": expire,
        "iat": now,
    }

    return jwt.encode(
        to_encode,
        secret or settings.supabase_jwt_secret,
        algorithm=settings.jwt_algorithm
    )


def verify_token(token: str) -> TokenPayload:
    """
    Verify and decode a Supabase access token.

    Args:
        token: JWT token string

    Returns:
        Decoded TokenPayload

    Raises:
        JWTError: If token is invalid, expired or missing a subject
    """
    payload = jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience
    )

    if not payload.get("sub") or not payload.get("exp"):
        raise JWTError("Invalid token payload")

    return TokenPayload.from_dict(payload)

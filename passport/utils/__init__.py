"""
Utility modules for the Property Passport API.
"""

from .auth import (
    create_access_token,
    verify_token,
    TokenPayload
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    BadRequestError,
    MethodNotAllowedError,
    InternalServerError,
    MissingTokenError,
    InvalidTokenError,
    PropertyNotFoundError,
    PropertyAccessDeniedError,
    RelationshipConflictError,
    RateLimitExceededError,
    ExternalAPIError,
    StorageError
)

from .validators import ValidationUtils

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "create_access_token",
    "verify_token",
    "TokenPayload",

    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "BadRequestError",
    "MethodNotAllowedError",
    "InternalServerError",
    "MissingTokenError",
    "InvalidTokenError",
    "PropertyNotFoundError",
    "PropertyAccessDeniedError",
    "RelationshipConflictError",
    "RateLimitExceededError",
    "ExternalAPIError",
    "StorageError",

    # Validation
    "ValidationUtils",
]

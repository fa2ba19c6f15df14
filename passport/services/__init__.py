"""
Service layer for business logic implementation.
Contains the lookup pipeline, cache, access control, property and media services.
"""

from .access import AccessService
from .cache import CacheManager
from .error_handler import ErrorHandlerService
from .media import MediaService
from .pipeline import LookupPipeline
from .property import PropertyService
from .rate_limit import RateLimiter

__all__ = [
    "AccessService",
    "CacheManager",
    "ErrorHandlerService",
    "MediaService",
    "LookupPipeline",
    "PropertyService",
    "RateLimiter",
]

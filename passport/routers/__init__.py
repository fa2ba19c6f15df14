"""
API route handlers for the Property Passport API.
Every router except local object downloads is mounted under the functions prefix.
"""

from .lookups import router as lookups_router
from .postcodes import router as postcodes_router
from .properties import router as properties_router
from .media import router as media_router
from .storage import router as storage_router

__all__ = ["lookups_router", "postcodes_router", "properties_router", "media_router", "storage_router"]

"""
Repository layer for data access operations.
Wraps the Supabase tables behind async query helpers.
"""

from passport.repositories.base import BaseRepository
from passport.repositories.property import PropertyRepository
from passport.repositories.party import PartyRepository
from passport.repositories.media import DocumentRepository, PhotoRepository, MediaRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "PartyRepository",
    "DocumentRepository",
    "PhotoRepository",
    "MediaRepository",
]

"""
Database models for the Property Passport API.
Mirrors the Supabase schema: profiles, properties, files and property parties.
"""

from passport.models.enums import (
    UserRole,
    PropertyType,
    PropertyStyle,
    TenureType,
    DocumentType,
    MediaType,
    Relationship,
)
from passport.models.profile import Profile
from passport.models.property import Property
from passport.models.party import PropertyParty, Tenancy
from passport.models.media import Document, PropertyPhoto, Media

# Export all models for easy importing
__all__ = [
    "UserRole",
    "PropertyType",
    "PropertyStyle",
    "TenureType",
    "DocumentType",
    "MediaType",
    "Relationship",
    "Profile",
    "Property",
    "PropertyParty",
    "Tenancy",
    "Document",
    "PropertyPhoto",
    "Media",
]

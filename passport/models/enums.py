"""
Enumerations mirrored from the Postgres enum types.
"""

from sqlalchemy import Enum as SQLEnum
import enum


class UserRole(str, enum.Enum):
    """Profile role chosen at sign-up."""
    OWNER = "owner"
    BUYER = "buyer"
    OTHER = "other"


class PropertyType(str, enum.Enum):
    DETACHED = "detached"
    SEMI_DETACHED = "semi_detached"
    TERRACED = "terraced"
    FLAT = "flat"
    BUNGALOW = "bungalow"
    COTTAGE = "cottage"
    OTHER = "other"


class PropertyStyle(str, enum.Enum):
    VICTORIAN = "victorian"
    EDWARDIAN = "edwardian"
    GEORGIAN = "georgian"
    MODERN = "modern"
    NEW_BUILD = "new_build"
    PERIOD = "period"
    CONTEMPORARY = "contemporary"
    OTHER = "other"


class TenureType(str, enum.Enum):
    FREEHOLD = "freehold"
    LEASEHOLD = "leasehold"
    SHARED_OWNERSHIP = "shared_ownership"


class DocumentType(str, enum.Enum):
    EPC = "epc"
    FLOORPLAN = "floorplan"
    TITLE_DEED = "title_deed"
    SURVEY = "survey"
    PLANNING = "planning"
    LEASE = "lease"
    GUARANTEE = "guarantee"
    BUILDING_CONTROL = "building_control"
    GAS_SAFETY = "gas_safety"
    ELECTRICAL_SAFETY = "electrical_safety"
    OTHER = "other"


class MediaType(str, enum.Enum):
    PHOTO = "photo"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"


class Relationship(str, enum.Enum):
    """How a user is associated with a property."""
    OWNER = "owner"
    OCCUPIER = "occupier"
    INTERESTED = "interested"


def pg_enum(enum_cls: type, name: str) -> SQLEnum:
    """Column type storing the enum's lowercase values, as Postgres does."""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )

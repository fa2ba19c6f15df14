"""
Property-centric schemas: dashboard cards, watchlist, snapshot and media.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import uuid

from passport.models.enums import (
    DocumentType, PropertyStyle, PropertyType, Relationship, TenureType
)


class PropertyIdRequest(BaseModel):
    """Body carrying only a property id (watchlist add/remove)."""

    property_id: uuid.UUID = Field(..., description="Property to act on")


class MyPropertiesQuery(BaseModel):
    """Query parameters for the caller's property dashboard."""

    relationship: Optional[Relationship] = Field(None, description="Only include this relationship")
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)


class SnapshotRequest(BaseModel):
    property_id: uuid.UUID
    include_documents: bool = True
    include_photos: bool = True


class PropertySummary(BaseModel):
    """Property fields exposed on cards and snapshots."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    ppuk_reference: str
    address_line_1: str
    address_line_2: Optional[str] = None
    city: str
    postcode: str
    uprn: Optional[str] = None
    title_number: Optional[str] = None
    property_type: PropertyType
    property_style: Optional[PropertyStyle] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    total_floor_area_sqm: Optional[Decimal] = None
    year_built: Optional[int] = None
    tenure: TenureType
    epc_rating: Optional[str] = None
    flood_risk_level: Optional[str] = None
    council_tax_band: Optional[str] = None
    front_photo_url: Optional[str] = None
    claimed_by: Optional[uuid.UUID] = None
    completion_percentage: int = 0
    is_public: bool = True
    created_at: datetime
    updated_at: datetime


class PropertyCardStats(BaseModel):
    document_count: int = 0
    note_count: int = 0
    task_count: int = 0
    photo_count: int = 0
    planning_count: int = 0


class PropertyCard(PropertySummary):
    """A property as listed on the caller's dashboard."""

    relationship: Relationship
    stats: PropertyCardStats


class Pagination(BaseModel):
    limit: int
    offset: int
    has_more: bool


class MyPropertiesPayload(BaseModel):
    properties: List[PropertyCard]
    total: int
    relationship: Optional[Relationship] = None
    pagination: Pagination


class WatchlistResult(BaseModel):
    ok: bool = True
    relationship: Optional[Relationship] = None
    property_id: uuid.UUID
    message: str


class PartySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    relationship: Relationship
    assigned_at: datetime


class DocumentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    document_type: DocumentType
    file_name: str
    file_size_bytes: Optional[int] = None
    mime_type: Optional[str] = None
    description: Optional[str] = None
    is_public: bool
    uploaded_by: uuid.UUID
    created_at: datetime


class PhotoSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    property_id: uuid.UUID
    file_url: str
    file_name: str
    caption: Optional[str] = None
    room_type: Optional[str] = None
    is_featured: bool = False
    uploaded_by: uuid.UUID
    created_at: datetime


class SnapshotStats(BaseModel):
    document_count: int
    photo_count: int
    party_count: int
    last_document_upload: Optional[datetime] = None
    last_activity: datetime


class SnapshotPayload(BaseModel):
    property: PropertySummary
    relationship: Relationship
    parties: List[PartySummary]
    stats: SnapshotStats
    recent_documents: List[DocumentSummary] = Field(default_factory=list, serialization_alias="recentDocuments")
    photos: List[PhotoSummary] = Field(default_factory=list)


class SignedUrlPayload(BaseModel):
    document_id: uuid.UUID
    signed_url: str
    expires_in: int

"""
File metadata models: documents, photos and generic media.
Rows point at objects in the storage buckets; the bytes never live in Postgres.
"""

from sqlalchemy import String, Text, Integer, Boolean, ForeignKey, Uuid, JSON
from sqlalchemy.orm import Mapped, mapped_column
from passport.database import Base, TimestampMixin
from passport.models.enums import DocumentType, MediaType, pg_enum
import uuid
from typing import Any, Dict, Optional


class Document(TimestampMixin, Base):
    """A private document stored in the property-documents bucket."""

    __tablename__ = "documents"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    document_type: Mapped[DocumentType] = mapped_column(pg_enum(DocumentType, "document_type"), nullable=False)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Object path inside the private bucket"
    )
    file_size_bytes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    uploaded_by: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    document_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)


class PropertyPhoto(Base):
    """A photo in the public property-photos bucket."""

    __tablename__ = "property_photos"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    file_url: Mapped[str] = mapped_column(Text, nullable=False, comment="Public object URL")
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    room_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    uploaded_by: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)


class Media(TimestampMixin, Base):
    """Generic media row used by the gallery for photos, video and audio."""

    __tablename__ = "media"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    type: Mapped[MediaType] = mapped_column(pg_enum(MediaType, "media_type"), nullable=False, index=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    room_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    media_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)
    uploaded_by: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)

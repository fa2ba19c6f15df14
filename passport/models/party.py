"""
Property party and tenancy models.
A party row tags a user as owner, occupier or interested in a property.
"""

from sqlalchemy import ForeignKey, Uuid, UniqueConstraint, Date, String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column
from passport.database import Base, TimestampMixin
from passport.models.enums import Relationship, pg_enum
from datetime import date, datetime
import uuid
from typing import Optional


class PropertyParty(Base):
    """User-to-property association, unique per (user, property, relationship)."""

    __tablename__ = "property_parties"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
        comment="Auth user id of the party"
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    relationship: Mapped[Relationship] = mapped_column(
        pg_enum(Relationship, "relationship"),
        nullable=False,
        default=Relationship.INTERESTED
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "property_id", "relationship",
            name="property_parties_user_property_relationship_unique"
        ),
    )

    def __repr__(self) -> str:
        return f"<PropertyParty(user_id={self.user_id}, property_id={self.property_id}, relationship={self.relationship})>"


class Tenancy(TimestampMixin, Base):
    """A landlord/tenant agreement over a property."""

    __tablename__ = "tenancies"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    landlord_user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    tenant_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True, index=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

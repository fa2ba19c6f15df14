"""
Property model: the record a passport is built around.
Holds address, classification, energy/flood/council-tax facts and the claiming owner.
"""

from sqlalchemy import String, Text, Integer, Numeric, Boolean, Date, ForeignKey, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column
from passport.database import Base, TimestampMixin
from passport.models.enums import PropertyType, PropertyStyle, TenureType, pg_enum
from datetime import date
from decimal import Decimal
import uuid
from typing import Optional


class Property(TimestampMixin, Base):
    """
    A UK property record.
    `claimed_by` is the owning profile once the property has been claimed.
    """

    __tablename__ = "properties"

    ppuk_reference: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        comment="Public Property Passport reference, e.g. PPUK-EX1-000123"
    )

    # Address
    address_line_1: Mapped[str] = mapped_column(Text, nullable=False)
    address_line_2: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    city: Mapped[str] = mapped_column(Text, nullable=False)
    postcode: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    uprn: Mapped[Optional[str]] = mapped_column(
        String(12),
        nullable=True,
        index=True,
        comment="Unique Property Reference Number"
    )
    title_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Classification
    property_type: Mapped[PropertyType] = mapped_column(pg_enum(PropertyType, "property_type"), nullable=False)
    property_style: Mapped[Optional[PropertyStyle]] = mapped_column(
        pg_enum(PropertyStyle, "property_style"),
        nullable=True
    )
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_floor_area_sqm: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Tenure
    tenure: Mapped[TenureType] = mapped_column(
        pg_enum(TenureType, "tenure_type"),
        nullable=False,
        default=TenureType.FREEHOLD
    )
    lease_years_remaining: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    ground_rent_annual: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    service_charge_annual: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    # Energy, flood and council tax
    epc_rating: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)
    epc_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    epc_expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    flood_risk_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    council_tax_band: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)

    front_photo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Ownership and passport progress
    claimed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id"),
        nullable=True,
        index=True,
        comment="Profile that claimed the property"
    )
    completion_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("idx_properties_updated_at", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, ppuk_reference={self.ppuk_reference}, postcode={self.postcode})>"

    @property
    def display_address(self) -> str:
        """Single-line address as shown on cards."""
        parts = [self.address_line_1, self.address_line_2, self.city, self.postcode]
        return ", ".join(part for part in parts if part)

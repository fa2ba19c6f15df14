"""
Request and payload schemas for the third-party lookup endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
import uuid

from passport.utils.validators import ValidationUtils


class CamelModel(BaseModel):
    """Payload model serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Requests

class PropertyLookupRequest(BaseModel):
    """Body shared by the installer and council-tax directory lookups."""

    property_id: uuid.UUID = Field(..., description="Property the lookup is for")
    postcode: Optional[str] = Field(None, max_length=10, examples=["EX1 1AB"])
    uprn: Optional[str] = Field(None, max_length=12, examples=["100040212345"])
    address: Optional[str] = Field(None, max_length=500)

    @field_validator("postcode", "address", mode="before")
    @classmethod
    def sanitize_text(cls, v):
        return ValidationUtils.sanitize_string(v) if isinstance(v, str) else v

    @field_validator("uprn")
    @classmethod
    def validate_uprn(cls, v):
        return ValidationUtils.validate_uprn(v) if v else None

    @property
    def identifier(self) -> str:
        """Most specific identifying field: uprn, then postcode, then address, then property id."""
        return self.uprn or self.postcode or self.address or str(self.property_id)


class PoliceRequest(BaseModel):
    property_id: uuid.UUID
    postcode: Optional[str] = Field(None, max_length=10)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    date: Optional[str] = Field(None, description="Reporting month, YYYY-MM", examples=["2024-01"])
    months: int = Field(6, ge=1, le=12)

    @field_validator("postcode", mode="before")
    @classmethod
    def sanitize_postcode(cls, v):
        return ValidationUtils.sanitize_string(v) if isinstance(v, str) else v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return ValidationUtils.validate_period(v) if v else None

    @model_validator(mode="after")
    def validate_coordinates_pair(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self

    @property
    def identifier(self) -> str:
        if self.postcode:
            return self.postcode
        if self.latitude is not None and self.longitude is not None:
            return f"{self.latitude},{self.longitude}"
        return str(self.property_id)


class CompaniesRequest(BaseModel):
    property_id: uuid.UUID
    company_number: Optional[str] = Field(None, min_length=8, max_length=8)
    company_name: Optional[str] = Field(None, max_length=160)
    postcode: Optional[str] = Field(None, max_length=10)
    limit: int = Field(10, ge=1, le=50)

    @field_validator("company_name", "postcode", mode="before")
    @classmethod
    def sanitize_text(cls, v):
        return ValidationUtils.sanitize_string(v) if isinstance(v, str) else v

    @property
    def identifier(self) -> str:
        return self.company_number or self.company_name or self.postcode or str(self.property_id)


class HMLRRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    postcode: str = Field(..., min_length=1, max_length=10)
    address: Optional[str] = Field(None, max_length=500)
    title_number: Optional[str] = Field(None, alias="titleNumber", max_length=20)

    @field_validator("postcode")
    @classmethod
    def validate_postcode(cls, v):
        return ValidationUtils.validate_uk_postcode(v)

    @field_validator("address", mode="before")
    @classmethod
    def sanitize_address(cls, v):
        return ValidationUtils.sanitize_string(v) if isinstance(v, str) else v


class EPCRequest(BaseModel):
    property_id: Optional[uuid.UUID] = Field(None, description="Property to authorize against, when the lookup is for one")
    postcode: str = Field(..., min_length=1, max_length=10, examples=["EX1 1AB"])
    address: Optional[str] = Field(None, max_length=500)
    uprn: Optional[str] = Field(None, max_length=12)
    rrn: Optional[str] = Field(None, max_length=30, description="EPC report reference number")

    @field_validator("postcode")
    @classmethod
    def validate_postcode(cls, v):
        return ValidationUtils.validate_uk_postcode(v)

    @field_validator("address", "rrn", mode="before")
    @classmethod
    def sanitize_text(cls, v):
        return ValidationUtils.sanitize_string(v) if isinstance(v, str) else v

    @field_validator("uprn")
    @classmethod
    def validate_uprn(cls, v):
        return ValidationUtils.validate_uprn(v) if v else None


class FloodRequest(BaseModel):
    property_id: Optional[uuid.UUID] = Field(None, description="Property to authorize against, when the lookup is for one")
    postcode: str = Field(..., min_length=1, max_length=10, examples=["EX1 1AB"])
    address: Optional[str] = Field(None, max_length=500)
    uprn: Optional[str] = Field(None, max_length=12)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator("postcode")
    @classmethod
    def validate_postcode(cls, v):
        return ValidationUtils.validate_uk_postcode(v)

    @field_validator("address", mode="before")
    @classmethod
    def sanitize_address(cls, v):
        return ValidationUtils.sanitize_string(v) if isinstance(v, str) else v

    @field_validator("uprn")
    @classmethod
    def validate_uprn(cls, v):
        return ValidationUtils.validate_uprn(v) if v else None

    @model_validator(mode="after")
    def validate_coordinates_pair(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


# Payloads

class ExternalLink(BaseModel):
    label: str
    url: str
    notes: str
    parameters: Dict[str, str] = Field(default_factory=dict)


class ExternalLinksPayload(CamelModel):
    kind: Literal["links"] = "links"
    title: str
    description: str
    items: List[ExternalLink]
    last_updated: datetime


class CrimeCategory(BaseModel):
    category: str
    count: int
    percentage: float


class CrimeComparison(CamelModel):
    national_average: float
    local_authority_average: float
    percentile: int


class CrimeStats(CamelModel):
    area: str
    period: str
    total_crimes: int
    crimes_by_category: List[CrimeCategory]
    crime_rate: float
    comparison: CrimeComparison


class CompanyAddress(CamelModel):
    address_line1: str
    address_line2: Optional[str] = None
    locality: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class DateOfBirth(BaseModel):
    month: int
    year: int


class CompanyOfficer(CamelModel):
    name: str
    officer_role: str
    appointed_on: Optional[str] = None
    resigned_on: Optional[str] = None
    nationality: Optional[str] = None
    occupation: Optional[str] = None
    date_of_birth: Optional[DateOfBirth] = None
    country_of_residence: Optional[str] = None


class CompanyFiling(CamelModel):
    filing_id: str
    filing_type: str
    filing_date: str
    description: str
    category: Optional[str] = None
    subcategory: Optional[str] = None
    pages: Optional[int] = None


class Company(CamelModel):
    company_number: str
    company_name: str
    status: str
    type: str
    date_of_creation: Optional[str] = None
    registered_office_address: CompanyAddress
    sic_codes: List[str] = Field(default_factory=list)
    officers: List[CompanyOfficer] = Field(default_factory=list)
    filing_history: List[CompanyFiling] = Field(default_factory=list)


class CompaniesPayload(CamelModel):
    companies: List[Company]
    total: int
    last_updated: datetime


class HMLRTransaction(CamelModel):
    price: float
    date: str
    category: Optional[str] = None
    new_build: bool = False
    estate_type: Optional[str] = None
    ppd_category_type: Optional[str] = None
    record_status: Optional[str] = None


class HMLRCharge(CamelModel):
    charge_number: Optional[str] = None
    charge_type: Optional[str] = None
    charge_description: Optional[str] = None
    charge_date: Optional[str] = None
    charge_amount: Optional[float] = None
    charge_holder: Optional[str] = None


class HMLRRestriction(CamelModel):
    restriction_type: Optional[str] = None
    restriction_description: Optional[str] = None
    restriction_date: Optional[str] = None
    restriction_holder: Optional[str] = None


class HMLRData(CamelModel):
    title_number: str
    address: str
    postcode: str
    tenure: Literal["Freehold", "Leasehold", "Commonhold"] = "Freehold"
    price_paid: Optional[float] = None
    price_paid_date: Optional[str] = None
    property_type: str = ""
    new_build: bool = False
    estate_type: str = ""
    saon: Optional[str] = None
    paon: Optional[str] = None
    street: Optional[str] = None
    locality: Optional[str] = None
    town: Optional[str] = None
    district: Optional[str] = None
    county: Optional[str] = None
    ppd_category_type: str = ""
    record_status: str = ""
    transactions: Optional[List[HMLRTransaction]] = None
    charges: Optional[List[HMLRCharge]] = None
    restrictions: Optional[List[HMLRRestriction]] = None


EPCRating = Literal["A", "B", "C", "D", "E", "F", "G"]


class EPCCertificate(CamelModel):
    certificate_number: str = ""
    address: str = ""
    postcode: str
    property_type: str = ""
    built_form: str = ""
    total_floor_area: float = 0
    current_rating: EPCRating = "G"
    current_efficiency: int = 0
    environmental_impact_rating: EPCRating = "G"
    environmental_impact_efficiency: int = 0
    main_fuel_type: str = ""
    main_heating_description: str = ""
    hot_water_description: str = ""
    lighting_description: str = ""
    windows_description: str = ""
    walls_description: str = ""
    roof_description: str = ""
    floor_description: str = ""
    co2_emissions_current: float = 0
    co2_emissions_potential: float = 0
    total_cost_current: float = 0
    total_cost_potential: float = 0
    inspection_date: str = ""
    local_authority: str = ""
    constituency: str = ""
    county: str = ""
    tenure: str = ""
    uprn: str = ""
    # Record timestamps keep their column names
    created_at: datetime = Field(..., alias="created_at")
    expires_at: datetime = Field(..., alias="expires_at")


FloodLevel = Literal["Very Low", "Low", "Medium", "High", "Very High"]


class FloodRiskLevel(BaseModel):
    level: FloodLevel
    score: int = Field(..., ge=1, le=10)
    description: str
    probability: str
    impact: str
    mitigation: List[str] = Field(default_factory=list)


class FloodRiskSources(CamelModel):
    surface_water: FloodRiskLevel
    rivers_and_sea: FloodRiskLevel
    groundwater: FloodRiskLevel
    reservoirs: FloodRiskLevel


class FloodRiskReport(CamelModel):
    address: str = ""
    postcode: str
    uprn: Optional[str] = None
    flood_risk: FloodRiskSources
    risk_level: FloodLevel
    risk_score: int
    last_updated: datetime
    data_source: str = "Environment Agency"
    warnings: List[Dict[str, Any]] = Field(default_factory=list)
    historical_floods: List[Dict[str, Any]] = Field(default_factory=list)

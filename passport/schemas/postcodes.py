"""
Postcode lookup schemas (postcodes.io).
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Literal, Optional, Union

from passport.utils.validators import ValidationUtils


class PostcodeQuery(BaseModel):
    """
    Postcode request, from the query string (GET) or JSON body (POST).

    `action` selects lookup (default), free-text search or reverse geocoding.
    """

    action: Literal["lookup", "search", "reverse"] = "lookup"
    postcode: Optional[str] = Field(None, max_length=10)
    validate_format: bool = Field(True, alias="validate")
    q: Optional[str] = Field(None, max_length=100)
    limit: int = Field(10, ge=1, le=100)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("postcode", "q", mode="before")
    @classmethod
    def sanitize_text(cls, v):
        return ValidationUtils.sanitize_string(v) if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_action_fields(self):
        if self.action == "lookup":
            if not self.postcode:
                raise ValueError("Postcode is required")
            if self.validate_format and not ValidationUtils.is_valid_uk_postcode(self.postcode):
                raise ValueError("Invalid postcode format")
        elif self.action == "search" and not self.q:
            raise ValueError("Search query is required")
        elif self.action == "reverse" and (self.lat is None or self.lng is None):
            raise ValueError("Latitude and longitude are required")
        return self


class PostcodesIOModel(BaseModel):
    """Base for postcodes.io results; null fields fall back to defaults."""

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data):
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class NutsCode(PostcodesIOModel):
    code: str = ""
    name: str = ""


class PostcodeCodes(PostcodesIOModel):
    admin_district: str = ""
    admin_county: Optional[str] = None
    admin_ward: str = ""
    parish: str = ""
    parliamentary_constituency: str = ""
    ccg: str = ""
    ccg_id: str = ""
    ced: Optional[str] = None
    nuts: Union[NutsCode, str] = Field(default_factory=NutsCode)


class PostcodeData(PostcodesIOModel):
    """A postcodes.io result, with absent fields defaulted."""

    postcode: str = ""
    quality: int = 0
    eastings: int = 0
    northings: int = 0
    country: str = ""
    nhs_ha: str = ""
    longitude: float = 0
    latitude: float = 0
    parliamentary_constituency: str = ""
    european_electoral_region: str = ""
    primary_care_trust: str = ""
    region: str = ""
    lsoa: str = ""
    msoa: str = ""
    incode: str = ""
    outcode: str = ""
    admin_district: str = ""
    parish: str = ""
    admin_county: Optional[str] = None
    admin_ward: str = ""
    ced: Optional[str] = None
    ccg: str = ""
    nuts: str = ""
    codes: PostcodeCodes = Field(default_factory=PostcodeCodes)

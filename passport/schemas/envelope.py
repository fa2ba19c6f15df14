"""
Response envelope and request context schemas shared by every endpoint.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Generic, List, Optional, TypeVar
from datetime import datetime

DataT = TypeVar("DataT")


class RequestContext(BaseModel):
    """Per-request metadata built before any handler logic runs."""

    request_id: str
    timestamp: datetime
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    user_id: Optional[str] = None
    property_id: Optional[str] = None


class SuccessEnvelope(BaseModel, Generic[DataT]):
    """Schema for successful responses."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: DataT
    request_id: str = Field(..., alias="requestId")
    cached: bool = False
    cache_expires_at: Optional[datetime] = Field(None, alias="cacheExpiresAt")


class ErrorDetail(BaseModel):
    """Schema for individual field errors."""

    field: Optional[str] = Field(None, description="Field that caused the error", examples=["property_id"])
    message: str = Field(..., description="Human-readable error message", examples=["Input should be a valid UUID"])
    type: Optional[str] = Field(None, description="Error type identifier", examples=["uuid_parsing"])


class ErrorEnvelope(BaseModel):
    """Schema for error responses."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: str
    code: str
    request_id: str = Field(..., alias="requestId")
    timestamp: str
    details: Optional[List[ErrorDetail]] = None


def envelope(
    data: Any,
    request_id: str,
    cached: bool = False,
    cache_expires_at: Optional[datetime] = None
) -> dict:
    """Build the wire form of a success response."""
    return SuccessEnvelope[Any](
        data=data,
        requestId=request_id,
        cached=cached,
        cacheExpiresAt=cache_expires_at,
    ).model_dump(mode="json", by_alias=True)

"""
Pydantic schemas for request/response validation.
"""

# Envelope schemas
from .envelope import (
    RequestContext,
    SuccessEnvelope,
    ErrorDetail,
    ErrorEnvelope,
    envelope
)

from .auth import AuthenticatedUser

# Lookup schemas
from .lookups import (
    PropertyLookupRequest,
    PoliceRequest,
    CompaniesRequest,
    HMLRRequest,
    EPCRequest,
    FloodRequest,
    ExternalLinksPayload,
    CrimeStats,
    CompaniesPayload,
    HMLRData,
    EPCCertificate,
    FloodRiskReport
)

from .postcodes import PostcodeQuery, PostcodeData

# Property schemas
from .property import (
    PropertyIdRequest,
    MyPropertiesQuery,
    SnapshotRequest,
    PropertySummary,
    PropertyCard,
    MyPropertiesPayload,
    WatchlistResult,
    SnapshotPayload,
    DocumentSummary,
    PhotoSummary,
    SignedUrlPayload
)

__all__ = [
    # Envelope
    "RequestContext",
    "SuccessEnvelope",
    "ErrorDetail",
    "ErrorEnvelope",
    "envelope",
    "AuthenticatedUser",

    # Lookups
    "PropertyLookupRequest",
    "PoliceRequest",
    "CompaniesRequest",
    "HMLRRequest",
    "EPCRequest",
    "FloodRequest",
    "ExternalLinksPayload",
    "CrimeStats",
    "CompaniesPayload",
    "HMLRData",
    "EPCCertificate",
    "FloodRiskReport",
    "PostcodeQuery",
    "PostcodeData",

    # Property
    "PropertyIdRequest",
    "MyPropertiesQuery",
    "SnapshotRequest",
    "PropertySummary",
    "PropertyCard",
    "MyPropertiesPayload",
    "WatchlistResult",
    "SnapshotPayload",
    "DocumentSummary",
    "PhotoSummary",
    "SignedUrlPayload",
]

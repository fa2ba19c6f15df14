"""
Property dashboard, watchlist and passport snapshot endpoints.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from passport.models.enums import Relationship
from passport.schemas.auth import AuthenticatedUser
from passport.schemas.envelope import RequestContext, envelope
from passport.schemas.property import MyPropertiesQuery, PropertyIdRequest, SnapshotRequest
from passport.services.error_handler import ERROR_RESPONSES
from passport.services.property import PropertyService
from passport.utils.dependencies import get_current_user, get_property_service, get_request_context


router = APIRouter(tags=["Properties"])


@router.get(
    "/my_properties",
    summary="List the caller's properties",
    description="Properties the caller owns, occupies or watches, most recently updated first.",
    responses={code: ERROR_RESPONSES[code] for code in (400, 401)}
)
async def my_properties(
    relationship: Optional[Relationship] = Query(None, description="Only include this relationship"),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of properties to return"),
    offset: int = Query(0, ge=0, description="Number of properties to skip"),
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    property_service: PropertyService = Depends(get_property_service)
) -> dict:
    """
    Property cards for the authenticated user.

    Returns:
        Envelope with properties, total, relationship filter and pagination
    """
    query = MyPropertiesQuery(relationship=relationship, limit=limit, offset=offset)
    payload = await property_service.list_user_properties(user.id, query)
    return envelope(payload.model_dump(mode="json"), context.request_id)


@router.post(
    "/watchlist_add",
    summary="Add a property to the watchlist",
    responses={code: ERROR_RESPONSES[code] for code in (400, 401, 404)}
)
async def watchlist_add(
    body: PropertyIdRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    property_service: PropertyService = Depends(get_property_service)
) -> dict:
    """
    Record the caller as interested in a property.

    Raises:
        PropertyNotFoundError: If the property does not exist
        RelationshipConflictError: If the caller already owns or occupies it
    """
    context.property_id = str(body.property_id)
    result = await property_service.add_to_watchlist(user.id, body.property_id)
    return envelope(result.model_dump(mode="json"), context.request_id)


@router.post(
    "/watchlist_remove",
    summary="Remove a property from the watchlist",
    responses={code: ERROR_RESPONSES[code] for code in (400, 401)}
)
async def watchlist_remove(
    body: PropertyIdRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    property_service: PropertyService = Depends(get_property_service)
) -> dict:
    context.property_id = str(body.property_id)
    result = await property_service.remove_from_watchlist(user.id, body.property_id)
    return envelope(result.model_dump(mode="json", exclude={"relationship"}), context.request_id)


@router.post(
    "/property_snapshot",
    summary="Property passport snapshot",
    description="Property, parties, recent documents and photos visible to the caller.",
    responses={code: ERROR_RESPONSES[code] for code in (400, 401, 403)}
)
async def property_snapshot(
    body: SnapshotRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    property_service: PropertyService = Depends(get_property_service)
) -> dict:
    context.property_id = str(body.property_id)
    snapshot = await property_service.get_snapshot(user.id, body)
    return envelope(snapshot.model_dump(mode="json", by_alias=True), context.request_id)

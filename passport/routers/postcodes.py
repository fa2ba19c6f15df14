"""
Postcode lookup, search and reverse geocoding backed by postcodes.io.
"""

from fastapi import APIRouter, Depends, Request

from passport.schemas.auth import AuthenticatedUser
from passport.schemas.envelope import RequestContext
from passport.schemas.postcodes import PostcodeQuery
from passport.services.error_handler import ERROR_RESPONSES
from passport.services.pipeline import LookupPipeline
from passport.services.providers import ProviderRegistry
from passport.utils.dependencies import (
    get_current_user,
    get_provider_registry,
    get_public_pipeline,
    get_request_context,
)


router = APIRouter(prefix="/postcodes", tags=["Postcodes"])

POSTCODE_RESPONSES = {code: ERROR_RESPONSES[code] for code in (400, 401, 404, 502)}


@router.get(
    "",
    summary="Look up, search or reverse-geocode postcodes",
    description=(
        "`?postcode=EX1 1AB` looks up one postcode, `?action=search&q=EX1` searches, "
        "`?action=reverse&lat=50.72&lng=-3.53` finds the nearest postcode."
    ),
    responses=POSTCODE_RESPONSES
)
async def get_postcode(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    pipeline: LookupPipeline = Depends(get_public_pipeline),
    providers: ProviderRegistry = Depends(get_provider_registry)
) -> dict:
    # Validated here rather than as a dependency so a missing token is reported first
    query = PostcodeQuery.model_validate(dict(request.query_params))
    return await pipeline.run(providers.postcodes, query, context.request_id)


@router.post(
    "",
    summary="Look up a postcode",
    responses=POSTCODE_RESPONSES
)
async def post_postcode(
    body: PostcodeQuery,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    pipeline: LookupPipeline = Depends(get_public_pipeline),
    providers: ProviderRegistry = Depends(get_provider_registry)
) -> dict:
    return await pipeline.run(providers.postcodes, body, context.request_id)

"""
Third-party lookup endpoints.
Each runs through the shared lookup pipeline: authorize, cache, fetch, store, envelope.
"""

from fastapi import APIRouter, Depends, Request, status

from passport.schemas.auth import AuthenticatedUser
from passport.schemas.envelope import RequestContext
from passport.schemas.lookups import (
    CompaniesRequest, EPCRequest, FloodRequest, HMLRRequest, PoliceRequest, PropertyLookupRequest
)
from passport.services.error_handler import ERROR_RESPONSES
from passport.services.pipeline import LookupPipeline
from passport.services.providers import ProviderRegistry
from passport.utils.dependencies import (
    get_current_user,
    get_lookup_pipeline,
    get_provider_registry,
    get_public_pipeline,
    get_request_context,
    hmlr_rate_limit,
)
from passport.utils.exceptions import MethodNotAllowedError


router = APIRouter(tags=["Lookups"])

PROPERTY_LOOKUP_RESPONSES = {code: ERROR_RESPONSES[code] for code in (400, 401, 403, 502)}


@router.post(
    "/gassafe",
    summary="Gas Safe register links",
    description="Gas Safe engineer search and certificate links for a property.",
    responses=PROPERTY_LOOKUP_RESPONSES
)
async def gassafe(
    body: PropertyLookupRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    pipeline: LookupPipeline = Depends(get_lookup_pipeline),
    providers: ProviderRegistry = Depends(get_provider_registry)
) -> dict:
    return await pipeline.run(
        providers.gassafe, body, context.request_id, user_id=user.id, property_id=body.property_id
    )


@router.post(
    "/fensa",
    summary="FENSA installer links",
    description="FENSA installer search and window/door certificate links for a property.",
    responses=PROPERTY_LOOKUP_RESPONSES
)
async def fensa(
    body: PropertyLookupRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    pipeline: LookupPipeline = Depends(get_lookup_pipeline),
    providers: ProviderRegistry = Depends(get_provider_registry)
) -> dict:
    return await pipeline.run(
        providers.fensa, body, context.request_id, user_id=user.id, property_id=body.property_id
    )


@router.post(
    "/voa",
    summary="Council tax links",
    description="Valuation Office Agency council tax band and appeal links for a property.",
    responses=PROPERTY_LOOKUP_RESPONSES
)
async def voa(
    body: PropertyLookupRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    pipeline: LookupPipeline = Depends(get_lookup_pipeline),
    providers: ProviderRegistry = Depends(get_provider_registry)
) -> dict:
    return await pipeline.run(
        providers.voa, body, context.request_id, user_id=user.id, property_id=body.property_id
    )


@router.post(
    "/police",
    summary="Crime statistics",
    description="Street-level crime summary around a property.",
    responses=PROPERTY_LOOKUP_RESPONSES
)
async def police(
    body: PoliceRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    pipeline: LookupPipeline = Depends(get_lookup_pipeline),
    providers: ProviderRegistry = Depends(get_provider_registry)
) -> dict:
    return await pipeline.run(
        providers.police, body, context.request_id, user_id=user.id, property_id=body.property_id
    )


@router.post(
    "/companies",
    summary="Companies House data",
    description="Companies registered at or related to a property.",
    responses=PROPERTY_LOOKUP_RESPONSES
)
async def companies(
    body: CompaniesRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    pipeline: LookupPipeline = Depends(get_lookup_pipeline),
    providers: ProviderRegistry = Depends(get_provider_registry)
) -> dict:
    return await pipeline.run(
        providers.companies, body, context.request_id, user_id=user.id, property_id=body.property_id
    )


@router.post(
    "/epc",
    summary="Energy Performance Certificates",
    description=(
        "Domestic EPCs by report reference number, UPRN or postcode. "
        "Send `property_id` to scope the lookup to a property you are a party to."
    ),
    responses=PROPERTY_LOOKUP_RESPONSES
)
async def epc(
    body: EPCRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    pipeline: LookupPipeline = Depends(get_lookup_pipeline),
    providers: ProviderRegistry = Depends(get_provider_registry)
) -> dict:
    return await pipeline.run(
        providers.epc, body, context.request_id, user_id=user.id, property_id=body.property_id
    )


@router.post(
    "/flood",
    summary="Flood risk",
    description="Surface water, river and sea, groundwater and reservoir flood risk for a location.",
    responses={code: ERROR_RESPONSES[code] for code in (400, 401, 403, 404, 502)}
)
async def flood(
    body: FloodRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    pipeline: LookupPipeline = Depends(get_lookup_pipeline),
    providers: ProviderRegistry = Depends(get_provider_registry)
) -> dict:
    return await pipeline.run(
        providers.flood, body, context.request_id, user_id=user.id, property_id=body.property_id
    )


@router.post(
    "/api-hmlr",
    summary="HM Land Registry title data",
    description="Title, tenure and price-paid history. Anonymous, limited to 50 requests per hour per client.",
    responses={code: ERROR_RESPONSES[code] for code in (400, 429, 502)},
    dependencies=[Depends(hmlr_rate_limit)]
)
async def hmlr(
    body: HMLRRequest,
    context: RequestContext = Depends(get_request_context),
    pipeline: LookupPipeline = Depends(get_public_pipeline),
    providers: ProviderRegistry = Depends(get_provider_registry)
) -> dict:
    return await pipeline.run(providers.hmlr, body, context.request_id)


@router.api_route(
    "/api-hmlr",
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
    status_code=status.HTTP_405_METHOD_NOT_ALLOWED
)
async def hmlr_method_not_allowed(request: Request) -> None:
    raise MethodNotAllowedError(request.method)

"""
FastAPI application entry point.
Mounts every endpoint under the functions prefix behind the shared request pipeline.
"""

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError as PydanticValidationError
import logging

from passport.config import settings
from passport.database import check_database_connection, close_db_connection, create_tables, get_db
from passport.middleware.request_context import RequestContextMiddleware
from passport.routers import lookups_router, media_router, postcodes_router, properties_router, storage_router
from passport.services.cache import get_cache_manager
from passport.services.error_handler import ErrorHandlerService, CORS_HEADERS
from passport.services.rate_limit import RateLimiter
from passport.utils.exceptions import APIException

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    if not settings.is_testing:
        if settings.is_development and settings.database_url.startswith("sqlite"):
            await create_tables()

        db_connected = await check_database_connection()
        if not db_connected:
            logger.error("Failed to connect to database on startup")

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Property Passport UK: property records, parties and third-party property data.

    ## Authentication

    Send the Supabase access token as `Authorization: Bearer <token>`. Only
    `api-hmlr` is anonymous; it is rate limited per client IP.

    ## Responses

    Successful responses use `{success, data, requestId, cached, cacheExpiresAt}`;
    failures use `{success: false, error, code, requestId, timestamp, details?}`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Lookups", "description": "Third-party property data, cached per source"},
        {"name": "Postcodes", "description": "Postcode lookup and geocoding"},
        {"name": "Properties", "description": "Dashboard, watchlist and passport snapshot"},
        {"name": "Media", "description": "Property photos and documents"},
        {"name": "Health", "description": "Liveness and database connectivity"},
    ],
    lifespan=lifespan,
)

app.add_middleware(
    RequestContextMiddleware,
    max_request_size=settings.max_document_size + 1024 * 1024,
    enable_request_logging=True,
    # Global limiter only in production; api-hmlr always has its own
    rate_limiter=RateLimiter(settings.rate_limit_requests, settings.rate_limit_window)
    if settings.is_production else None,
)

app.include_router(lookups_router, prefix=settings.api_prefix)
app.include_router(postcodes_router, prefix=settings.api_prefix)
app.include_router(properties_router, prefix=settings.api_prefix)
app.include_router(media_router, prefix=settings.api_prefix)

if settings.storage_backend == "local":
    app.include_router(storage_router)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    """Handle Pydantic validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors with appropriate error responses."""
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle routing and other HTTP exceptions with structured error responses."""
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/health", tags=["Health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint with database connectivity test.
    Used by load balancers; returns 503 when the database is unreachable.
    """
    db_healthy = await check_database_connection(db)
    body = {
        "status": "healthy" if db_healthy else "unhealthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected" if db_healthy else "disconnected",
        "cache": get_cache_manager().get_stats(),
    }
    if not db_healthy:
        logger.error("Health check failed: database unreachable")
        return JSONResponse(status_code=503, content=body, headers=CORS_HEADERS)
    return body


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "passport.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

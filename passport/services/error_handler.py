"""
Error handling service for consistent error envelopes and logging.
Every failure leaves the API as {success: false, error, code, requestId, timestamp}.
"""

from typing import Dict, Any, Optional, List, Union
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from pydantic import ValidationError as PydanticValidationError
from passport.config import settings
from passport.schemas.envelope import ErrorEnvelope
from passport.utils.exceptions import APIException
from datetime import datetime, timezone
import logging
import traceback
import uuid

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": settings.cors_allow_origin,
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "ACCESS_DENIED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    429: "RATE_LIMIT_EXCEEDED",
    502: "EXTERNAL_API_ERROR",
}


class ErrorHandlerService:
    """
    Service for handling and formatting errors consistently across the application.
    Provides structured error responses with appropriate logging and error codes.
    """

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Format error response in the API envelope.

        Args:
            error_code: Machine-readable error code
            message: Human-readable error message
            details: Optional list of detailed error information
            request_id: Request identifier for tracking

        Returns:
            Formatted error response dictionary
        """
        response = {
            "success": False,
            "error": message,
            "code": error_code,
            "requestId": request_id or ErrorHandlerService._generate_request_id(),
            "timestamp": ErrorHandlerService._get_current_timestamp(),
        }

        if details:
            response["details"] = details

        return response

    @staticmethod
    def handle_api_exception(
        exception: APIException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle custom API exceptions with structured response.

        Args:
            exception: API exception instance
            request: Optional FastAPI request object

        Returns:
            JSON response with formatted error
        """
        request_id = ErrorHandlerService._get_request_id(request)

        logger.warning(
            f"API Exception [{request_id}]: {exception.error_code} - {exception.detail}",
            extra={
                "error_code": exception.error_code,
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )

        error_response = ErrorHandlerService.format_error_response(
            error_code=exception.error_code or "API_ERROR",
            message=exception.detail,
            details=getattr(exception, "field_errors", None),
            request_id=request_id
        )

        return ErrorHandlerService._json(exception.status_code, error_response, exception.headers)

    @staticmethod
    def handle_validation_error(
        exception: Union[RequestValidationError, PydanticValidationError],
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle request validation errors with detailed field information.

        Args:
            exception: FastAPI or Pydantic validation error
            request: Optional FastAPI request object

        Returns:
            400 JSON response enumerating the offending fields
        """
        request_id = ErrorHandlerService._get_request_id(request)

        validation_details = []
        for error in exception.errors():
            loc = [str(part) for part in error["loc"] if part not in ("body", "query")]
            validation_details.append({
                "field": " -> ".join(loc) or "body",
                "message": error["msg"],
                "type": error["type"],
            })

        logger.warning(
            f"Validation Error [{request_id}]: {len(validation_details)} field errors",
            extra={
                "error_count": len(validation_details),
                "request_id": request_id,
                "path": request.url.path if request else None,
                "validation_errors": validation_details
            }
        )

        error_response = ErrorHandlerService.format_error_response(
            error_code="VALIDATION_ERROR",
            message="Invalid request data",
            details=validation_details,
            request_id=request_id
        )

        return ErrorHandlerService._json(400, error_response)

    @staticmethod
    def handle_database_error(
        exception: SQLAlchemyError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle database errors with appropriate error responses.

        Args:
            exception: SQLAlchemy error
            request: Optional FastAPI request object

        Returns:
            JSON response with database error information
        """
        request_id = ErrorHandlerService._get_request_id(request)

        if isinstance(exception, IntegrityError):
            error_code = "INTEGRITY_ERROR"
            message = "Data integrity constraint violation"
            status_code = 409

            constraint_info = ErrorHandlerService._extract_constraint_info(exception)
            if constraint_info:
                message = f"Constraint violation: {constraint_info}"
        else:
            error_code = "INTERNAL_ERROR"
            message = "Database operation failed"
            status_code = 500

        logger.error(
            f"Database Error [{request_id}]: {error_code} - {str(exception)}",
            extra={
                "error_code": error_code,
                "request_id": request_id,
                "path": request.url.path if request else None,
                "exception_type": type(exception).__name__
            },
            exc_info=True
        )

        error_response = ErrorHandlerService.format_error_response(
            error_code=error_code,
            message=message,
            request_id=request_id
        )

        return ErrorHandlerService._json(status_code, error_response)

    @staticmethod
    def handle_http_exception(
        exception: HTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle FastAPI/Starlette HTTP exceptions (404 routes, 405 methods).

        Args:
            exception: HTTP exception
            request: Optional FastAPI request object

        Returns:
            JSON response with HTTP error information
        """
        request_id = ErrorHandlerService._get_request_id(request)

        logger.warning(
            f"HTTP Exception [{request_id}]: {exception.status_code} - {exception.detail}",
            extra={
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )

        error_response = ErrorHandlerService.format_error_response(
            error_code=_STATUS_CODES.get(exception.status_code, f"HTTP_{exception.status_code}"),
            message=str(exception.detail),
            request_id=request_id
        )

        return ErrorHandlerService._json(
            exception.status_code, error_response, getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(
        exception: Exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle unexpected errors with secure error responses.

        Args:
            exception: Unexpected exception
            request: Optional FastAPI request object

        Returns:
            JSON response with generic error message
        """
        request_id = ErrorHandlerService._get_request_id(request)

        logger.error(
            f"Unexpected Error [{request_id}]: {type(exception).__name__} - {str(exception)}",
            extra={
                "request_id": request_id,
                "path": request.url.path if request else None,
                "exception_type": type(exception).__name__,
                "traceback": traceback.format_exc()
            },
            exc_info=True
        )

        message = "Internal server error"
        if settings.debug:
            message = f"{message}: {exception}"

        error_response = ErrorHandlerService.format_error_response(
            error_code="INTERNAL_ERROR",
            message=message,
            request_id=request_id
        )

        return ErrorHandlerService._json(500, error_response)

    @staticmethod
    def _json(
        status_code: int,
        content: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        merged = dict(CORS_HEADERS)
        if headers:
            merged.update(headers)
        return JSONResponse(status_code=status_code, content=content, headers=merged)

    @staticmethod
    def _get_request_id(request: Optional[Request]) -> str:
        """Reuse the id assigned by the request context middleware when present."""
        if request is not None:
            context = getattr(request.state, "context", None)
            if context is not None:
                return context.request_id
        return ErrorHandlerService._generate_request_id()

    @staticmethod
    def _generate_request_id() -> str:
        """Generate a unique request ID for error tracking."""
        return str(uuid.uuid4())

    @staticmethod
    def _get_current_timestamp() -> str:
        """Get current timestamp in ISO format."""
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _extract_constraint_info(exception: IntegrityError) -> Optional[str]:
        """
        Extract constraint information from integrity error.

        Args:
            exception: SQLAlchemy integrity error

        Returns:
            Constraint information string or None
        """
        error_msg = str(exception.orig).lower()

        if "unique" in error_msg:
            return "Duplicate value for unique field"
        elif "foreign key" in error_msg:
            return "Referenced record does not exist"
        elif "not null" in error_msg:
            return "Required field cannot be empty"
        elif "check constraint" in error_msg:
            return "Value does not meet validation requirements"

        return None


def _example(code: str, message: str) -> Dict[str, Any]:
    return {
        "model": ErrorEnvelope,
        "content": {
            "application/json": {
                "example": {
                    "success": False,
                    "error": message,
                    "code": code,
                    "requestId": "4f6c1f0e-8a43-4c55-9d51-2a9f0d1d7d13",
                    "timestamp": "2025-01-01T00:00:00+00:00",
                }
            }
        }
    }


# Error response schemas for OpenAPI documentation
ERROR_RESPONSES = {
    400: {"description": "Validation Error", **_example("VALIDATION_ERROR", "Invalid request data")},
    401: {"description": "Unauthorized", **_example("UNAUTHORIZED", "Missing or invalid authorization header")},
    403: {"description": "Forbidden", **_example("ACCESS_DENIED", "Access denied to property")},
    404: {"description": "Not Found", **_example("NOT_FOUND", "Property not found")},
    429: {"description": "Rate Limited", **_example("RATE_LIMIT_EXCEEDED", "Rate limit exceeded")},
    502: {"description": "Upstream Failure", **_example("EXTERNAL_API_ERROR", "HMLR API request failed")},
    500: {"description": "Internal Server Error", **_example("INTERNAL_ERROR", "Internal server error")},
}

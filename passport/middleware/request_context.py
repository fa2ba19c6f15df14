"""
Request context middleware.
Answers CORS preflights, assigns a request id and context, applies the global
rate limit and logs every request/response pair.
"""

from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from datetime import datetime, timezone
import logging
import time
import uuid

from passport.config import settings
from passport.schemas.envelope import RequestContext
from passport.services.error_handler import ErrorHandlerService, CORS_HEADERS
from passport.services.rate_limit import RateLimiter
from passport.utils.exceptions import APIException, BadRequestError

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """
    Get client IP address from request.

    X-Forwarded-For and X-Real-IP are honoured only when the direct peer is
    listed in TRUSTED_PROXIES.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address
    """
    peer = request.client.host if request.client else None
    if peer is None:
        return "unknown"

    if peer in settings.trusted_proxies:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

    return peer


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Outermost request handling stage.
    Every response, including errors, carries the CORS headers and X-Request-ID.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 10 * 1024 * 1024,  # 10MB
        enable_request_logging: bool = True,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging
        self.rate_limiter = rate_limiter

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request through the context middleware.

        Args:
            request: FastAPI request object
            call_next: Next middleware/handler in chain

        Returns:
            Response object
        """
        # Preflight never needs a context, a token or a body
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        context = RequestContext(
            request_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            user_agent=request.headers.get("user-agent"),
            ip_address=get_client_ip(request),
        )
        request.state.context = context

        start_time = time.time()

        try:
            self._validate_request_size(request)

            if self.rate_limiter is not None:
                await self.rate_limiter.check(f"global:{context.ip_address}")

            if self.enable_request_logging:
                self._log_request(request, context)

            response = await call_next(request)

        except APIException as exc:
            response = ErrorHandlerService.handle_api_exception(exc, request)
        except Exception as exc:
            response = ErrorHandlerService.handle_unexpected_error(exc, request)

        processing_time = time.time() - start_time
        if self.enable_request_logging:
            self._log_response(request, response, context, processing_time)

        for header, value in CORS_HEADERS.items():
            response.headers[header] = value
        response.headers["X-Request-ID"] = context.request_id

        return response

    def _validate_request_size(self, request: Request) -> None:
        """
        Validate request content length.

        Raises:
            BadRequestError: If request size exceeds limit
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return

        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")

        if size > self.max_request_size:
            raise BadRequestError(
                f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
            )

    def _log_request(self, request: Request, context: RequestContext) -> None:
        logger.info(
            f"Request [{context.request_id}]: {request.method} {request.url.path}",
            extra={
                "request_id": context.request_id,
                "method": request.method,
                "path": request.url.path,
                "query_params": str(request.query_params),
                "client_ip": context.ip_address,
                "user_agent": context.user_agent or "unknown"
            }
        )

    def _log_response(
        self,
        request: Request,
        response: Response,
        context: RequestContext,
        processing_time: float
    ) -> None:
        logger.info(
            f"Response [{context.request_id}]: {response.status_code} - {processing_time:.3f}s",
            extra={
                "request_id": context.request_id,
                "status_code": response.status_code,
                "processing_time": processing_time,
                "path": request.url.path,
                "method": request.method
            }
        )

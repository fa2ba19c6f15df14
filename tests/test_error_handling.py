"""
Tests for error envelopes, the request context middleware and authentication ordering.
"""

import json
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock
from httpx import AsyncClient
from starlette.requests import Request
from sqlalchemy.exc import IntegrityError, OperationalError

from passport.config import settings
from passport.main import app
from passport.middleware.request_context import get_client_ip
from passport.schemas.envelope import RequestContext
from passport.services.error_handler import ErrorHandlerService
from passport.utils.auth import create_access_token
from passport.utils.exceptions import (
    ExternalAPIError,
    FileSizeExceededError,
    NotFoundError,
    PropertyAccessDeniedError,
    RateLimitExceededError,
    RelationshipConflictError,
    UnsupportedFileTypeError,
    ValidationError,
)
from tests.conftest import API, assert_error_envelope, auth_headers


class TestExceptions:
    """Test status codes and messages of the exception hierarchy."""

    def test_not_found_message(self):
        assert NotFoundError("Postcode").detail == "Postcode not found"
        assert NotFoundError("Document", "abc").detail == "Document not found with ID: abc"

    def test_access_denied(self):
        exc = PropertyAccessDeniedError()
        assert exc.status_code == 403
        assert exc.error_code == "ACCESS_DENIED"
        assert exc.detail == "Access denied to property"

    def test_relationship_conflict(self):
        exc = RelationshipConflictError("owner")
        assert exc.status_code == 400
        assert exc.detail == "Property already has relationship: owner"

    def test_upload_errors(self):
        unsupported = UnsupportedFileTypeError("image/gif", ["image/jpeg", "image/png"])
        assert unsupported.detail == "Unsupported file type 'image/gif'. Supported types: image/jpeg, image/png"

        too_large = FileSizeExceededError(2048, 1024)
        assert too_large.status_code == 400
        assert "2048" in too_large.detail

    def test_external_api_error(self):
        exc = ExternalAPIError("HMLR", "HTTP 500: Internal Server Error")
        assert exc.status_code == 502
        assert exc.error_code == "EXTERNAL_API_ERROR"
        assert exc.detail == "HMLR API request failed: HTTP 500: Internal Server Error"


class TestErrorHandlerService:
    """Test error response formatting."""

    def test_format_error_response(self):
        response = ErrorHandlerService.format_error_response(
            error_code="TEST_ERROR",
            message="Test error message",
            details=[{"field": "postcode", "message": "Invalid"}],
            request_id="req-123"
        )

        assert response["success"] is False
        assert response["error"] == "Test error message"
        assert response["code"] == "TEST_ERROR"
        assert response["requestId"] == "req-123"
        assert response["details"][0]["field"] == "postcode"
        datetime.fromisoformat(response["timestamp"])

    def test_format_without_details(self):
        response = ErrorHandlerService.format_error_response("NOT_FOUND", "Property not found")

        assert "details" not in response
        uuid.UUID(response["requestId"])

    def test_handle_api_exception(self):
        response = ErrorHandlerService.handle_api_exception(NotFoundError("Property", "abc"))

        assert response.status_code == 404
        body = json.loads(response.body)
        assert body["code"] == "NOT_FOUND"
        assert body["error"] == "Property not found with ID: abc"
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"

    def test_handle_api_exception_keeps_headers(self):
        response = ErrorHandlerService.handle_api_exception(RateLimitExceededError(120))

        assert response.status_code == 429
        assert response.headers["retry-after"] == "120"
        assert json.loads(response.body)["code"] == "RATE_LIMIT_EXCEEDED"

    def test_field_errors_become_details(self):
        exc = ValidationError("Bad input", field_errors=[{"field": "file", "message": "File is empty"}])
        body = json.loads(ErrorHandlerService.handle_api_exception(exc).body)

        assert body["details"] == [{"field": "file", "message": "File is empty"}]

    def test_handle_validation_error(self):
        mock_error = Mock()
        mock_error.errors.return_value = [
            {"loc": ("body", "property_id"), "msg": "Input should be a valid UUID", "type": "uuid_parsing"},
            {"loc": ("query", "limit"), "msg": "Input should be less than or equal to 100", "type": "less_than_equal"},
            {"loc": (), "msg": "Value error, Postcode is required", "type": "value_error"},
        ]

        response = ErrorHandlerService.handle_validation_error(mock_error)

        assert response.status_code == 400
        body = json.loads(response.body)
        assert body["code"] == "VALIDATION_ERROR"
        assert body["error"] == "Invalid request data"
        assert [detail["field"] for detail in body["details"]] == ["property_id", "limit", "body"]

    def test_handle_integrity_error(self):
        exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: property_parties"))

        response = ErrorHandlerService.handle_database_error(exc)

        assert response.status_code == 409
        body = json.loads(response.body)
        assert body["code"] == "INTEGRITY_ERROR"
        assert body["error"] == "Constraint violation: Duplicate value for unique field"

    def test_handle_other_database_error(self):
        exc = OperationalError("SELECT", {}, Exception("connection refused"))

        response = ErrorHandlerService.handle_database_error(exc)

        assert response.status_code == 500
        assert json.loads(response.body)["error"] == "Database operation failed"

    def test_unexpected_error_hides_detail(self):
        response = ErrorHandlerService.handle_unexpected_error(RuntimeError("secret internals"))

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["code"] == "INTERNAL_ERROR"
        assert body["error"] == "Internal server error"

    def test_request_id_reused_from_context(self):
        request = Mock()
        request.state.context = RequestContext(request_id="ctx-42", timestamp=datetime.now(timezone.utc))

        response = ErrorHandlerService.handle_api_exception(NotFoundError("Property"), request)

        assert json.loads(response.body)["requestId"] == "ctx-42"


class TestRequestPipeline:
    """Test preflight handling, authentication and validation ordering over HTTP."""

    async def test_options_preflight(self, async_client: AsyncClient):
        """Preflight succeeds without a token and returns an empty body."""
        response = await async_client.options(f"{API}/gassafe")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type, Authorization"

    async def test_options_on_unknown_path(self, async_client: AsyncClient):
        response = await async_client.options(f"{API}/does-not-exist")
        assert response.status_code == 200

    async def test_missing_token(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/gassafe", json={"property_id": str(uuid.uuid4())})

        body = assert_error_envelope(response, 401, "UNAUTHORIZED")
        assert body["error"] == "Missing or invalid authorization header"
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_missing_token_reported_before_invalid_body(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/gassafe", json={"property_id": "not-a-uuid"})

        assert_error_envelope(response, 401, "UNAUTHORIZED")

    async def test_invalid_token(self, async_client: AsyncClient):
        response = await async_client.post(
            f"{API}/gassafe",
            json={"property_id": str(uuid.uuid4())},
            headers={"Authorization": "Bearer not.a.token"}
        )

        body = assert_error_envelope(response, 401, "UNAUTHORIZED")
        assert body["error"] == "Invalid or expired token"

    async def test_expired_token(self, async_client: AsyncClient):
        headers = auth_headers(uuid.uuid4(), expires_delta=timedelta(seconds=-30))

        response = await async_client.post(f"{API}/gassafe", json={"property_id": str(uuid.uuid4())}, headers=headers)

        assert_error_envelope(response, 401, "UNAUTHORIZED")

    async def test_token_signed_with_wrong_secret(self, async_client: AsyncClient):
        token = create_access_token(uuid.uuid4(), secret="another-secret-that-is-long-enough-to-sign")

        response = await async_client.post(
            f"{API}/gassafe",
            json={"property_id": str(uuid.uuid4())},
            headers={"Authorization": f"Bearer {token}"}
        )

        assert_error_envelope(response, 401, "UNAUTHORIZED")

    async def test_malformed_property_id(self, async_client: AsyncClient):
        """A valid token with a malformed body fails validation before authorization."""
        response = await async_client.post(
            f"{API}/gassafe", json={"property_id": "not-a-uuid"}, headers=auth_headers(uuid.uuid4())
        )

        body = assert_error_envelope(response, 400, "VALIDATION_ERROR")
        assert body["details"][0]["field"] == "property_id"

    async def test_unknown_route(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/unknown")

        assert_error_envelope(response, 404, "NOT_FOUND")

    async def test_request_id_header_matches_body(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/gassafe", json={})

        assert response.headers["x-request-id"] == response.json()["requestId"]


class TestHealth:
    """Test the health endpoint."""

    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["environment"] == "testing"
        assert "hit_rate" in body["cache"]


def make_request(peer: str, headers: dict) -> Request:
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": [(name.lower().encode(), value.encode()) for name, value in headers.items()],
        "client": (peer, 40000),
    })


class TestClientAddress:
    """Test which address per-client limits are keyed on."""

    def test_forwarding_headers_ignored_from_untrusted_peer(self):
        request = make_request("198.51.100.4", {"X-Forwarded-For": "10.0.0.1", "X-Real-IP": "10.0.0.2"})

        assert get_client_ip(request) == "198.51.100.4"

    def test_forwarded_for_from_trusted_proxy(self, monkeypatch):
        monkeypatch.setattr(settings, "trusted_proxies", ["10.1.0.1"])
        request = make_request("10.1.0.1", {"X-Forwarded-For": "203.0.113.7, 10.1.0.9"})

        assert get_client_ip(request) == "203.0.113.7"

    def test_real_ip_from_trusted_proxy(self, monkeypatch):
        monkeypatch.setattr(settings, "trusted_proxies", ["10.1.0.1"])
        request = make_request("10.1.0.1", {"X-Real-IP": "203.0.113.8"})

        assert get_client_ip(request) == "203.0.113.8"

    def test_trusted_proxy_without_headers(self, monkeypatch):
        monkeypatch.setattr(settings, "trusted_proxies", ["10.1.0.1"])

        assert get_client_ip(make_request("10.1.0.1", {})) == "10.1.0.1"


class TestOpenAPIErrors:
    """Test that documented error responses use the error envelope schema."""

    def test_error_envelope_schema_published(self):
        schema = app.openapi()

        assert "ErrorEnvelope" in schema["components"]["schemas"]
        assert "ErrorDetail" in schema["components"]["schemas"]
        forbidden = schema["paths"][f"{API}/gassafe"]["post"]["responses"]["403"]
        assert forbidden["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorEnvelope")

"""
Test configuration and fixtures for the Property Passport API.
Provides database fixtures, test data factories, tokens and a mocked upstream transport.
"""

import os
import tempfile

# Settings are read at import time, so the environment must be in place first
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="passport-uploads-")
os.environ["IDENTITY_PROVIDER"] = "jwt"
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["HMLR_API_KEY"] = ""
os.environ["COMPANIES_HOUSE_API_KEY"] = ""
os.environ["EPC_API_KEY"] = ""
os.environ["FLOOD_API_KEY"] = ""

import pytest
import io
import uuid
from datetime import datetime, timedelta
from typing import AsyncGenerator, Dict, Optional
from urllib.parse import unquote
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient
from PIL import Image
import httpx

from passport.main import app
from passport.database import Base, get_db
from passport.models import Profile, Property, PropertyType, Relationship, UserRole
from passport.repositories.party import PartyRepository
from passport.repositories.property import PropertyRepository
from passport.services.cache import CacheManager
from passport.services.providers import ProviderRegistry
from passport.services.rate_limit import RateLimiter
from passport.services.storage import LocalStorageBackend
from passport.utils.auth import create_access_token
from passport.utils.dependencies import (
    get_cache,
    get_hmlr_rate_limiter,
    get_provider_registry,
    get_storage,
)


# Test database configuration
TEST_DATABASE_URL = "sqlite+aiosqlite://"

API = "/functions/v1"


# Canned postcodes.io records
EXETER_POSTCODE = {
    "postcode": "EX1 1AB",
    "quality": 1,
    "eastings": 292468,
    "northings": 92639,
    "country": "England",
    "nhs_ha": "South West",
    "longitude": -3.527654,
    "latitude": 50.724321,
    "european_electoral_region": "South West",
    "primary_care_trust": "Devon",
    "region": "South West",
    "lsoa": "Exeter 012A",
    "msoa": "Exeter 012",
    "incode": "1AB",
    "outcode": "EX1",
    "parliamentary_constituency": "Exeter",
    "admin_district": "Exeter",
    "parish": "Exeter, unparished area",
    "admin_county": "Devon",
    "admin_ward": "St David's",
    "ced": None,
    "ccg": "NHS Devon",
    "nuts": "Exeter",
    "codes": {
        "admin_district": "E07000041",
        "admin_county": "E10000008",
        "admin_ward": "E05012345",
        "parish": "E43000001",
        "parliamentary_constituency": "E14000698",
        "ccg": "E38000230",
        "ccg_id": "15N",
        "ced": "E58000001",
        "nuts": "TLK43",
    },
}

EXETER_SEARCH = [
    EXETER_POSTCODE,
    {**EXETER_POSTCODE, "postcode": "EX1 1AD", "incode": "1AD", "admin_county": None},
]


def postcodes_io_handler(request: httpx.Request) -> httpx.Response:
    """Stand-in for api.postcodes.io covering lookup, search and reverse geocoding."""
    path = unquote(request.url.path)

    if path.startswith("/postcodes/"):
        postcode = path[len("/postcodes/"):].replace(" ", "").upper()
        if postcode == "EX11AB":
            return httpx.Response(200, json={"status": 200, "result": EXETER_POSTCODE})
        return httpx.Response(404, json={"status": 404, "error": "Postcode not found"})

    if path == "/postcodes":
        params = request.url.params
        if "q" in params:
            limit = int(params.get("limit", 10))
            return httpx.Response(200, json={"status": 200, "result": EXETER_SEARCH[:limit]})
        if "lat" in params:
            if float(params["lat"]) == 0.0:
                return httpx.Response(200, json={"status": 200, "result": None})
            return httpx.Response(200, json={"status": 200, "result": [EXETER_POSTCODE]})

    return httpx.Response(500, json={"status": 500, "error": "Unexpected request"})


@pytest.fixture
def upstream_calls() -> list:
    """Every outbound request seen by the mocked transport."""
    return []


@pytest.fixture
def mock_transport(upstream_calls: list) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        upstream_calls.append(request)
        return postcodes_io_handler(request)

    return httpx.MockTransport(handler)


@pytest.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache() -> CacheManager:
    return CacheManager(max_size=100, default_ttl=3600)


@pytest.fixture
def hmlr_limiter() -> RateLimiter:
    return RateLimiter(limit=50, window=3600)


@pytest.fixture
def storage_root(tmp_path) -> str:
    return str(tmp_path / "storage")


@pytest.fixture
def storage(storage_root: str) -> LocalStorageBackend:
    return LocalStorageBackend(root=storage_root, base_url="http://testserver")


@pytest.fixture
def providers(mock_transport: httpx.MockTransport) -> ProviderRegistry:
    return ProviderRegistry(transport=mock_transport)


@pytest.fixture
async def async_client(
    session_factory,
    cache: CacheManager,
    hmlr_limiter: RateLimiter,
    storage: LocalStorageBackend,
    providers: ProviderRegistry
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database, cache and upstream overrides."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_hmlr_rate_limiter] = lambda: hmlr_limiter
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_provider_registry] = lambda: providers

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()


# Identities
def auth_headers(user_id: uuid.UUID, expires_delta: Optional[timedelta] = None) -> Dict[str, str]:
    """Bearer header carrying a token for the given user."""
    token = create_access_token(user_id, email=f"{user_id.hex[:8]}@example.com", expires_delta=expires_delta)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def occupier_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def interested_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def stranger_id() -> uuid.UUID:
    return uuid.uuid4()


# Test data factories
class ProfileFactory:
    """Factory for creating test profiles."""

    @staticmethod
    async def create_profile(
        session: AsyncSession,
        user_id: uuid.UUID,
        role: UserRole = UserRole.OWNER,
        full_name: str = "Test Owner"
    ) -> Profile:
        profile = Profile(id=user_id, role=role, full_name=full_name)
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
        return profile


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        claimed_by: Optional[uuid.UUID] = None,
        address_line_1: str = "1 Cathedral Close",
        city: str = "Exeter",
        postcode: str = "EX1 1AB",
        property_type: PropertyType = PropertyType.TERRACED,
        updated_at: Optional[datetime] = None,
        **overrides
    ) -> dict:
        """Create property data dictionary."""
        data = {
            "ppuk_reference": f"PPUK-EX1-{uuid.uuid4().hex[:6].upper()}",
            "address_line_1": address_line_1,
            "city": city,
            "postcode": postcode,
            "property_type": property_type,
            "bedrooms": 3,
            "bathrooms": 1,
            "claimed_by": claimed_by,
        }
        if updated_at is not None:
            data["updated_at"] = updated_at
        data.update(overrides)
        return data

    @staticmethod
    async def create_property(session: AsyncSession, **kwargs) -> Property:
        """Create a test property in the database."""
        return await PropertyRepository(session).create(PropertyFactory.create_property_data(**kwargs))


class PartyFactory:
    """Factory for property party rows."""

    @staticmethod
    async def add_party(
        session: AsyncSession,
        user_id: uuid.UUID,
        property_id: uuid.UUID,
        relationship: Relationship
    ):
        return await PartyRepository(session).add(user_id, property_id, relationship)


# Common test fixtures
@pytest.fixture
async def owned_property(db_session: AsyncSession, owner_id: uuid.UUID) -> Property:
    """A property claimed by the owner, who also holds an owner party row."""
    await ProfileFactory.create_profile(db_session, owner_id)
    prop = await PropertyFactory.create_property(db_session, claimed_by=owner_id)
    await PartyFactory.add_party(db_session, owner_id, prop.id, Relationship.OWNER)
    return prop


@pytest.fixture
async def occupied_property(
    db_session: AsyncSession,
    owned_property: Property,
    occupier_id: uuid.UUID
) -> Property:
    await PartyFactory.add_party(db_session, occupier_id, owned_property.id, Relationship.OCCUPIER)
    return owned_property


@pytest.fixture
async def watched_property(
    db_session: AsyncSession,
    owned_property: Property,
    interested_id: uuid.UUID
) -> Property:
    await PartyFactory.add_party(db_session, interested_id, owned_property.id, Relationship.INTERESTED)
    return owned_property


# Utility functions for tests
def make_image(image_format: str = "PNG", size: tuple = (64, 48)) -> bytes:
    """Encode a small solid-colour image."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 80, 40)).save(buffer, format=image_format)
    return buffer.getvalue()


def assert_error_envelope(response: httpx.Response, status_code: int, code: str):
    """Assert the response is an error envelope with the given status and code."""
    assert response.status_code == status_code
    body = response.json()
    assert body["success"] is False
    assert body["code"] == code
    assert body["requestId"]
    assert body["timestamp"]
    assert response.headers["access-control-allow-origin"] == "*"
    return body

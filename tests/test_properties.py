"""
Integration tests for the dashboard, watchlist and passport snapshot endpoints.
"""

import pytest
import uuid
from datetime import datetime
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from passport.models import Document, DocumentType, Property, PropertyPhoto, Relationship
from passport.repositories.media import DocumentRepository, PhotoRepository
from tests.conftest import API, PartyFactory, PropertyFactory, assert_error_envelope, auth_headers


async def add_document(
    session: AsyncSession,
    prop: Property,
    uploaded_by: uuid.UUID,
    document_type: DocumentType = DocumentType.EPC,
    is_public: bool = False
) -> Document:
    return await DocumentRepository(session).create({
        "property_id": prop.id,
        "document_type": document_type,
        "file_name": f"{document_type.value}.pdf",
        "file_url": f"{prop.id}/{uuid.uuid4()}.pdf",
        "file_size_bytes": 2048,
        "mime_type": "application/pdf",
        "is_public": is_public,
        "uploaded_by": uploaded_by,
    })


async def add_photo(session: AsyncSession, prop: Property, uploaded_by: uuid.UUID) -> PropertyPhoto:
    return await PhotoRepository(session).create({
        "property_id": prop.id,
        "file_url": f"http://testserver/storage/property-photos/{prop.id}/front.jpg",
        "file_name": "front.jpg",
        "uploaded_by": uploaded_by,
    })


@pytest.fixture
async def portfolio(db_session: AsyncSession, owner_id: uuid.UUID):
    """Three properties for the owner: two owned (newest last) and one watched."""
    older = await PropertyFactory.create_property(
        db_session, claimed_by=owner_id, address_line_1="2 Older Road", updated_at=datetime(2024, 1, 1, 9, 0)
    )
    newer = await PropertyFactory.create_property(
        db_session, claimed_by=owner_id, address_line_1="3 Newer Road", updated_at=datetime(2024, 6, 1, 9, 0)
    )
    watched = await PropertyFactory.create_property(
        db_session, address_line_1="4 Watched Lane", updated_at=datetime(2024, 3, 1, 9, 0)
    )
    await PartyFactory.add_party(db_session, owner_id, older.id, Relationship.OWNER)
    await PartyFactory.add_party(db_session, owner_id, newer.id, Relationship.OWNER)
    await PartyFactory.add_party(db_session, owner_id, watched.id, Relationship.INTERESTED)
    return {"older": older, "newer": newer, "watched": watched}


class TestMyProperties:
    """Test the caller's property dashboard."""

    async def test_lists_all_relationships_newest_first(self, async_client: AsyncClient, portfolio, owner_id):
        response = await async_client.get(f"{API}/my_properties", headers=auth_headers(owner_id))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 3
        assert data["relationship"] is None
        assert [card["address_line_1"] for card in data["properties"]] == [
            "3 Newer Road", "4 Watched Lane", "2 Older Road"
        ]
        assert [card["relationship"] for card in data["properties"]] == ["owner", "interested", "owner"]
        assert data["pagination"] == {"limit": 50, "offset": 0, "has_more": False}

    async def test_filter_by_relationship(self, async_client: AsyncClient, portfolio, owner_id):
        response = await async_client.get(
            f"{API}/my_properties", params={"relationship": "interested"}, headers=auth_headers(owner_id)
        )

        data = response.json()["data"]
        assert data["total"] == 1
        assert data["relationship"] == "interested"
        assert data["properties"][0]["id"] == str(portfolio["watched"].id)

    async def test_pagination(self, async_client: AsyncClient, portfolio, owner_id):
        first_page = await async_client.get(
            f"{API}/my_properties", params={"limit": 2, "offset": 0}, headers=auth_headers(owner_id)
        )
        last_page = await async_client.get(
            f"{API}/my_properties", params={"limit": 2, "offset": 2}, headers=auth_headers(owner_id)
        )

        assert len(first_page.json()["data"]["properties"]) == 2
        assert first_page.json()["data"]["pagination"]["has_more"] is True
        assert len(last_page.json()["data"]["properties"]) == 1
        assert last_page.json()["data"]["pagination"]["has_more"] is False
        assert last_page.json()["data"]["total"] == 3

    async def test_card_stats(self, async_client: AsyncClient, db_session: AsyncSession, portfolio, owner_id):
        newer = portfolio["newer"]
        await add_document(db_session, newer, owner_id, DocumentType.EPC)
        await add_document(db_session, newer, owner_id, DocumentType.PLANNING)
        await add_photo(db_session, newer, owner_id)

        response = await async_client.get(f"{API}/my_properties", headers=auth_headers(owner_id))

        cards = {card["id"]: card for card in response.json()["data"]["properties"]}
        assert cards[str(newer.id)]["stats"] == {
            "document_count": 2,
            "note_count": 0,
            "task_count": 0,
            "photo_count": 1,
            "planning_count": 1,
        }
        assert cards[str(portfolio["older"].id)]["stats"]["document_count"] == 0

    async def test_empty_for_new_user(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/my_properties", headers=auth_headers(uuid.uuid4()))

        data = response.json()["data"]
        assert data["properties"] == []
        assert data["total"] == 0

    async def test_invalid_relationship_filter(self, async_client: AsyncClient, owner_id):
        response = await async_client.get(
            f"{API}/my_properties", params={"relationship": "landlord"}, headers=auth_headers(owner_id)
        )

        assert_error_envelope(response, 400, "VALIDATION_ERROR")

    async def test_requires_token(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/my_properties")

        assert_error_envelope(response, 401, "UNAUTHORIZED")


class TestWatchlist:
    """Test adding and removing watchlist entries."""

    async def test_add_then_add_again(self, async_client: AsyncClient, owned_property: Property, stranger_id):
        body = {"property_id": str(owned_property.id)}

        first = await async_client.post(f"{API}/watchlist_add", json=body, headers=auth_headers(stranger_id))
        second = await async_client.post(f"{API}/watchlist_add", json=body, headers=auth_headers(stranger_id))

        assert first.status_code == 200
        assert first.json()["data"] == {
            "ok": True,
            "relationship": "interested",
            "property_id": str(owned_property.id),
            "message": "Property added to watchlist successfully",
        }
        assert second.status_code == 200
        assert second.json()["data"]["message"] == "Property already in watchlist"

        listing = await async_client.get(f"{API}/my_properties", headers=auth_headers(stranger_id))
        assert [card["relationship"] for card in listing.json()["data"]["properties"]] == ["interested"]

    async def test_owner_cannot_watch(self, async_client: AsyncClient, owned_property: Property, owner_id):
        response = await async_client.post(
            f"{API}/watchlist_add", json={"property_id": str(owned_property.id)}, headers=auth_headers(owner_id)
        )

        body = assert_error_envelope(response, 400, "BAD_REQUEST")
        assert body["error"] == "Property already has relationship: owner"

    async def test_claiming_owner_without_party_row(self, async_client: AsyncClient, db_session: AsyncSession):
        owner_id = uuid.uuid4()
        prop = await PropertyFactory.create_property(db_session, claimed_by=owner_id)

        response = await async_client.post(
            f"{API}/watchlist_add", json={"property_id": str(prop.id)}, headers=auth_headers(owner_id)
        )

        assert response.json()["error"] == "Property already has relationship: owner"

    async def test_occupier_cannot_watch(self, async_client: AsyncClient, occupied_property: Property, occupier_id):
        response = await async_client.post(
            f"{API}/watchlist_add",
            json={"property_id": str(occupied_property.id)},
            headers=auth_headers(occupier_id)
        )

        body = assert_error_envelope(response, 400, "BAD_REQUEST")
        assert body["error"] == "Property already has relationship: occupier"

    async def test_unknown_property(self, async_client: AsyncClient, stranger_id):
        response = await async_client.post(
            f"{API}/watchlist_add", json={"property_id": str(uuid.uuid4())}, headers=auth_headers(stranger_id)
        )

        body = assert_error_envelope(response, 404, "NOT_FOUND")
        assert body["error"].startswith("Property not found")

    async def test_malformed_property_id(self, async_client: AsyncClient, stranger_id):
        response = await async_client.post(
            f"{API}/watchlist_add", json={"property_id": "42"}, headers=auth_headers(stranger_id)
        )

        assert_error_envelope(response, 400, "VALIDATION_ERROR")

    async def test_remove(self, async_client: AsyncClient, watched_property: Property, interested_id):
        body = {"property_id": str(watched_property.id)}

        first = await async_client.post(f"{API}/watchlist_remove", json=body, headers=auth_headers(interested_id))
        second = await async_client.post(f"{API}/watchlist_remove", json=body, headers=auth_headers(interested_id))

        assert first.json()["data"] == {
            "ok": True,
            "property_id": str(watched_property.id),
            "message": "Property removed from watchlist successfully",
        }
        assert second.json()["data"]["message"] == "Property not in watchlist"

        listing = await async_client.get(f"{API}/my_properties", headers=auth_headers(interested_id))
        assert listing.json()["data"]["total"] == 0

    async def test_remove_when_not_watching(self, async_client: AsyncClient, stranger_id):
        response = await async_client.post(
            f"{API}/watchlist_remove", json={"property_id": str(uuid.uuid4())}, headers=auth_headers(stranger_id)
        )

        assert response.status_code == 200
        assert response.json()["data"]["message"] == "Property not in watchlist"

    async def test_remove_keeps_other_relationships(
        self, async_client: AsyncClient, occupied_property: Property, occupier_id
    ):
        await async_client.post(
            f"{API}/watchlist_remove",
            json={"property_id": str(occupied_property.id)},
            headers=auth_headers(occupier_id)
        )

        listing = await async_client.get(f"{API}/my_properties", headers=auth_headers(occupier_id))
        assert [card["relationship"] for card in listing.json()["data"]["properties"]] == ["occupier"]


class TestPropertySnapshot:
    """Test the passport snapshot and its visibility rules."""

    @pytest.fixture
    async def furnished_property(
        self,
        db_session: AsyncSession,
        occupied_property: Property,
        owner_id: uuid.UUID,
        interested_id: uuid.UUID
    ) -> Property:
        await PartyFactory.add_party(db_session, interested_id, occupied_property.id, Relationship.INTERESTED)
        await add_document(db_session, occupied_property, owner_id, DocumentType.EPC, is_public=True)
        await add_document(db_session, occupied_property, owner_id, DocumentType.TITLE_DEED, is_public=False)
        await add_photo(db_session, occupied_property, owner_id)
        return occupied_property

    async def test_owner_sees_everything(self, async_client: AsyncClient, furnished_property: Property, owner_id):
        response = await async_client.post(
            f"{API}/property_snapshot",
            json={"property_id": str(furnished_property.id)},
            headers=auth_headers(owner_id)
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["property"]["id"] == str(furnished_property.id)
        assert data["property"]["postcode"] == "EX1 1AB"
        assert data["relationship"] == "owner"
        assert sorted(party["relationship"] for party in data["parties"]) == ["interested", "occupier", "owner"]
        assert len(data["recentDocuments"]) == 2
        assert len(data["photos"]) == 1
        assert data["stats"]["document_count"] == 2
        assert data["stats"]["photo_count"] == 1
        assert data["stats"]["party_count"] == 3
        assert data["stats"]["last_document_upload"] is not None
        assert data["stats"]["last_activity"] is not None

    async def test_occupier_visibility(self, async_client: AsyncClient, furnished_property: Property, occupier_id):
        response = await async_client.post(
            f"{API}/property_snapshot",
            json={"property_id": str(furnished_property.id)},
            headers=auth_headers(occupier_id)
        )

        data = response.json()["data"]
        assert data["relationship"] == "occupier"
        assert sorted(party["relationship"] for party in data["parties"]) == ["interested", "occupier"]
        assert len(data["recentDocuments"]) == 2

    async def test_interested_sees_public_only(
        self, async_client: AsyncClient, furnished_property: Property, interested_id
    ):
        response = await async_client.post(
            f"{API}/property_snapshot",
            json={"property_id": str(furnished_property.id)},
            headers=auth_headers(interested_id)
        )

        data = response.json()["data"]
        assert data["relationship"] == "interested"
        assert [party["relationship"] for party in data["parties"]] == ["interested"]
        assert [doc["document_type"] for doc in data["recentDocuments"]] == ["epc"]
        assert data["stats"]["document_count"] == 1
        assert data["stats"]["party_count"] == 1

    async def test_optional_sections(self, async_client: AsyncClient, furnished_property: Property, owner_id):
        response = await async_client.post(
            f"{API}/property_snapshot",
            json={"property_id": str(furnished_property.id), "include_documents": False, "include_photos": False},
            headers=auth_headers(owner_id)
        )

        data = response.json()["data"]
        assert data["recentDocuments"] == []
        assert data["photos"] == []
        assert data["stats"]["document_count"] == 2

    async def test_stranger_denied(self, async_client: AsyncClient, owned_property: Property, stranger_id):
        response = await async_client.post(
            f"{API}/property_snapshot",
            json={"property_id": str(owned_property.id)},
            headers=auth_headers(stranger_id)
        )

        assert_error_envelope(response, 403, "ACCESS_DENIED")

    async def test_unknown_property(self, async_client: AsyncClient, owner_id):
        response = await async_client.post(
            f"{API}/property_snapshot",
            json={"property_id": str(uuid.uuid4())},
            headers=auth_headers(owner_id)
        )

        assert_error_envelope(response, 403, "ACCESS_DENIED")

"""
Tests for repository classes.
Tests CRUD operations, party lookups, listing order and file statistics.
"""

import pytest
import uuid
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from passport.models import DocumentType, Property, Relationship
from passport.repositories.media import DocumentRepository, PhotoRepository
from passport.repositories.party import PartyRepository
from passport.repositories.property import PropertyRepository
from tests.conftest import PartyFactory, PropertyFactory


def document_data(prop: Property, document_type: DocumentType = DocumentType.EPC, is_public: bool = False) -> dict:
    return {
        "property_id": prop.id,
        "document_type": document_type,
        "file_name": "document.pdf",
        "file_url": f"{prop.id}/{uuid.uuid4()}.pdf",
        "is_public": is_public,
        "uploaded_by": uuid.uuid4(),
    }


class TestBaseRepository:
    """Test base repository functionality through PropertyRepository."""

    async def test_create(self, db_session: AsyncSession):
        prop = await PropertyFactory.create_property(db_session, address_line_1="10 High Street")

        assert prop.id is not None
        assert prop.address_line_1 == "10 High Street"
        assert prop.created_at is not None
        assert prop.updated_at is not None

    async def test_get_by_id(self, db_session: AsyncSession, owned_property: Property):
        retrieved = await PropertyRepository(db_session).get_by_id(owned_property.id)

        assert retrieved is not None
        assert retrieved.ppuk_reference == owned_property.ppuk_reference

    async def test_get_by_id_not_found(self, db_session: AsyncSession):
        assert await PropertyRepository(db_session).get_by_id(uuid.uuid4()) is None

    async def test_stage_commits_together(self, db_session: AsyncSession, owned_property: Property):
        repo = DocumentRepository(db_session)
        repo.stage(document_data(owned_property))
        repo.stage(document_data(owned_property))

        assert await repo.count() == 2
        await db_session.commit()
        assert await repo.count({"property_id": owned_property.id}) == 2

    async def test_stage_rolls_back_together(self, db_session: AsyncSession, owned_property: Property):
        repo = DocumentRepository(db_session)
        repo.stage(document_data(owned_property))
        repo.stage(document_data(owned_property))

        await db_session.rollback()

        assert await repo.count() == 0

    async def test_count_with_filters(self, db_session: AsyncSession, owned_property: Property):
        repo = DocumentRepository(db_session)
        await repo.create(document_data(owned_property, is_public=True))
        await repo.create(document_data(owned_property, is_public=False))

        assert await repo.count() == 2
        assert await repo.count({"property_id": owned_property.id, "is_public": True}) == 1
        assert await repo.count({"property_id": uuid.uuid4()}) == 0

    async def test_duplicate_reference_rejected(self, db_session: AsyncSession, owned_property: Property):
        with pytest.raises(IntegrityError):
            await PropertyFactory.create_property(db_session, ppuk_reference=owned_property.ppuk_reference)


class TestPartyRepository:
    """Test property party lookups."""

    async def test_relationships_for_user(self, db_session: AsyncSession, occupied_property: Property, occupier_id):
        repo = PartyRepository(db_session)
        await repo.add(occupier_id, occupied_property.id, Relationship.INTERESTED)

        relationships = await repo.get_relationships(occupier_id, occupied_property.id)

        assert sorted(r.value for r in relationships) == ["interested", "occupier"]

    async def test_duplicate_party_rejected(self, db_session: AsyncSession, watched_property: Property, interested_id):
        with pytest.raises(IntegrityError):
            await PartyRepository(db_session).add(interested_id, watched_property.id, Relationship.INTERESTED)

    async def test_remove_only_named_relationship(
        self, db_session: AsyncSession, occupied_property: Property, occupier_id
    ):
        repo = PartyRepository(db_session)
        await repo.add(occupier_id, occupied_property.id, Relationship.INTERESTED)

        assert await repo.remove(occupier_id, occupied_property.id, Relationship.INTERESTED) == 1
        assert await repo.remove(occupier_id, occupied_property.id, Relationship.INTERESTED) == 0
        assert await repo.get_relationships(occupier_id, occupied_property.id) == [Relationship.OCCUPIER]

    async def test_list_for_property_filtered(
        self, db_session: AsyncSession, occupied_property: Property, interested_id
    ):
        repo = PartyRepository(db_session)
        await repo.add(interested_id, occupied_property.id, Relationship.INTERESTED)

        everyone = await repo.list_for_property(occupied_property.id)
        visible = await repo.list_for_property(
            occupied_property.id, relationships=[Relationship.OCCUPIER, Relationship.INTERESTED]
        )

        assert len(everyone) == 3
        assert sorted(party.relationship.value for party in visible) == ["interested", "occupier"]


class TestPropertyRepository:
    """Test party-aware listing and file statistics."""

    async def test_list_for_user_orders_by_update(self, db_session: AsyncSession, owner_id):
        repo = PropertyRepository(db_session)
        first = await PropertyFactory.create_property(db_session, updated_at=datetime(2023, 5, 1))
        second = await PropertyFactory.create_property(db_session, updated_at=datetime(2024, 5, 1))
        await PartyFactory.add_party(db_session, owner_id, first.id, Relationship.OWNER)
        await PartyFactory.add_party(db_session, owner_id, second.id, Relationship.OCCUPIER)

        rows, total = await repo.list_for_user(owner_id)

        assert total == 2
        assert [(prop.id, relationship) for prop, relationship in rows] == [
            (second.id, Relationship.OCCUPIER),
            (first.id, Relationship.OWNER),
        ]

    async def test_list_for_user_pagination(self, db_session: AsyncSession, owner_id):
        for month in range(1, 4):
            prop = await PropertyFactory.create_property(db_session, updated_at=datetime(2024, month, 1))
            await PartyFactory.add_party(db_session, owner_id, prop.id, Relationship.INTERESTED)

        rows, total = await PropertyRepository(db_session).list_for_user(owner_id, limit=1, offset=2)

        assert total == 3
        assert rows[0][0].updated_at.month == 1

    async def test_file_stats(self, db_session: AsyncSession, owned_property: Property, owner_id):
        documents = DocumentRepository(db_session)
        await documents.create(document_data(owned_property, DocumentType.PLANNING))
        await documents.create(document_data(owned_property, DocumentType.PLANNING))
        await documents.create(document_data(owned_property, DocumentType.SURVEY))
        await PhotoRepository(db_session).create({
            "property_id": owned_property.id,
            "file_url": "http://testserver/storage/property-photos/a.png",
            "file_name": "a.png",
            "uploaded_by": owner_id,
        })
        empty_id = uuid.uuid4()

        stats = await PropertyRepository(db_session).get_file_stats([owned_property.id, empty_id])

        assert stats[owned_property.id] == {"document_count": 3, "photo_count": 1, "planning_count": 2}
        assert stats[empty_id] == {"document_count": 0, "photo_count": 0, "planning_count": 0}

    async def test_file_stats_no_ids(self, db_session: AsyncSession):
        assert await PropertyRepository(db_session).get_file_stats([]) == {}


class TestDocumentRepository:
    """Test document listing visibility."""

    async def test_public_only(self, db_session: AsyncSession, owned_property: Property):
        repo = DocumentRepository(db_session)
        public = await repo.create(document_data(owned_property, is_public=True))
        await repo.create(document_data(owned_property, is_public=False))

        assert [doc.id for doc in await repo.list_for_property(owned_property.id, public_only=True)] == [public.id]
        assert len(await repo.list_for_property(owned_property.id)) == 2
        assert await repo.latest_upload(owned_property.id) is not None

    async def test_latest_upload_without_documents(self, db_session: AsyncSession, owned_property: Property):
        assert await DocumentRepository(db_session).latest_upload(owned_property.id) is None

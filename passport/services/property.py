"""
Property service: the caller's dashboard, the watchlist and the passport snapshot.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import Optional
import logging
import uuid

from passport.models.enums import Relationship
from passport.repositories.media import DocumentRepository, PhotoRepository
from passport.repositories.party import PartyRepository
from passport.repositories.property import PropertyRepository
from passport.schemas.property import (
    DocumentSummary,
    MyPropertiesPayload,
    MyPropertiesQuery,
    Pagination,
    PartySummary,
    PhotoSummary,
    PropertyCard,
    PropertyCardStats,
    PropertySummary,
    SnapshotPayload,
    SnapshotRequest,
    SnapshotStats,
    WatchlistResult,
)
from passport.services.access import AccessService, RELATIONSHIP_PRECEDENCE
from passport.utils.exceptions import PropertyNotFoundError, RelationshipConflictError

logger = logging.getLogger(__name__)

# Party relationships visible to each caller relationship in a snapshot
VISIBLE_PARTIES = {
    Relationship.OWNER: None,
    Relationship.OCCUPIER: (Relationship.OCCUPIER, Relationship.INTERESTED),
    Relationship.INTERESTED: (Relationship.INTERESTED,),
}

RECENT_DOCUMENTS_LIMIT = 10


class PropertyService:
    """
    Business logic over properties and their parties.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.party_repo = PartyRepository(db_session)
        self.document_repo = DocumentRepository(db_session)
        self.photo_repo = PhotoRepository(db_session)
        self.access_service = AccessService(db_session)

    async def list_user_properties(self, user_id: uuid.UUID, query: MyPropertiesQuery) -> MyPropertiesPayload:
        """
        Property cards for every property the user is a party to.

        Args:
            user_id: Authenticated caller
            query: Relationship filter and pagination

        Returns:
            Cards ordered by property last update, newest first
        """
        rows, total = await self.property_repo.list_for_user(
            user_id, relationship=query.relationship, limit=query.limit, offset=query.offset
        )
        file_stats = await self.property_repo.get_file_stats({prop.id for prop, _ in rows})

        cards = []
        for prop, relationship in rows:
            # Notes and tasks live in the client app and are not counted here
            stats = PropertyCardStats(**file_stats[prop.id])
            summary = PropertySummary.model_validate(prop).model_dump()
            cards.append(PropertyCard(**summary, relationship=relationship, stats=stats))

        logger.info(f"Listed {len(cards)} of {total} properties for user {user_id}")
        return MyPropertiesPayload(
            properties=cards,
            total=total,
            relationship=query.relationship,
            pagination=Pagination(
                limit=query.limit,
                offset=query.offset,
                has_more=query.offset + len(cards) < total,
            ),
        )

    async def add_to_watchlist(self, user_id: uuid.UUID, property_id: uuid.UUID) -> WatchlistResult:
        """
        Mark the user as interested in a property.

        Raises:
            PropertyNotFoundError: If the property does not exist
            RelationshipConflictError: If the user already owns or occupies it
        """
        prop = await self.property_repo.get_by_id(property_id)
        if prop is None:
            raise PropertyNotFoundError(str(property_id))

        held = set(await self.party_repo.get_relationships(user_id, property_id))
        if prop.claimed_by == user_id:
            held.add(Relationship.OWNER)

        if Relationship.INTERESTED in held:
            message = "Property already in watchlist"
        elif held:
            existing = next(r for r in RELATIONSHIP_PRECEDENCE if r in held)
            raise RelationshipConflictError(existing.value)
        else:
            try:
                await self.party_repo.add(user_id, property_id, Relationship.INTERESTED)
                message = "Property added to watchlist successfully"
                logger.info(f"User {user_id} added property {property_id} to watchlist")
            except IntegrityError:
                # A concurrent request inserted the same row first
                message = "Property already in watchlist"

        return WatchlistResult(
            relationship=Relationship.INTERESTED,
            property_id=property_id,
            message=message,
        )

    async def remove_from_watchlist(self, user_id: uuid.UUID, property_id: uuid.UUID) -> WatchlistResult:
        """Drop the user's interested row, if any. Other relationships are untouched."""
        removed = await self.party_repo.remove(user_id, property_id, Relationship.INTERESTED)
        if removed:
            logger.info(f"User {user_id} removed property {property_id} from watchlist")
            message = "Property removed from watchlist successfully"
        else:
            message = "Property not in watchlist"
        return WatchlistResult(property_id=property_id, message=message)

    async def get_snapshot(self, user_id: uuid.UUID, request: SnapshotRequest) -> SnapshotPayload:
        """
        Aggregated passport view, filtered by the caller's relationship.

        Raises:
            PropertyAccessDeniedError: If the caller has no relationship to the property
        """
        access = await self.access_service.authorize_property_access(user_id, request.property_id)
        prop = access.property
        public_only = access.relationship == Relationship.INTERESTED

        parties = await self.party_repo.list_for_property(
            prop.id, relationships=VISIBLE_PARTIES[access.relationship]
        )

        documents = []
        if request.include_documents:
            documents = await self.document_repo.list_for_property(
                prop.id, public_only=public_only, limit=RECENT_DOCUMENTS_LIMIT
            )
        photos = []
        if request.include_photos:
            photos = await self.photo_repo.list_for_property(prop.id)

        document_count = await self.document_repo.count(
            {"property_id": prop.id, "is_public": True} if public_only else {"property_id": prop.id}
        )
        photo_count = await self.photo_repo.count({"property_id": prop.id})
        last_document_upload = await self.document_repo.latest_upload(prop.id, public_only=public_only)

        return SnapshotPayload(
            property=PropertySummary.model_validate(prop),
            relationship=access.relationship,
            parties=[PartySummary.model_validate(party) for party in parties],
            stats=SnapshotStats(
                document_count=document_count,
                photo_count=photo_count,
                party_count=len(parties),
                last_document_upload=last_document_upload,
                last_activity=_latest(prop.updated_at, last_document_upload),
            ),
            recent_documents=[DocumentSummary.model_validate(doc) for doc in documents],
            photos=[PhotoSummary.model_validate(photo) for photo in photos],
        )


def _latest(first: datetime, second: Optional[datetime]) -> datetime:
    if second is None:
        return first
    return max(first, second)

"""
Property party repository: relationship lookups used by access checks and the watchlist.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from passport.models.party import PropertyParty
from passport.models.enums import Relationship
from passport.repositories.base import BaseRepository
from typing import Iterable, List, Optional
import uuid
import logging

logger = logging.getLogger(__name__)


class PartyRepository(BaseRepository[PropertyParty]):
    """Repository for property_parties rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyParty, db)

    async def get_relationships(self, user_id: uuid.UUID, property_id: uuid.UUID) -> List[Relationship]:
        """Every relationship the user holds on the property."""
        result = await self.db.execute(
            select(PropertyParty.relationship)
            .where(PropertyParty.user_id == user_id, PropertyParty.property_id == property_id)
        )
        return list(result.scalars().all())

    async def add(self, user_id: uuid.UUID, property_id: uuid.UUID, relationship: Relationship) -> PropertyParty:
        """Insert a party row. Unique violations propagate as IntegrityError."""
        return await self.create({
            "user_id": user_id,
            "property_id": property_id,
            "relationship": relationship,
        })

    async def remove(self, user_id: uuid.UUID, property_id: uuid.UUID, relationship: Relationship) -> int:
        try:
            result = await self.db.execute(
                delete(PropertyParty).where(
                    PropertyParty.user_id == user_id,
                    PropertyParty.property_id == property_id,
                    PropertyParty.relationship == relationship,
                )
            )
            await self.db.commit()
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to remove {relationship.value} party for property {property_id}: {e}")
            raise

    async def list_for_property(
        self,
        property_id: uuid.UUID,
        relationships: Optional[Iterable[Relationship]] = None
    ) -> List[PropertyParty]:
        """Parties of a property, newest assignment first, optionally limited to some relationships."""
        query = select(PropertyParty).where(PropertyParty.property_id == property_id)
        if relationships is not None:
            query = query.where(PropertyParty.relationship.in_(list(relationships)))
        result = await self.db.execute(query.order_by(PropertyParty.assigned_at.desc()))
        return list(result.scalars().all())

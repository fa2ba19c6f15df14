"""
Property repository with party-aware listing and per-property file statistics.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from passport.models.property import Property
from passport.models.party import PropertyParty
from passport.models.media import Document, PropertyPhoto
from passport.models.enums import DocumentType, Relationship
from passport.repositories.base import BaseRepository
from typing import Dict, Iterable, List, Optional, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class PropertyRepository(BaseRepository[Property]):
    """Repository for property records."""

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        relationship: Optional[Relationship] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Tuple[Property, Relationship]], int]:
        """
        Properties the user is a party to, most recently updated first.

        Returns:
            Tuple of ((property, relationship) pairs, total matching party rows)
        """
        conditions = [PropertyParty.user_id == user_id]
        if relationship is not None:
            conditions.append(PropertyParty.relationship == relationship)

        count_query = (
            select(func.count(PropertyParty.id))
            .join(Property, Property.id == PropertyParty.property_id)
            .where(*conditions)
        )
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(Property, PropertyParty.relationship)
            .join(PropertyParty, PropertyParty.property_id == Property.id)
            .where(*conditions)
            .order_by(Property.updated_at.desc(), Property.id)
            .offset(offset)
            .limit(limit)
        )
        rows = (await self.db.execute(query)).all()

        logger.debug(f"Found {len(rows)} of {total} properties for user {user_id}")
        return [(row[0], row[1]) for row in rows], total

    async def get_file_stats(self, property_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Dict[str, int]]:
        """Document, planning-document and photo counts keyed by property id."""
        ids = list(property_ids)
        stats = {
            property_id: {"document_count": 0, "photo_count": 0, "planning_count": 0}
            for property_id in ids
        }
        if not ids:
            return stats

        document_rows = await self.db.execute(
            select(Document.property_id, Document.document_type, func.count(Document.id))
            .where(Document.property_id.in_(ids))
            .group_by(Document.property_id, Document.document_type)
        )
        for property_id, document_type, count in document_rows.all():
            stats[property_id]["document_count"] += count
            if document_type == DocumentType.PLANNING:
                stats[property_id]["planning_count"] += count

        photo_rows = await self.db.execute(
            select(PropertyPhoto.property_id, func.count(PropertyPhoto.id))
            .where(PropertyPhoto.property_id.in_(ids))
            .group_by(PropertyPhoto.property_id)
        )
        for property_id, count in photo_rows.all():
            stats[property_id]["photo_count"] = count

        return stats

"""
Repositories for file metadata rows.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from passport.models.media import Document, PropertyPhoto, Media
from passport.repositories.base import BaseRepository
from datetime import datetime
from typing import List, Optional
import uuid


class DocumentRepository(BaseRepository[Document]):
    """Repository for documents."""

    def __init__(self, db: AsyncSession):
        super().__init__(Document, db)

    async def list_for_property(
        self,
        property_id: uuid.UUID,
        public_only: bool = False,
        limit: int = 100
    ) -> List[Document]:
        filters = {"property_id": property_id}
        if public_only:
            filters["is_public"] = True
        return await self.get_multi(limit=limit, filters=filters, order_by="-created_at")

    async def latest_upload(self, property_id: uuid.UUID, public_only: bool = False) -> Optional[datetime]:
        query = select(func.max(Document.created_at)).where(Document.property_id == property_id)
        if public_only:
            query = query.where(Document.is_public.is_(True))
        return (await self.db.execute(query)).scalar()


class PhotoRepository(BaseRepository[PropertyPhoto]):
    """Repository for property photos."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyPhoto, db)

    async def list_for_property(self, property_id: uuid.UUID, limit: int = 100) -> List[PropertyPhoto]:
        result = await self.db.execute(
            select(PropertyPhoto)
            .where(PropertyPhoto.property_id == property_id)
            .order_by(PropertyPhoto.is_featured.desc(), PropertyPhoto.created_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())


class MediaRepository(BaseRepository[Media]):
    """Repository for generic media rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(Media, db)

"""
Property access decisions.

A caller may act on a property when they are its claiming owner
(`properties.claimed_by`), or when they hold a `property_parties` row whose
relationship is in the permitted set for the operation.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from typing import FrozenSet
import logging
import uuid

from passport.models.enums import Relationship
from passport.models.property import Property
from passport.repositories.party import PartyRepository
from passport.repositories.property import PropertyRepository
from passport.utils.exceptions import PropertyAccessDeniedError

logger = logging.getLogger(__name__)

# Reading a passport or its third-party lookups
READ_RELATIONSHIPS: FrozenSet[Relationship] = frozenset(
    {Relationship.OWNER, Relationship.OCCUPIER, Relationship.INTERESTED}
)
# Uploading photos and documents
WRITE_RELATIONSHIPS: FrozenSet[Relationship] = frozenset({Relationship.OWNER})

# Strongest first
RELATIONSHIP_PRECEDENCE = (Relationship.OWNER, Relationship.OCCUPIER, Relationship.INTERESTED)


class PropertyAccess:
    """Outcome of a successful access check."""

    def __init__(self, property: Property, relationship: Relationship):
        self.property = property
        self.relationship = relationship

    @property
    def is_owner(self) -> bool:
        return self.relationship == Relationship.OWNER


class AccessService:
    """Authorizes callers against properties."""

    def __init__(self, db_session: AsyncSession):
        self.property_repo = PropertyRepository(db_session)
        self.party_repo = PartyRepository(db_session)

    async def authorize_property_access(
        self,
        user_id: uuid.UUID,
        property_id: uuid.UUID,
        allowed: FrozenSet[Relationship] = READ_RELATIONSHIPS
    ) -> PropertyAccess:
        """
        Check that the user may access the property.

        A property that does not exist is reported the same way as one the
        caller may not see.

        Raises:
            PropertyAccessDeniedError: If no permitted relationship exists
        """
        property = await self.property_repo.get_by_id(property_id)
        if property is None:
            logger.warning(f"Access check for unknown property {property_id} by {user_id}")
            raise PropertyAccessDeniedError()

        if property.claimed_by == user_id:
            return PropertyAccess(property, Relationship.OWNER)

        held = set(await self.party_repo.get_relationships(user_id, property_id))
        for relationship in RELATIONSHIP_PRECEDENCE:
            if relationship in held and relationship in allowed:
                return PropertyAccess(property, relationship)

        logger.warning(
            f"Access denied to property {property_id} for user {user_id}",
            extra={"user_id": str(user_id), "property_id": str(property_id), "held": sorted(r.value for r in held)}
        )
        raise PropertyAccessDeniedError()

"""
Authentication schemas.
"""

from pydantic import BaseModel
from typing import Optional
import uuid


class AuthenticatedUser(BaseModel):
    """Identity resolved from a bearer token."""

    id: uuid.UUID
    email: Optional[str] = None
    role: Optional[str] = None

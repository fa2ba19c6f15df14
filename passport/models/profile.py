"""
Profile model: one row per authenticated Supabase user.
"""

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column
from passport.database import Base, TimestampMixin
from passport.models.enums import UserRole, pg_enum
from typing import Optional


class Profile(TimestampMixin, Base):
    """
    Application profile keyed by the auth user id.
    Authentication itself lives in Supabase Auth; this row only holds app data.
    """

    __tablename__ = "profiles"

    role: Mapped[UserRole] = mapped_column(
        pg_enum(UserRole, "user_role"),
        nullable=False,
        default=UserRole.BUYER
    )
    full_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role={self.role})>"

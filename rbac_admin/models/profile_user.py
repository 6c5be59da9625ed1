"""
Profile model.

A profile holds personal details and may exist before it is linked to a
user account. At most one profile is linked to a user.
"""

from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, StandardMixin


class ProfileUser(Base, StandardMixin):
    """Personal profile, optionally linked to a user."""

    __tablename__ = "profile_users"

    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    user: Mapped[Optional["User"]] = relationship(back_populates="profile", lazy="noload")

    def __repr__(self) -> str:
        return f"<ProfileUser {self.first_name} {self.last_name}>"

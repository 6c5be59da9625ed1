"""
User model.
"""

from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, StandardMixin


class User(Base, StandardMixin):
    """User account model."""

    __tablename__ = "users"
    __sensitive_columns__ = frozenset({"password_hash", "refresh_token"})

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role_id: Mapped[int] = mapped_column(
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Current refresh token; replaced on every rotation, cleared on logout
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    role: Mapped["Role"] = relationship(back_populates="users", lazy="joined")
    profile: Mapped[Optional["ProfileUser"]] = relationship(
        back_populates="user",
        uselist=False,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"

"""
Role model.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, StandardMixin


class Role(Base, StandardMixin):
    """A named bundle of permissions assigned to users."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)

    # Relationships
    permission_links: Mapped[list["RoleHasPermission"]] = relationship(
        back_populates="role",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    users: Mapped[list["User"]] = relationship(back_populates="role", lazy="noload")

    @property
    def active_permissions(self) -> list["Permission"]:
        """Permissions linked through an active association."""
        return [link.permission for link in self.permission_links if link.status]

    def __repr__(self) -> str:
        return f"<Role {self.name}>"

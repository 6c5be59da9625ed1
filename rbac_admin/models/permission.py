"""
Permission model.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, StandardMixin


class Permission(Base, StandardMixin):
    """A single grantable capability, e.g. `edit_admin_role`."""

    __tablename__ = "permissions"

    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False, index=True)

    role_links: Mapped[list["RoleHasPermission"]] = relationship(back_populates="permission", lazy="noload")

    def __repr__(self) -> str:
        return f"<Permission {self.name}>"

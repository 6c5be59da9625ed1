"""
Role-permission association.

The link carries its own status: removing a permission from a role
deactivates the row, and assigning it again reactivates the same row.
"""

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, StandardMixin


class RoleHasPermission(Base, StandardMixin):
    """Association between a role and a permission."""

    __tablename__ = "role_has_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    role_id: Mapped[int] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    permission_id: Mapped[int] = mapped_column(
        ForeignKey("permissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role: Mapped["Role"] = relationship(back_populates="permission_links")
    permission: Mapped["Permission"] = relationship(back_populates="role_links", lazy="joined")

    def __repr__(self) -> str:
        return f"<RoleHasPermission role={self.role_id} permission={self.permission_id}>"

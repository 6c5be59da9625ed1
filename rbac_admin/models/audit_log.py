"""Audit log model for tracking all changes."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from rbac_admin.utils.timezone import utc_now

from .base import Base, IdMixin


class AuditLog(Base, IdMixin):
    """
    Immutable audit log for tracking changes in the system.

    Every mutating admin operation writes one entry with snapshots of the
    entity before and after.
    """

    __tablename__ = "audit_logs"

    # What was affected
    module: Mapped[str] = mapped_column(String(100), index=True)  # "User", "Role", ...
    action: Mapped[str] = mapped_column(String(50))  # "create", "update", "assignPermission", ...
    entity_id: Mapped[Optional[int]] = mapped_column(nullable=True)

    # Who performed the action
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    # Snapshots
    data_before: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    data_after: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Request context
    request_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.module}.{self.action}:{self.entity_id}>"

"""
Base model classes and mixins.

Standard mixins shared by every table:
- IdMixin: auto-increment integer primary key
- TimestampMixin: created_at, updated_at (always use)
- StatusMixin: status flag used for soft deletes and activation
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from rbac_admin.utils.timezone import utc_now


class Base(DeclarativeBase):
    """Base class for all models."""

    # Common type annotations - all datetimes are timezone-aware
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }

    # Columns never copied into dictionaries (audit snapshots, exports)
    __sensitive_columns__ = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """Convert model to a JSON-friendly dictionary."""
        data = {}
        for column in self.__table__.columns:
            if column.key in self.__sensitive_columns__:
                continue
            value = getattr(self, column.key)
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            data[column.key] = value
        return data


# ============================================================
# PRIMARY KEY MIXIN
# ============================================================

class IdMixin:
    """
    Mixin for an auto-increment integer primary key.

    Usage:
        class MyModel(Base, IdMixin):
            __tablename__ = "my_table"
            # No need to define id column
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


# ============================================================
# TIMESTAMP MIXIN
# ============================================================

class TimestampMixin:
    """
    Mixin for created_at and updated_at timestamps.

    All timestamps are stored in UTC (timezone-aware). Values are set on
    the Python side as well, so they are available right after a flush.

    Usage:
        class MyModel(Base, TimestampMixin):
            __tablename__ = "my_table"
            ...
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
    )


# ============================================================
# STATUS MIXIN
# ============================================================

class StatusMixin:
    """
    Mixin for the active/inactive flag.

    Records are never hard deleted; DELETE sets status to False.
    """

    status: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)


class StandardMixin(IdMixin, TimestampMixin, StatusMixin):
    """
    Standard mixin combining integer id + timestamps + status.

    Provides:
        - id: integer primary key
        - created_at: When created (UTC)
        - updated_at: When last modified (UTC)
        - status: Active flag
    """
    pass

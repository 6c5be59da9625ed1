"""
Schema base classes.

API payloads use camelCase (`roleId`, `createdAt`); Python code uses
snake_case. Both spellings are accepted on input.
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PositiveInt
from pydantic.alias_generators import to_camel

from rbac_admin.utils.timezone import to_utc

# Aware UTC datetime; naive values (as SQLite returns them) are taken to be UTC
UtcDatetime = Annotated[datetime, AfterValidator(to_utc)]


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    """Plain acknowledgement."""

    message: str


class BulkStatusUpdate(CamelModel):
    """Set status on many rows at once."""

    ids: list[PositiveInt] = Field(min_length=1)
    status: bool


class StatusUpdate(CamelModel):
    status: bool


class BulkStatusResult(CamelModel):
    count: int

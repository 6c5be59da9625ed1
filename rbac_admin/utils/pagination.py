"""
Pagination utilities.

A repository returns a PageFetchResult (one page of rows plus the total
match count); shape_page turns it into the envelope every list endpoint
responds with:

    {
        "data": [...],
        "meta": {"total": 42, "perPage": 10, "currentPage": 2, "lastPage": 5}
    }

Usage:
    result = await repo.fetch_page(build_user_query(params), params)
    return shape_page(result, params.page_size, params.page)
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ============================================================
# FETCH RESULT
# ============================================================

@dataclass
class PageFetchResult(Generic[T]):
    """One page of rows as fetched from storage."""

    data: Sequence[T] = field(default_factory=list)
    total: int = 0
    page: Optional[int] = None
    page_size: Optional[int] = None

    def map(self, fn: Callable[[T], Any]) -> "PageFetchResult[Any]":
        """Same page with every row passed through fn."""
        return PageFetchResult(
            data=[fn(row) for row in self.data],
            total=self.total,
            page=self.page,
            page_size=self.page_size,
        )


# ============================================================
# RESPONSE ENVELOPE
# ============================================================

class PageMeta(BaseModel):
    """Pagination metadata."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(ge=0)
    per_page: int = Field(alias="perPage", ge=1)
    current_page: int = Field(alias="currentPage", ge=1)
    last_page: int = Field(alias="lastPage", ge=1)


class ServerResponse(BaseModel, Generic[T]):
    """Paginated list response."""

    data: list[T]
    meta: PageMeta


def last_page(total: int, per_page: int) -> int:
    """Number of the last page; an empty result still has page 1."""
    if per_page < 1:
        return 1
    return max(1, math.ceil(total / per_page))


def shape_page(
    result: PageFetchResult[T],
    requested_page_size: int,
    requested_page: int = 1,
) -> ServerResponse[T]:
    """
    Wrap a fetch result in the standard envelope.

    The fetched page/page_size win over the requested values when present.
    """
    per_page = result.page_size or requested_page_size
    current_page = result.page or requested_page

    return ServerResponse(
        data=list(result.data),
        meta=PageMeta(
            total=result.total,
            per_page=per_page,
            current_page=current_page,
            last_page=last_page(result.total, per_page),
        ),
    )

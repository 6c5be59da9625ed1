"""
List query dependency.

Every list route takes `params: ListQuery`. The declared Query parameters
only document the common inputs in the OpenAPI schema; the full raw query
string (bracketed filters, embedded JSON, unknown filter keys) is read from
the request and normalized in one place.
"""

from typing import Annotated, Optional

from fastapi import Depends, Query, Request

from rbac_admin.core.config import settings
from rbac_admin.utils.query import ListParams, normalize_list_params, query_params_to_dict


async def get_list_params(
    request: Request,
    page: Annotated[Optional[str], Query(description="Page number, from 1")] = None,
    page_size: Annotated[Optional[str], Query(alias="pageSize", description="Rows per page, alias perPage")] = None,
    sort_by: Annotated[Optional[str], Query(alias="sortBy")] = None,
    sort_dir: Annotated[Optional[str], Query(alias="sortDir", description="asc or desc")] = None,
    search: Annotated[Optional[str], Query(description="Substring search, alias q")] = None,
    query: Annotated[
        Optional[str],
        Query(description="JSON object with any of the list parameters and filters"),
    ] = None,
) -> ListParams:
    """Normalized list parameters for the current request."""
    raw = query_params_to_dict(request.query_params.multi_items())
    return normalize_list_params(
        raw,
        default_page_size=settings.pagination.default_page_size,
        max_page_size=settings.pagination.max_page_size,
        json_param=settings.pagination.json_param,
        on_error=settings.pagination.on_error,
    )


ListQuery = Annotated[ListParams, Depends(get_list_params)]

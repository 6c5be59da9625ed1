"""Utility functions."""

from rbac_admin.utils.pagination import (
    PageFetchResult,
    PageMeta,
    ServerResponse,
    last_page,
    shape_page,
)
from rbac_admin.utils.parse import (
    as_text,
    clamp_int,
    day_range,
    parse_bool,
    parse_date_only,
)
from rbac_admin.utils.query import (
    DEFAULT_ALLOWED_KEYS,
    ListParams,
    extract_balanced_object,
    fold_bracket_filters,
    merge_query_json,
    normalize_list_params,
)

__all__ = [
    # Pagination
    "PageFetchResult",
    "PageMeta",
    "ServerResponse",
    "last_page",
    "shape_page",
    # Primitive parsers
    "as_text",
    "clamp_int",
    "day_range",
    "parse_bool",
    "parse_date_only",
    # Query normalization
    "DEFAULT_ALLOWED_KEYS",
    "ListParams",
    "extract_balanced_object",
    "fold_bracket_filters",
    "merge_query_json",
    "normalize_list_params",
]

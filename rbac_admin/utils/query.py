"""
List query normalization.

Every list endpoint accepts the same loosely structured input and turns it
into one canonical ListParams:

    GET /admin/user?page=2&perPage=25&sortBy=email&sortDir=ASC
    GET /admin/user?filters[status]=true&filters[createdAt][from]=2025-01-01
    GET /admin/user?query={"q":"ana","status":true}
    GET /admin/user?query=%7B%22status%22%3Atrue%7D

Pipeline:
    raw params -> merge_query_json -> fold_bracket_filters -> normalize_list_params
"""

import json
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union
from urllib.parse import unquote

from rbac_admin.core.exceptions import ValidationError
from rbac_admin.utils.parse import as_text, clamp_int

Scalar = Union[str, int, float, bool]
DateRange = dict[str, str]
FilterValue = Union[Scalar, DateRange, list[Scalar]]

BRACKET_FILTER_RE = re.compile(r"^filters\[(.+?)\](?:\[(from|to)\])?$")

CORE_KEYS = frozenset({"page", "pageSize", "perPage", "sortBy", "sortDir", "search", "q"})

DEFAULT_ALLOWED_KEYS = (
    "page",
    "pageSize",
    "perPage",
    "q",
    "search",
    "sortBy",
    "sortDir",
    "status",
    "roleId",
    "userId",
    "role",
    "name",
    "email",
    "createdAt",
    "filters",
)

FORBIDDEN_KEYS = frozenset({"__proto__", "constructor", "prototype"})

INT64_MAX = 2**63 - 1

QUOTE_CHARS = "'\""
BOM = "\ufeff"


# ============================================================
# LIST PARAMS
# ============================================================

@dataclass(frozen=True)
class ListParams:
    """Canonical, immutable list request."""

    page: int = 1
    page_size: int = 10
    sort_by: Optional[str] = None
    sort_dir: Optional[str] = None
    search: Optional[str] = None
    filters: Mapping[str, FilterValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.sort_dir not in (None, "asc", "desc"):
            raise ValueError("sort_dir must be 'asc', 'desc' or None")
        object.__setattr__(self, "filters", MappingProxyType(dict(self.filters)))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


# ============================================================
# BRACKET FILTERS
# ============================================================

def fold_bracket_filters(flat: Mapping[str, Any]) -> dict[str, Any]:
    """
    Fold `filters[name]` and `filters[name][from|to]` keys into a dict.

        {"filters[status]": "true",
         "filters[createdAt][from]": "2025-01-01",
         "filters[createdAt][to]": "2025-01-31",
         "page": "2"}
        -> {"status": "true", "createdAt": {"from": "2025-01-01", "to": "2025-01-31"}}

    Keys that do not match are ignored.
    """
    folded: dict[str, Any] = {}

    for key, value in flat.items():
        match = BRACKET_FILTER_RE.match(key)
        if not match:
            continue

        name, bound = match.group(1), match.group(2)
        if bound:
            bucket = folded.get(name)
            if not isinstance(bucket, dict):
                bucket = {}
                folded[name] = bucket
            bucket[bound] = value
        else:
            folded[name] = value

    return folded


def unfold_bracket_filters(filters: Mapping[str, Any]) -> dict[str, Any]:
    """Inverse of fold_bracket_filters, used to build query strings."""
    flat: dict[str, Any] = {}
    for name, value in filters.items():
        if isinstance(value, dict):
            for bound in ("from", "to"):
                if bound in value:
                    flat[f"filters[{name}][{bound}]"] = value[bound]
        else:
            flat[f"filters[{name}]"] = value
    return flat


# ============================================================
# EMBEDDED JSON
# ============================================================

def extract_balanced_object(text: str) -> Optional[str]:
    """
    Return the first balanced {...} block in text, or None.

    Braces inside single- or double-quoted strings are ignored, and a
    backslash escapes the next character inside a string.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    quote: Optional[str] = None
    escaped = False

    for index in range(start, len(text)):
        char = text[index]

        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in QUOTE_CHARS:
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    return None


def _load_object(candidate: str) -> dict[str, Any]:
    value = json.loads(candidate)
    if not isinstance(value, dict):
        raise ValueError("JSON payload must be an object")
    return value


def _strip_quotes(text: str) -> str:
    if text[:1] in QUOTE_CHARS:
        text = text[1:]
    if text[-1:] in QUOTE_CHARS:
        text = text[:-1]
    return text


def _decode(text: str) -> str:
    try:
        return unquote(text, errors="strict")
    except UnicodeDecodeError:
        return text


def parse_json_object(raw: str) -> tuple[Optional[dict[str, Any]], list[str]]:
    """
    Parse a JSON object smuggled into a query string value.

    Returns (object, []) on success or (None, errors) where errors holds one
    message per attempt.
    """
    text = _decode(raw).strip()
    if text.startswith(BOM):
        text = text[len(BOM):].strip()

    def balanced() -> dict[str, Any]:
        block = extract_balanced_object(text)
        if block is None:
            raise ValueError("no balanced JSON object found")
        return _load_object(block)

    attempts = (
        ("direct", lambda: _load_object(text)),
        ("balanced", balanced),
        ("unquoted", lambda: _load_object(_strip_quotes(text))),
    )

    errors: list[str] = []
    for name, attempt in attempts:
        try:
            return attempt(), []
        except ValueError as exc:
            errors.append(f"{name}: {exc}")
    return None, errors


def merge_query_json(
    query: Mapping[str, Any],
    allowed_keys: Iterable[str] = DEFAULT_ALLOWED_KEYS,
    on_error: str = "throw",
    param: str = "query",
) -> dict[str, Any]:
    """
    Merge a JSON payload carried by `param` into the query.

    Only allow-listed keys survive, and parsed keys override existing ones.
    On parse failure raises ValidationError (on_error="throw") or returns
    the query unchanged (on_error="ignore").
    """
    source = query.get(param)
    if not isinstance(source, str):
        return dict(query)

    parsed, errors = parse_json_object(source)
    if parsed is None:
        if on_error == "throw":
            raise ValidationError(
                f"Could not parse '{param}' as JSON. Errors: {' | '.join(errors)}",
                details={"param": param, "attempts": errors},
            )
        return dict(query)

    allowed = set(allowed_keys) - FORBIDDEN_KEYS
    safe = {key: value for key, value in parsed.items() if key in allowed}
    return {**query, **safe}


# ============================================================
# NORMALIZATION
# ============================================================

def _is_absent(value: Any) -> bool:
    return value is None or value == ""


def _clean_value(value: Any) -> Any:
    """Drop empty parts of a filter value; returns None when nothing is left."""
    if isinstance(value, dict):
        cleaned = {k: v for k, v in value.items() if not _is_absent(v)}
        return cleaned or None
    if isinstance(value, (list, tuple)):
        cleaned = [v for v in value if not _is_absent(v)]
        return cleaned or None
    if _is_absent(value):
        return None
    return value


def _sort_dir(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    direction = value.strip().lower()
    return direction if direction in ("asc", "desc") else None


def _last(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def normalize_list_params(
    raw: Mapping[str, Any],
    *,
    default_page_size: int = 10,
    max_page_size: int = 1000,
    json_param: str = "query",
    on_error: str = "throw",
    allowed_keys: Iterable[str] = DEFAULT_ALLOWED_KEYS,
) -> ListParams:
    """Build ListParams from whatever shape of query input arrived."""
    query = merge_query_json(raw, allowed_keys=allowed_keys, on_error=on_error, param=json_param)
    query.pop(json_param, None)

    nested = query.get("filters")
    if isinstance(nested, str):
        parsed, errors = parse_json_object(nested)
        if parsed is None and on_error == "throw":
            raise ValidationError(
                f"Could not parse 'filters' as JSON. Errors: {' | '.join(errors)}",
                details={"param": "filters", "attempts": errors},
            )
        nested = parsed
    if not isinstance(nested, dict):
        nested = {}

    folded = fold_bracket_filters(query)
    if folded:
        nested = {**nested, **folded}
        query = {k: v for k, v in query.items() if not BRACKET_FILTER_RE.match(k)}

    raw_size = _last(query.get("pageSize"))
    if _is_absent(raw_size):
        raw_size = _last(query.get("perPage"))
    if _is_absent(raw_size):
        raw_size = default_page_size
    page_size = clamp_int(raw_size, 1, max_page_size)
    # OFFSET is bound as a signed 64-bit integer
    page = clamp_int(_last(query.get("page")) or 1, 1, INT64_MAX // page_size + 1)

    sort_by = as_text(_last(query.get("sortBy")))
    sort_dir = _sort_dir(_last(query.get("sortDir")))

    search = as_text(_last(query.get("search")))
    if search is None:
        search = as_text(_last(query.get("q")))

    filters: dict[str, Any] = {}
    for key, value in query.items():
        if key in CORE_KEYS or key == "filters":
            continue
        filters[key] = value
    filters.update(nested)

    cleaned = {}
    for key, value in filters.items():
        value = _clean_value(value)
        if value is not None:
            cleaned[key] = value

    return ListParams(
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_dir=sort_dir,
        search=search,
        filters=cleaned,
    )


def query_params_to_dict(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Collapse multi-valued query params: repeated keys become lists."""
    result: dict[str, Any] = {}
    for key, value in items:
        if key in result:
            existing = result[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[key] = [existing, value]
        else:
            result[key] = value
    return result

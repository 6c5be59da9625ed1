"""
Predicate and order builders for list endpoints.

Each builder turns a ListParams into SQLAlchemy WHERE clauses and an
ORDER BY list for one entity. Builders are pure: they never touch the
session and never raise on malformed filter values (a bad value simply
does not filter).

Public field names are camelCase and map to model columns through the
explicit *_SORT_FIELDS dicts; anything outside those dicts falls back to
`id DESC`.

Usage:
    query = build_user_query(params, tz_name=settings.date_range_timezone)
    stmt = select(User).where(*query.where).order_by(*query.order_by)
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from sqlalchemy import ColumnElement

from rbac_admin.models.permission import Permission
from rbac_admin.models.role import Role
from rbac_admin.models.user import User
from rbac_admin.utils.parse import as_text, day_range, parse_bool
from rbac_admin.utils.query import INT64_MAX, ListParams

LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class EntityQuery:
    """WHERE predicates (ANDed) and ORDER BY clauses for one list request."""

    where: list[ColumnElement[bool]] = field(default_factory=list)
    order_by: list[Any] = field(default_factory=list)


# ============================================================
# ALLOW-LISTS
# ============================================================

USER_SORT_FIELDS = {
    "id": User.id,
    "email": User.email,
    "status": User.status,
    "createdAt": User.created_at,
    "updatedAt": User.updated_at,
}

ROLE_SORT_FIELDS = {
    "id": Role.id,
    "name": Role.name,
    "status": Role.status,
    "createdAt": Role.created_at,
    "updatedAt": Role.updated_at,
}

PERMISSION_SORT_FIELDS = {
    "id": Permission.id,
    "name": Permission.name,
    "status": Permission.status,
    "createdAt": Permission.created_at,
    "updatedAt": Permission.updated_at,
}


# ============================================================
# HELPERS
# ============================================================

def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains_ci(column: Any, term: str) -> ColumnElement[bool]:
    """Case-insensitive substring match."""
    return column.ilike(f"%{escape_like(term)}%", escape=LIKE_ESCAPE)


def resolve_search(params: ListParams, entity_field: str) -> Optional[str]:
    """search, then q, then the entity's own text field."""
    if params.search:
        return params.search
    for key in ("search", "q", entity_field):
        text = as_text(params.filters.get(key))
        if text:
            return text
    return None


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return None
    if not isinstance(value, int):
        return None
    # Ids outside the column range cannot be bound
    if not -INT64_MAX - 1 <= value <= INT64_MAX:
        return None
    return value


def _date_bounds(value: Any) -> tuple[Any, Any]:
    if isinstance(value, Mapping):
        return value.get("from"), value.get("to")
    if isinstance(value, str):
        # A bare date means that whole day
        return value, value
    return None, None


def common_predicates(
    params: ListParams,
    model: Any,
    tz_name: str,
) -> list[ColumnElement[bool]]:
    """status and createdAt predicates shared by every entity."""
    where: list[ColumnElement[bool]] = []

    status = parse_bool(params.filters.get("status"), loose=True)
    if status is not None:
        where.append(model.status == status)

    start, end = _date_bounds(params.filters.get("createdAt"))
    lower, upper = day_range(start, end, tz_name)
    if lower is not None:
        where.append(model.created_at >= lower)
    if upper is not None:
        where.append(model.created_at <= upper)

    return where


def resolve_order(params: ListParams, sort_fields: Mapping[str, Any]) -> list[Any]:
    """ORDER BY for the requested field, falling back to id DESC."""
    column = sort_fields.get(params.sort_by) if params.sort_by else None
    if column is None:
        return [sort_fields["id"].desc()]
    return [column.asc() if params.sort_dir == "asc" else column.desc()]


# ============================================================
# ENTITY BUILDERS
# ============================================================

def build_user_query(params: ListParams, tz_name: str = "UTC") -> EntityQuery:
    """
    Users: search on email, status, createdAt range, role name substring
    and exact roleId.
    """
    where: list[ColumnElement[bool]] = []

    search = resolve_search(params, "email")
    if search:
        where.append(contains_ci(User.email, search))

    where.extend(common_predicates(params, User, tz_name))

    role_name = as_text(params.filters.get("role"))
    if role_name:
        where.append(User.role.has(contains_ci(Role.name, role_name)))

    role_id = params.filters.get("roleId")
    if isinstance(role_id, list):
        ids = [i for i in (_to_int(v) for v in role_id) if i is not None]
        if ids:
            where.append(User.role_id.in_(ids))
    else:
        role_id = _to_int(role_id)
        if role_id is not None:
            where.append(User.role_id == role_id)

    return EntityQuery(where=where, order_by=resolve_order(params, USER_SORT_FIELDS))


def build_role_query(params: ListParams, tz_name: str = "UTC") -> EntityQuery:
    """Roles: search on name, status, createdAt range."""
    where: list[ColumnElement[bool]] = []

    search = resolve_search(params, "name")
    if search:
        where.append(contains_ci(Role.name, search))

    where.extend(common_predicates(params, Role, tz_name))

    return EntityQuery(where=where, order_by=resolve_order(params, ROLE_SORT_FIELDS))


def build_permission_query(params: ListParams, tz_name: str = "UTC") -> EntityQuery:
    """Permissions: search on name, status, createdAt range."""
    where: list[ColumnElement[bool]] = []

    search = resolve_search(params, "name")
    if search:
        where.append(contains_ci(Permission.name, search))

    where.extend(common_predicates(params, Permission, tz_name))

    return EntityQuery(where=where, order_by=resolve_order(params, PERMISSION_SORT_FIELDS))

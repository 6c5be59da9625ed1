"""
Role management routes.

List sorting follows ROLE_SORT_FIELDS; filters are built by
build_role_query (see RoleRow).
"""

from fastapi import APIRouter, Depends, Path, status

from rbac_admin.api.dependencies.audit import Audit
from rbac_admin.api.dependencies.auth import require_permission
from rbac_admin.api.dependencies.query import ListQuery
from rbac_admin.api.dependencies.services import get_role_service
from rbac_admin.core.permissions import Module, PermissionVerb, derive_permission_name
from rbac_admin.schemas.audit_log import AuditAction, AuditModule
from rbac_admin.schemas.base import BulkStatusResult, BulkStatusUpdate, StatusUpdate
from rbac_admin.schemas.role import (
    RoleCreate,
    RoleHasPermissionRow,
    RolePermissionRequest,
    RoleRow,
    RoleUpdate,
)
from rbac_admin.services.role import RoleService
from rbac_admin.utils.pagination import ServerResponse, shape_page

router = APIRouter()

can_read = require_permission(derive_permission_name(Module.ROLE, PermissionVerb.READ))
can_create = require_permission(derive_permission_name(Module.ROLE, PermissionVerb.CREATE))
can_edit = require_permission(derive_permission_name(Module.ROLE, PermissionVerb.EDIT))
can_delete = require_permission(derive_permission_name(Module.ROLE, PermissionVerb.DELETE))


@router.get("", response_model=ServerResponse[RoleRow], dependencies=[Depends(can_read)])
async def list_roles(
    params: ListQuery,
    role_service: RoleService = Depends(get_role_service),
):
    """List roles with their active permissions."""
    result = await role_service.list_roles(params)
    return shape_page(result.map(RoleRow.model_validate), params.page_size, params.page)


@router.post(
    "",
    response_model=RoleRow,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_create)],
)
async def create_role(
    data: RoleCreate,
    audit: Audit,
    role_service: RoleService = Depends(get_role_service),
):
    """Create role."""
    role = await role_service.create(data)
    row = RoleRow.model_validate(role)
    await audit.record(AuditModule.ROLE, AuditAction.CREATE, entity_id=role.id, after=row)
    return row


@router.post("/bulk-status", response_model=BulkStatusResult, dependencies=[Depends(can_edit)])
async def bulk_update_status(
    data: BulkStatusUpdate,
    audit: Audit,
    role_service: RoleService = Depends(get_role_service),
):
    """Set status on many roles at once."""
    count = await role_service.bulk_set_status(data.ids, data.status)
    await audit.record(
        AuditModule.ROLE,
        AuditAction.BULK_STATUS,
        after={"ids": data.ids, "status": data.status, "count": count},
    )
    return BulkStatusResult(count=count)


@router.post("/assign-permission", response_model=RoleHasPermissionRow, dependencies=[Depends(can_edit)])
async def assign_permission(
    data: RolePermissionRequest,
    audit: Audit,
    role_service: RoleService = Depends(get_role_service),
):
    """Grant a permission to a role (reactivates a removed link)."""
    link = await role_service.assign_permission(data.role_id, data.permission_id)
    row = RoleHasPermissionRow.model_validate(link)
    await audit.record(
        AuditModule.ROLE_HAS_PERMISSION,
        AuditAction.ASSIGN_PERMISSION,
        entity_id=link.id,
        after=row,
    )
    return row


@router.post("/remove-permission", response_model=RoleHasPermissionRow, dependencies=[Depends(can_edit)])
async def remove_permission(
    data: RolePermissionRequest,
    audit: Audit,
    role_service: RoleService = Depends(get_role_service),
):
    """Deactivate a role's permission link."""
    link = await role_service.remove_permission(data.role_id, data.permission_id)
    row = RoleHasPermissionRow.model_validate(link)
    await audit.record(
        AuditModule.ROLE_HAS_PERMISSION,
        AuditAction.REMOVE_PERMISSION,
        entity_id=link.id,
        after=row,
    )
    return row


@router.get("/{role_id}", response_model=RoleRow, dependencies=[Depends(can_read)])
async def get_role(
    role_id: int = Path(gt=0),
    role_service: RoleService = Depends(get_role_service),
):
    """Get role by ID."""
    return RoleRow.model_validate(await role_service.get(role_id))


@router.put("/{role_id}", response_model=RoleRow, dependencies=[Depends(can_edit)])
async def update_role(
    data: RoleUpdate,
    audit: Audit,
    role_id: int = Path(gt=0),
    role_service: RoleService = Depends(get_role_service),
):
    """Update role; `permissions` replaces the active permission set."""
    before = await audit.snapshot(AuditModule.ROLE, role_id)
    role = await role_service.update(role_id, data)
    row = RoleRow.model_validate(role)
    await audit.record(AuditModule.ROLE, AuditAction.UPDATE, entity_id=role_id, before=before, after=row)
    return row


@router.patch("/{role_id}", response_model=RoleRow, dependencies=[Depends(can_edit)])
async def update_role_status(
    data: StatusUpdate,
    audit: Audit,
    role_id: int = Path(gt=0),
    role_service: RoleService = Depends(get_role_service),
):
    """Activate or deactivate a role."""
    before = await audit.snapshot(AuditModule.ROLE, role_id)
    role = await role_service.set_status(role_id, data.status)
    row = RoleRow.model_validate(role)
    await audit.record(AuditModule.ROLE, AuditAction.STATUS, entity_id=role_id, before=before, after=row)
    return row


@router.delete("/{role_id}", response_model=RoleRow, dependencies=[Depends(can_delete)])
async def delete_role(
    audit: Audit,
    role_id: int = Path(gt=0),
    role_service: RoleService = Depends(get_role_service),
):
    """Soft delete role."""
    before = await audit.snapshot(AuditModule.ROLE, role_id)
    role = await role_service.delete(role_id)
    row = RoleRow.model_validate(role)
    await audit.record(AuditModule.ROLE, AuditAction.DELETE, entity_id=role_id, before=before, after=row)
    return row

"""
Permission management routes.

List sorting follows PERMISSION_SORT_FIELDS; filters are built by
build_permission_query (see PermissionRow).
"""

from fastapi import APIRouter, Depends, Path, status

from rbac_admin.api.dependencies.audit import Audit
from rbac_admin.api.dependencies.auth import require_permission
from rbac_admin.api.dependencies.query import ListQuery
from rbac_admin.api.dependencies.services import get_permission_service
from rbac_admin.core.permissions import Module, PermissionVerb, derive_permission_name
from rbac_admin.schemas.audit_log import AuditAction, AuditModule
from rbac_admin.schemas.permission import PermissionCreate, PermissionRow, PermissionUpdate
from rbac_admin.services.permission import PermissionService
from rbac_admin.utils.pagination import ServerResponse, shape_page

router = APIRouter()

can_read = require_permission(derive_permission_name(Module.PERMISSION, PermissionVerb.READ))
can_create = require_permission(derive_permission_name(Module.PERMISSION, PermissionVerb.CREATE))
can_edit = require_permission(derive_permission_name(Module.PERMISSION, PermissionVerb.EDIT))
can_delete = require_permission(derive_permission_name(Module.PERMISSION, PermissionVerb.DELETE))


@router.get("", response_model=ServerResponse[PermissionRow], dependencies=[Depends(can_read)])
async def list_permissions(
    params: ListQuery,
    permission_service: PermissionService = Depends(get_permission_service),
):
    """List permissions with filters, sorting and pagination."""
    result = await permission_service.list_permissions(params)
    return shape_page(result.map(PermissionRow.model_validate), params.page_size, params.page)


@router.get("/getAll", response_model=list[PermissionRow], dependencies=[Depends(can_read)])
async def list_all_permissions(
    permission_service: PermissionService = Depends(get_permission_service),
):
    """Every permission, unpaginated (for pickers)."""
    return [PermissionRow.model_validate(p) for p in await permission_service.list_all()]


@router.post(
    "",
    response_model=PermissionRow,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_create)],
)
async def create_permission(
    data: PermissionCreate,
    audit: Audit,
    permission_service: PermissionService = Depends(get_permission_service),
):
    """Create permission."""
    permission = await permission_service.create(data)
    row = PermissionRow.model_validate(permission)
    await audit.record(AuditModule.PERMISSION, AuditAction.CREATE, entity_id=permission.id, after=row)
    return row


@router.get("/{permission_id}", response_model=PermissionRow, dependencies=[Depends(can_read)])
async def get_permission(
    permission_id: int = Path(gt=0),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """Get permission by ID."""
    return PermissionRow.model_validate(await permission_service.get(permission_id))


@router.put("/{permission_id}", response_model=PermissionRow, dependencies=[Depends(can_edit)])
async def update_permission(
    data: PermissionUpdate,
    audit: Audit,
    permission_id: int = Path(gt=0),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """Update permission."""
    before = await audit.snapshot(AuditModule.PERMISSION, permission_id)
    permission = await permission_service.update(permission_id, data)
    row = PermissionRow.model_validate(permission)
    await audit.record(
        AuditModule.PERMISSION,
        AuditAction.UPDATE,
        entity_id=permission_id,
        before=before,
        after=row,
    )
    return row


@router.delete("/{permission_id}", response_model=PermissionRow, dependencies=[Depends(can_delete)])
async def delete_permission(
    audit: Audit,
    permission_id: int = Path(gt=0),
    permission_service: PermissionService = Depends(get_permission_service),
):
    """Soft delete permission."""
    before = await audit.snapshot(AuditModule.PERMISSION, permission_id)
    permission = await permission_service.delete(permission_id)
    row = PermissionRow.model_validate(permission)
    await audit.record(
        AuditModule.PERMISSION,
        AuditAction.DELETE,
        entity_id=permission_id,
        before=before,
        after=row,
    )
    return row

"""
User management routes.

List sorting follows USER_SORT_FIELDS; filters are built by
build_user_query (see UserRow).
"""

from fastapi import APIRouter, Depends, Path, status

from rbac_admin.api.dependencies.audit import Audit
from rbac_admin.api.dependencies.auth import CurrentUser, require_permission
from rbac_admin.api.dependencies.query import ListQuery
from rbac_admin.api.dependencies.services import get_user_service
from rbac_admin.core.permissions import Module, PermissionVerb, derive_permission_name
from rbac_admin.schemas.audit_log import AuditAction, AuditModule
from rbac_admin.schemas.base import BulkStatusResult, BulkStatusUpdate, MessageResponse, StatusUpdate
from rbac_admin.schemas.user import (
    PasswordChange,
    PasswordCheck,
    PasswordCheckResult,
    ProfileLink,
    ProfileRow,
    RoleChange,
    UserCreate,
    UserDetail,
    UserRow,
    UserUpdate,
)
from rbac_admin.services.user import UserService
from rbac_admin.utils.pagination import ServerResponse, shape_page

router = APIRouter()

can_read = require_permission(derive_permission_name(Module.USER, PermissionVerb.READ))
can_create = require_permission(derive_permission_name(Module.USER, PermissionVerb.CREATE))
can_edit = require_permission(derive_permission_name(Module.USER, PermissionVerb.EDIT))
can_delete = require_permission(derive_permission_name(Module.USER, PermissionVerb.DELETE))


@router.get("", response_model=ServerResponse[UserRow], dependencies=[Depends(can_read)])
async def list_users(
    params: ListQuery,
    user_service: UserService = Depends(get_user_service),
):
    """List users with filters, sorting and pagination."""
    result = await user_service.list_users(params)
    return shape_page(result.map(UserRow.model_validate), params.page_size, params.page)


@router.post(
    "",
    response_model=UserDetail,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_create)],
)
async def create_user(
    data: UserCreate,
    audit: Audit,
    user_service: UserService = Depends(get_user_service),
):
    """Create user."""
    user = await user_service.create(data)
    row = UserDetail.model_validate(user)
    await audit.record(AuditModule.USER, AuditAction.CREATE, entity_id=user.id, after=row)
    return row


@router.post("/bulk-status", response_model=BulkStatusResult, dependencies=[Depends(can_edit)])
async def bulk_update_status(
    data: BulkStatusUpdate,
    audit: Audit,
    user_service: UserService = Depends(get_user_service),
):
    """Set status on many users at once."""
    count = await user_service.bulk_set_status(data.ids, data.status)
    result = BulkStatusResult(count=count)
    await audit.record(
        AuditModule.USER,
        AuditAction.BULK_STATUS,
        after={"ids": data.ids, "status": data.status, "count": count},
    )
    return result


@router.post("/verify-password", response_model=PasswordCheckResult)
async def verify_password(
    data: PasswordCheck,
    current_user: CurrentUser,
    user_service: UserService = Depends(get_user_service),
):
    """Check a password against the current user's."""
    return PasswordCheckResult(valid=user_service.check_password(current_user, data.password))


@router.get("/{user_id}", response_model=UserDetail, dependencies=[Depends(can_read)])
async def get_user(
    user_id: int = Path(gt=0),
    user_service: UserService = Depends(get_user_service),
):
    """Get user by ID."""
    return UserDetail.model_validate(await user_service.get(user_id))


@router.put("/{user_id}", response_model=UserDetail, dependencies=[Depends(can_edit)])
async def update_user(
    data: UserUpdate,
    audit: Audit,
    user_id: int = Path(gt=0),
    user_service: UserService = Depends(get_user_service),
):
    """Update user."""
    before = await audit.snapshot(AuditModule.USER, user_id)
    user = await user_service.update(user_id, data)
    row = UserDetail.model_validate(user)
    await audit.record(AuditModule.USER, AuditAction.UPDATE, entity_id=user_id, before=before, after=row)
    return row


@router.patch("/{user_id}", response_model=UserRow, dependencies=[Depends(can_edit)])
async def update_user_status(
    data: StatusUpdate,
    audit: Audit,
    user_id: int = Path(gt=0),
    user_service: UserService = Depends(get_user_service),
):
    """Activate or deactivate a user."""
    before = await audit.snapshot(AuditModule.USER, user_id)
    user = await user_service.set_status(user_id, data.status)
    row = UserRow.model_validate(user)
    await audit.record(AuditModule.USER, AuditAction.STATUS, entity_id=user_id, before=before, after=row)
    return row


@router.delete("/{user_id}", response_model=UserRow, dependencies=[Depends(can_delete)])
async def delete_user(
    audit: Audit,
    user_id: int = Path(gt=0),
    user_service: UserService = Depends(get_user_service),
):
    """Soft delete user."""
    before = await audit.snapshot(AuditModule.USER, user_id)
    user = await user_service.delete(user_id)
    row = UserRow.model_validate(user)
    await audit.record(AuditModule.USER, AuditAction.DELETE, entity_id=user_id, before=before, after=row)
    return row


@router.put("/{user_id}/password", response_model=MessageResponse, dependencies=[Depends(can_edit)])
async def change_password(
    data: PasswordChange,
    audit: Audit,
    user_id: int = Path(gt=0),
    user_service: UserService = Depends(get_user_service),
):
    """Set a user's password."""
    await user_service.change_password(user_id, data.password)
    await audit.record(AuditModule.USER, AuditAction.CHANGE_PASSWORD, entity_id=user_id)
    return MessageResponse(message="Password updated")


@router.post("/{user_id}/role", response_model=UserDetail, dependencies=[Depends(can_edit)])
async def change_role(
    data: RoleChange,
    audit: Audit,
    user_id: int = Path(gt=0),
    user_service: UserService = Depends(get_user_service),
):
    """Move a user to another role."""
    before = await audit.snapshot(AuditModule.USER, user_id)
    user = await user_service.change_role(user_id, data.role_id)
    row = UserDetail.model_validate(user)
    await audit.record(AuditModule.USER, AuditAction.UPDATE_ROLE, entity_id=user_id, before=before, after=row)
    return row


# ============================================================
# PROFILE
# ============================================================

@router.get("/{user_id}/profile", response_model=ProfileRow, dependencies=[Depends(can_read)])
async def get_profile(
    user_id: int = Path(gt=0),
    user_service: UserService = Depends(get_user_service),
):
    """Profile linked to a user."""
    return ProfileRow.model_validate(await user_service.get_profile(user_id))


@router.post("/{user_id}/profile", response_model=ProfileRow, dependencies=[Depends(can_edit)])
async def link_profile(
    data: ProfileLink,
    audit: Audit,
    user_id: int = Path(gt=0),
    user_service: UserService = Depends(get_user_service),
):
    """Link an existing profile to a user."""
    before = await audit.snapshot(AuditModule.PROFILE_USER, data.profile_id)
    profile = await user_service.link_profile(user_id, data.profile_id)
    row = ProfileRow.model_validate(profile)
    await audit.record(
        AuditModule.PROFILE_USER,
        AuditAction.LINK_PROFILE,
        entity_id=profile.id,
        before=before,
        after=row,
    )
    return row


@router.delete("/{user_id}/profile", response_model=ProfileRow, dependencies=[Depends(can_edit)])
async def unlink_profile(
    audit: Audit,
    user_id: int = Path(gt=0),
    user_service: UserService = Depends(get_user_service),
):
    """Detach the user's profile; the profile is kept."""
    profile = await user_service.get_profile(user_id)
    before = await audit.snapshot(AuditModule.PROFILE_USER, profile.id)
    profile = await user_service.unlink_profile(user_id)
    row = ProfileRow.model_validate(profile)
    await audit.record(
        AuditModule.PROFILE_USER,
        AuditAction.UNLINK_PROFILE,
        entity_id=profile.id,
        before=before,
        after=row,
    )
    return row

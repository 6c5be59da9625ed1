"""Audit sink for tracking changes."""

from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rbac_admin.models.audit_log import AuditLog
from rbac_admin.models.base import Base
from rbac_admin.models.database import async_session_factory
from rbac_admin.models.permission import Permission
from rbac_admin.models.profile_user import ProfileUser
from rbac_admin.models.role import Role
from rbac_admin.models.role_has_permission import RoleHasPermission
from rbac_admin.models.user import User
from rbac_admin.schemas.audit_log import AuditEntry, AuditModule

logger = structlog.get_logger()

AUDIT_MODELS: dict[AuditModule, type[Base]] = {
    AuditModule.USER: User,
    AuditModule.ROLE: Role,
    AuditModule.PERMISSION: Permission,
    AuditModule.ROLE_HAS_PERMISSION: RoleHasPermission,
    AuditModule.PROFILE_USER: ProfileUser,
}


async def snapshot(
    db: AsyncSession,
    module: AuditModule,
    entity_id: Optional[int],
) -> Optional[dict[str, Any]]:
    """
    Current column values of an audited entity, or None when it does not exist.

    Sensitive columns (password hashes, refresh tokens) are left out.
    """
    if entity_id is None:
        return None
    entity = await db.get(AUDIT_MODELS[module], entity_id)
    return entity.to_dict() if entity is not None else None


class AuditSink:
    """
    Writes audit entries on a session of its own.

    Entries are written after the request's own transaction has finished,
    so a failure here can neither fail nor roll back the audited operation.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session_factory):
        self.session_factory = session_factory

    async def log(self, entry: AuditEntry) -> None:
        """Persist one entry. Never raises."""
        try:
            async with self.session_factory() as session:
                session.add(
                    AuditLog(
                        module=entry.module.value,
                        action=entry.action,
                        entity_id=entry.entity_id,
                        user_id=entry.user_id,
                        ip_address=entry.ip_address,
                        user_agent=entry.user_agent,
                        data_before=entry.data_before,
                        data_after=entry.data_after,
                        request_id=entry.request_id,
                    )
                )
                await session.commit()
        except Exception:
            logger.exception(
                "audit_log_failed",
                module=entry.module.value,
                action=entry.action,
                entity_id=entry.entity_id,
            )
            return

        logger.info(
            "audit_log_created",
            module=entry.module.value,
            action=entry.action,
            entity_id=entry.entity_id,
            user_id=entry.user_id,
        )

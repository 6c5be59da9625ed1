"""
Audit dependencies.

Routes record mutations through an AuditRecorder bound to the request:

    before = await audit.snapshot(AuditModule.USER, user_id)
    user = await service.update(user_id, data)
    await audit.record(AuditModule.USER, AuditAction.UPDATE, entity_id=user_id, before=before, after=row)

Recording commits the request transaction first, then queues the entry;
the entry is written by a background task once the response is sent.
"""

from functools import lru_cache
from typing import Annotated, Any, Optional

from fastapi import BackgroundTasks, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_admin.models.user import User
from rbac_admin.schemas.audit_log import AuditEntry, AuditModule
from rbac_admin.services.audit import AuditSink, snapshot
from .auth import get_current_user
from .database import get_db


@lru_cache
def get_audit_sink() -> AuditSink:
    return AuditSink()


class AuditRecorder:
    """Collects request context and queues audit entries."""

    def __init__(
        self,
        sink: AuditSink,
        background: BackgroundTasks,
        db: AsyncSession,
        user: User,
        ip_address: Optional[str],
        user_agent: Optional[str],
        request_id: Optional[str],
    ):
        self.sink = sink
        self.background = background
        self.db = db
        self.user_id = user.id
        self.ip_address = ip_address
        self.user_agent = user_agent
        self.request_id = request_id

    async def snapshot(self, module: AuditModule, entity_id: Optional[int]) -> Optional[dict[str, Any]]:
        """Entity state to store as data_before."""
        return await snapshot(self.db, module, entity_id)

    async def record(
        self,
        module: AuditModule,
        action: str,
        *,
        entity_id: Optional[int] = None,
        before: Any = None,
        after: Any = None,
    ) -> None:
        """Commit the audited change, then queue its audit entry."""
        if isinstance(after, BaseModel):
            after = after.model_dump(mode="json", by_alias=True)
        entry = AuditEntry(
            module=module,
            action=action,
            user_id=self.user_id,
            entity_id=entity_id,
            data_before=before,
            data_after=after,
            ip_address=self.ip_address,
            user_agent=self.user_agent,
            request_id=self.request_id,
        )
        await self.db.commit()
        self.background.add_task(self.sink.log, entry)


async def get_audit_recorder(
    request: Request,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    sink: AuditSink = Depends(get_audit_sink),
) -> AuditRecorder:
    return AuditRecorder(
        sink=sink,
        background=background,
        db=db,
        user=user,
        ip_address=getattr(request.state, "client_ip", None),
        user_agent=request.headers.get("user-agent"),
        request_id=getattr(request.state, "request_id", None),
    )


Audit = Annotated[AuditRecorder, Depends(get_audit_recorder)]

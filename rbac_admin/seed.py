"""
Seed permissions, default roles and, optionally, a first administrator.

Safe to run repeatedly: existing rows are left alone and missing ones are
added.

Usage:
    python -m rbac_admin.seed
    python -m rbac_admin.seed --create-tables --admin-email admin@example.com --admin-password secret123
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass, field
from typing import Iterable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_admin.core.config import settings
from rbac_admin.core.logging import configure_logging
from rbac_admin.core.permissions import (
    ADMINIZED_MODULES,
    FULL_PERMISSIONS,
    Module,
    PermissionVerb,
    all_permission_names,
    derive_permission_name,
)
from rbac_admin.models.database import async_session_factory, close_db, init_db
from rbac_admin.models.role import Role
from rbac_admin.repositories.permission import PermissionRepository
from rbac_admin.repositories.role import RoleHasPermissionRepository, RoleRepository
from rbac_admin.repositories.user import UserRepository
from rbac_admin.services.auth import hash_password

logger = structlog.get_logger()

SUPER_ADMIN = "SuperAdmin"
USER_MANAGEMENT = "UserManagment"
USER_STANDARD = "UserStandard"

ADMIN_MODULES = tuple(m for m in Module if m.value in ADMINIZED_MODULES)
STANDARD_MODULES = tuple(m for m in Module if m.value not in ADMINIZED_MODULES)


def default_role_permissions() -> dict[str, list[str]]:
    """Permission names granted to each seeded role."""
    standard = all_permission_names(STANDARD_MODULES, (PermissionVerb.NAVBAR, PermissionVerb.READ))
    standard.append(derive_permission_name(Module.PROFILE_USER, PermissionVerb.EDIT))
    return {
        SUPER_ADMIN: [FULL_PERMISSIONS],
        USER_MANAGEMENT: all_permission_names(ADMIN_MODULES),
        USER_STANDARD: standard,
    }


@dataclass
class SeedReport:
    permissions_created: list[str] = field(default_factory=list)
    roles_created: list[str] = field(default_factory=list)
    links_created: int = 0
    admin_created: Optional[str] = None


async def _ensure_role(
    db: AsyncSession,
    name: str,
    permission_names: Iterable[str],
    report: SeedReport,
) -> Role:
    roles = RoleRepository(db)
    links = RoleHasPermissionRepository(db)
    permissions = PermissionRepository(db)

    role = await roles.get_by_name(name)
    if role is None:
        role = await roles.create(name=name, status=True)
        report.roles_created.append(name)

    existing = await links.links_for_role(role.id)
    for permission_name in permission_names:
        permission = await permissions.get_by_name(permission_name)
        if permission is None or permission.id in existing:
            continue
        await links.create(role_id=role.id, permission_id=permission.id, status=True)
        report.links_created += 1
    return role


async def seed(
    db: AsyncSession,
    admin_email: Optional[str] = None,
    admin_password: Optional[str] = None,
) -> SeedReport:
    """Create whatever part of the default catalogue is missing."""
    report = SeedReport()
    permissions = PermissionRepository(db)

    for name in [FULL_PERMISSIONS, *all_permission_names()]:
        if await permissions.get_by_name(name) is None:
            await permissions.create(name=name, status=True)
            report.permissions_created.append(name)

    roles: dict[str, Role] = {}
    for role_name, permission_names in default_role_permissions().items():
        roles[role_name] = await _ensure_role(db, role_name, permission_names, report)

    if admin_email and admin_password:
        users = UserRepository(db)
        email = admin_email.strip().lower()
        if await users.get_by_email(email) is None:
            await users.create(
                email=email,
                password_hash=hash_password(admin_password),
                role_id=roles[SUPER_ADMIN].id,
                status=True,
            )
            report.admin_created = email

    logger.info(
        "seed_completed",
        permissions_created=len(report.permissions_created),
        roles_created=report.roles_created,
        links_created=report.links_created,
        admin_created=report.admin_created,
    )
    return report


async def _run(args: argparse.Namespace) -> None:
    if args.create_tables:
        await init_db()
    try:
        async with async_session_factory() as db:
            await seed(db, admin_email=args.admin_email, admin_password=args.admin_password)
            await db.commit()
    finally:
        await close_db()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="python -m rbac_admin.seed", description=__doc__.splitlines()[1])
    parser.add_argument("--create-tables", action="store_true", help="create missing tables first")
    parser.add_argument("--admin-email", help="email of a SuperAdmin user to create")
    parser.add_argument("--admin-password", help="password for --admin-email")
    args = parser.parse_args(argv)

    if bool(args.admin_email) != bool(args.admin_password):
        parser.error("--admin-email and --admin-password go together")

    configure_logging(settings.log_level, settings.log_format)
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()

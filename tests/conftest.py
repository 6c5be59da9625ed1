"""
Pytest fixtures for testing.

Provides:
- In-memory SQLite engine (SAVEPOINT capable) and session factory
- Test client whose requests each get their own session, like production
- Factory fixtures for roles, permissions and users
- Auth helpers
"""

import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "testing")

from typing import AsyncGenerator, Iterable
from uuid import uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rbac_admin.api.dependencies.audit import get_audit_sink
from rbac_admin.api.dependencies.database import get_db
from rbac_admin.core.permissions import FULL_PERMISSIONS
from rbac_admin.implementations.email import LoggingEmailBackend, get_email_backend
from rbac_admin.main import app
from rbac_admin.models.base import Base
from rbac_admin.models.permission import Permission
from rbac_admin.models.role import Role
from rbac_admin.models.role_has_permission import RoleHasPermission
from rbac_admin.models.user import User
from rbac_admin.services.audit import AuditSink
from rbac_admin.services.auth import AuthService, hash_password
from rbac_admin.services.token import TokenService, TokenType


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_PASSWORD = "testpassword123"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Database session for service and repository tests; rolled back after."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def email_backend() -> LoggingEmailBackend:
    return LoggingEmailBackend()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, email_backend) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client with database, audit and email overrides.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_sink] = lambda: AuditSink(session_factory)
    app.dependency_overrides[get_email_backend] = lambda: email_backend

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ============ Factory Fixtures ============


class PermissionFactory:
    """Factory for creating test permissions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create(self, name: str | None = None, status: bool = True) -> Permission:
        permission = Permission(name=name or f"perm_{uuid4().hex[:8]}", status=status)
        async with self.session_factory() as session:
            session.add(permission)
            await session.commit()
        return permission


class RoleFactory:
    """Factory for creating test roles, optionally with permissions by name."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create(
        self,
        name: str | None = None,
        status: bool = True,
        permissions: Iterable[str] = (),
    ) -> Role:
        async with self.session_factory() as session:
            role = Role(name=name or f"role-{uuid4().hex[:8]}", status=status)
            session.add(role)
            await session.flush()

            for permission_name in permissions:
                permission_id = await session.scalar(
                    select(Permission.id).where(Permission.name == permission_name)
                )
                if permission_id is None:
                    new_permission = Permission(name=permission_name, status=True)
                    session.add(new_permission)
                    await session.flush()
                    permission_id = new_permission.id
                session.add(RoleHasPermission(role_id=role.id, permission_id=permission_id, status=True))

            await session.commit()
        return role


class UserFactory:
    """Factory for creating test users."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], roles: RoleFactory):
        self.session_factory = session_factory
        self.roles = roles

    async def create(
        self,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        role: Role | None = None,
        status: bool = True,
    ) -> User:
        """Create a user in the database."""
        role = role or await self.roles.create()
        user = User(
            email=email or f"test-{uuid4().hex[:8]}@example.com",
            password_hash=hash_password(password),
            role_id=role.id,
            status=status,
        )
        async with self.session_factory() as session:
            session.add(user)
            await session.commit()
        return user


@pytest_asyncio.fixture
async def permission_factory(session_factory) -> PermissionFactory:
    return PermissionFactory(session_factory)


@pytest_asyncio.fixture
async def role_factory(session_factory) -> RoleFactory:
    return RoleFactory(session_factory)


@pytest_asyncio.fixture
async def user_factory(session_factory, role_factory) -> UserFactory:
    """Fixture that provides UserFactory."""
    return UserFactory(session_factory, role_factory)


@pytest_asyncio.fixture
async def test_user(user_factory: UserFactory) -> User:
    """Create a user whose role grants nothing."""
    return await user_factory.create()


@pytest_asyncio.fixture
async def admin_user(user_factory: UserFactory, role_factory: RoleFactory) -> User:
    """Create a user holding full_permissions."""
    role = await role_factory.create(name="SuperAdmin", permissions=[FULL_PERMISSIONS])
    return await user_factory.create(email="admin@example.com", role=role)


# ============ Auth Helpers ============


def get_auth_headers(user: User) -> dict[str, str]:
    """Helper to get auth headers for any user."""
    issued = TokenService().sign(AuthService.claims_for(user), TokenType.ACCESS)
    return {"Authorization": f"Bearer {issued.token}"}


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict[str, str]:
    """Get auth headers for test user."""
    return get_auth_headers(test_user)


@pytest_asyncio.fixture
async def admin_auth_headers(admin_user: User) -> dict[str, str]:
    """Get auth headers for admin user."""
    return get_auth_headers(admin_user)


@pytest_asyncio.fixture
async def headers_for():
    """Build auth headers for a user created inside a test."""
    return get_auth_headers

"""Health check utilities."""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rbac_admin.core.permissions import FULL_PERMISSIONS
from rbac_admin.models.permission import Permission

logger = structlog.get_logger()


class HealthStatus(str, Enum):
    """Health status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: Optional[float] = None
    message: Optional[str] = None
    details: dict = field(default_factory=dict)


@dataclass
class SystemHealth:
    """Overall system health status."""

    status: HealthStatus
    version: str
    environment: str
    components: list[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "version": self.version,
            "environment": self.environment,
            "components": {
                c.name: {
                    "status": c.status.value,
                    "latency_ms": c.latency_ms,
                    "message": c.message,
                    **c.details,
                }
                for c in self.components
            },
        }


async def check_database(session_factory: async_sessionmaker[AsyncSession]) -> ComponentHealth:
    """Check database connectivity and latency."""
    start = time.perf_counter()
    try:
        async with session_factory() as db:
            await db.execute(text("SELECT 1"))
            dialect = db.bind.dialect.name if db.bind is not None else None
        latency = (time.perf_counter() - start) * 1000

        return ComponentHealth(
            name="database",
            status=HealthStatus.HEALTHY if latency < 100 else HealthStatus.DEGRADED,
            latency_ms=round(latency, 2),
            message="Connected" if latency < 100 else "Slow response",
            details={"dialect": dialect},
        )
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return ComponentHealth(
            name="database",
            status=HealthStatus.UNHEALTHY,
            message=str(e)[:100],
        )


async def check_permissions_seeded(session_factory: async_sessionmaker[AsyncSession]) -> ComponentHealth:
    """
    Check that the permission catalogue has been seeded.

    Without the full_permissions sentinel nobody can administer the system.
    """
    try:
        async with session_factory() as db:
            total = await db.scalar(select(func.count()).select_from(Permission)) or 0
            sentinel = await db.scalar(
                select(func.count()).select_from(Permission).where(Permission.name == FULL_PERMISSIONS)
            )
    except Exception as e:
        logger.error("permissions_health_check_failed", error=str(e))
        return ComponentHealth(
            name="permissions",
            status=HealthStatus.UNHEALTHY,
            message=str(e)[:100],
        )

    if not sentinel:
        return ComponentHealth(
            name="permissions",
            status=HealthStatus.DEGRADED,
            message="Not seeded, run python -m rbac_admin.seed",
            details={"count": total},
        )
    return ComponentHealth(
        name="permissions",
        status=HealthStatus.HEALTHY,
        details={"count": total},
    )


class HealthChecker:
    """
    Comprehensive health checker for the application.

    Usage:
        checker = HealthChecker(version="1.0.0", environment="production")
        checker.add_check("database", lambda: check_database(async_session_factory))

        health = await checker.run()
    """

    def __init__(self, version: str, environment: str):
        self.version = version
        self.environment = environment
        self.checks: dict[str, Callable[[], Awaitable[ComponentHealth]]] = {}

    def add_check(self, name: str, check_fn: Callable[[], Awaitable[ComponentHealth]]) -> None:
        """Add a health check function."""
        self.checks[name] = check_fn

    async def run(self) -> SystemHealth:
        """Run all health checks concurrently."""
        results = await asyncio.gather(
            *[check() for check in self.checks.values()],
            return_exceptions=True
        )

        components = []
        for name, result in zip(self.checks.keys(), results):
            if isinstance(result, Exception):
                components.append(ComponentHealth(
                    name=name,
                    status=HealthStatus.UNHEALTHY,
                    message=str(result)[:100],
                ))
            else:
                components.append(result)

        # Determine overall status
        statuses = [c.status for c in components]
        if HealthStatus.UNHEALTHY in statuses:
            overall = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall = HealthStatus.DEGRADED
        else:
            overall = HealthStatus.HEALTHY

        return SystemHealth(
            status=overall,
            version=self.version,
            environment=self.environment,
            components=components,
        )

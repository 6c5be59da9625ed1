"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rbac_admin.core.config import settings
from rbac_admin.core.exceptions import AppError, app_error_handler
from rbac_admin.core.logging import configure_logging
from rbac_admin.api.responses import LocalizedJSONResponse
from rbac_admin.api.routes import router as api_router
from rbac_admin.api.middleware.logging import LoggingMiddleware
from rbac_admin.api.middleware.request_id import RequestIdMiddleware
from rbac_admin.models.database import async_session_factory, close_db

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    configure_logging(settings.log_level, settings.log_format)
    logger.info("app_startup", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    logger.info("app_shutdown")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        default_response_class=LocalizedJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Middleware (order matters - last added is outermost)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(api_router, prefix=settings.api_prefix)

    # Exception handlers
    app.add_exception_handler(AppError, app_error_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.exception("unhandled_error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": str(exc) if settings.debug else "An error occurred",
            },
        )

    # Health checks
    @app.get("/health")
    async def health_check():
        """Quick health check endpoint (for load balancers)."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @app.get("/health/detailed")
    async def health_check_detailed():
        """
        Detailed health check with component status.

        Checks the database and that permissions have been seeded.
        """
        from rbac_admin.utils.health import HealthChecker, check_database, check_permissions_seeded

        checker = HealthChecker(
            version=settings.app_version,
            environment=settings.environment,
        )
        checker.add_check("database", lambda: check_database(async_session_factory))
        checker.add_check("permissions", lambda: check_permissions_seeded(async_session_factory))

        health = await checker.run()
        status_code = 200 if health.status.value == "healthy" else 503

        return JSONResponse(content=health.to_dict(), status_code=status_code)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rbac_admin.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        workers=settings.workers,
    )

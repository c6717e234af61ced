"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from statuspage import __version__
from statuspage.api.auth.dependencies import require_role
from statuspage.api.auth.models import UserRole
from statuspage.api.auth.router import me_router, router as auth_router
from statuspage.api.errors import error_body, register_exception_handlers
from statuspage.api.events.router import (
    router as events_router,
    status_router,
    templates_router,
)
from statuspage.api.middleware import RequestTimeoutMiddleware
from statuspage.api.schemas import ERROR_RESPONSES
from statuspage.api.subscriptions.router import router as subscriptions_router
from statuspage.config import AppSettings, get_app_settings
from statuspage.db.database import close_db, init_db, ping
from statuspage.logging_config import setup_logging

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: AppSettings = app.state.settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    await init_db()
    logger.info("Statuspage API started", extra={"version": __version__})

    yield

    await close_db()
    logger.info("Statuspage API stopped")


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_app_settings()

    app = FastAPI(
        title="Statuspage API",
        description="Incident and maintenance status page",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        responses=ERROR_RESPONSES,
    )
    app.state.settings = settings

    register_exception_handlers(app)

    app.add_middleware(RequestTimeoutMiddleware, timeout=settings.REQUEST_TIMEOUT_SECONDS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Public: registration, login and token refresh
    app.include_router(auth_router, prefix=f"{API_PREFIX}/auth")
    app.include_router(status_router, prefix=API_PREFIX)

    # Any authenticated role
    app.include_router(me_router, prefix=API_PREFIX)
    app.include_router(subscriptions_router, prefix=API_PREFIX)

    # Role-gated
    app.include_router(
        events_router,
        prefix=API_PREFIX,
        dependencies=[Depends(require_role(UserRole.OPERATOR))],
    )
    app.include_router(
        templates_router,
        prefix=API_PREFIX,
        dependencies=[Depends(require_role(UserRole.ADMIN))],
    )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Liveness check."""
        return {"status": "healthy"}

    @app.get("/ready")
    async def readiness_check() -> JSONResponse:
        """Readiness check; fails while the database is unreachable."""
        if await ping():
            return JSONResponse({"status": "ready"})
        return JSONResponse(
            status_code=503,
            content=error_body("unavailable", "database unavailable"),
        )

    @app.get("/version")
    async def version() -> dict[str, str]:
        """Running version."""
        return {"version": __version__}

    return app


app = create_app()


def main() -> None:
    """Run the application."""
    import uvicorn

    settings = get_app_settings()
    uvicorn.run(
        "statuspage.api.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
    )


if __name__ == "__main__":
    main()

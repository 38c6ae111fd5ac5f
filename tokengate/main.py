from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from tokengate.api import health
from tokengate.api.exception_handlers import (base_api_exception_handler,
                                              general_exception_handler,
                                              http_exception_handler,
                                              validation_exception_handler)
from tokengate.api.rate_limit import limiter, rate_limit_exceeded_handler
from tokengate.api.routes import api_router, portal
from tokengate.core.access import AccessValidator, TokenStore
from tokengate.core.config import Settings, get_settings
from tokengate.core.content import ContentResolver
from tokengate.core.exceptions import BaseAPIException
from tokengate.core.services import TokenAdminService
from tokengate.infrastructure.database import DatabaseConnection, SqlTokenStore
from tokengate.infrastructure.logging import get_logger, setup_logging
from tokengate.infrastructure.middleware import CorrelationIDMiddleware, LoggingMiddleware

logger = get_logger(__name__)


def _wire_services(app: FastAPI, store: TokenStore) -> None:
    settings: Settings = app.state.settings
    app.state.store = store
    app.state.validator = AccessValidator(store)
    app.state.token_service = TokenAdminService(
        store, default_expiration_days=settings.default_expiration_days
    )


def create_app(
    app_settings: Optional[Settings] = None,
    store: Optional[TokenStore] = None,
) -> FastAPI:
    """Build the application.

    When no store is given, a SQL-backed store is opened on startup from
    ``database_url`` and closed on shutdown.
    """
    settings = app_settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            environment=settings.environment,
            content_root=str(settings.content_root),
            admin_api_enabled=settings.admin_api_enabled,
        )

        db = None
        if store is None:
            db = DatabaseConnection(settings.database_url, echo=settings.database_echo)
            await db.connect()
            await db.create_schema()
            _wire_services(app, SqlTokenStore(db, access_log_limit=settings.access_log_limit))
        app.state.db = db

        yield

        if db is not None:
            await db.disconnect()
        logger.info("application_shutdown", app_name=settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        description="Token-gated access to protected content pages",
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = None
    app.state.resolver = ContentResolver(settings.content_root, settings.external_projects)
    if store is not None:
        _wire_services(app, store)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseAPIException, base_api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/", response_model=Dict[str, Any], include_in_schema=False)
    async def root():
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "description": "Token-gated content portal",
            "status": "running",
            "environment": settings.environment,
            "endpoints": {
                "api": settings.api_prefix,
                "docs": "/docs",
                "health": "/health",
                "metrics": "/metrics",
            },
        }

    # Health and visitor routes live at root level
    app.include_router(health.router)
    app.include_router(portal.router)

    app.include_router(api_router, prefix=settings.api_prefix)

    return app


app = create_app()

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from src.api.middleware import organization_context_middleware
from src.api.routes.auth import router as auth_router
from src.core.config import Settings, get_settings
from src.core.db import build_engine, build_session_factory
from src.core.errors import PersistenceError, ServiceError
from src.core.logging_config import configure_logging
from src.core.repositories.identity_store import IdentityStore, SqlAlchemyIdentityStore
from src.core.security.dependencies import build_password_hasher, build_token_issuer
from src.core.security.tokens import Clock
from src.core.tenant_guard import TenantAccessGuard
from src.schemas.health import HealthResponse, ReadinessResponse
from src.services.auth_service import AuthService

logger = logging.getLogger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if isinstance(exc, PersistenceError):
        logger.error("Persistence failure on %s %s", request.method, request.url.path)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app(
    settings: Settings | None = None,
    *,
    store: IdentityStore | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    engine = None
    if store is None:
        engine = build_engine(settings)
        store = SqlAlchemyIdentityStore(build_session_factory(engine))

    hasher = build_password_hasher(settings)
    tokens = build_token_issuer(settings, clock=clock)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info("%s starting in %s mode", settings.app_name, settings.environment)
        try:
            yield
        finally:
            if engine is not None:
                await engine.dispose()
            logger.info("%s shutdown complete", settings.app_name)

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.identity_store = store
    app.state.auth_service = AuthService(
        store,
        hasher,
        tokens,
        trial_period_days=settings.trial_period_days,
        clock=clock,
    )
    app.state.tenant_guard = TenantAccessGuard(store)

    app.middleware("http")(organization_context_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(auth_router, prefix="/api/v1")

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc).isoformat(),
            service=settings.app_name,
            environment=settings.environment,
            version=settings.app_version,
        )

    @app.get("/health/ready", response_model=ReadinessResponse, tags=["system"])
    async def readiness_check() -> ReadinessResponse:
        database_ok = await store.ping()
        return ReadinessResponse(status="ok" if database_ok else "degraded", database_ok=database_ok)

    return app


app = create_app()

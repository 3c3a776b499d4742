# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from app.api.middleware import (
    AuthenticationMiddleware,
    CorrelationIdMiddleware,
    PermissionAuthorizationMiddleware,
    forbidden_response,
)
from app.api.routers import audit_logs, health
from app.application.exceptions import ApplicationError
from app.config.logging import configure_logging
from app.config.settings import get_settings
from app.domain.exceptions import DomainError, DomainValidationError
from app.infrastructure.database.session import create_schema, get_engine
from app.security.exceptions import AuthenticationError, AuthorizationError
from app.security.role_policy import build_default_role_policy

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_schema_on_startup:
        logger.info("creating_database_schema")
        await create_schema(get_engine())
    yield
    await get_engine().dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Built once and shared read-only by every request.
app.state.role_policy = build_default_role_policy()

# Middleware order: last added runs first (outermost).
# Request flow: CorrelationId -> Authentication -> PermissionAuthorization.
app.add_middleware(
    PermissionAuthorizationMiddleware,
    role_policy=app.state.role_policy,
    bypass_paths=settings.authorization_bypass_paths,
    api_prefix=settings.api_prefix,
    fail_closed=settings.authorization_fail_closed,
)
app.add_middleware(
    AuthenticationMiddleware,
    secret=settings.jwt_secret,
    algorithm=settings.jwt_algorithm,
)
app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(DomainValidationError)
async def domain_validation_error_handler(request, exc: DomainValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(DomainError)
async def domain_error_handler(request, exc: DomainError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request, exc: AuthorizationError):
    return forbidden_response()


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request, exc: AuthenticationError):
    return JSONResponse(
        status_code=401,
        content={"detail": "Invalid or expired token"},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    logger.error("application_error", extra={"error": exc.message})
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request, exc: Exception):
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Routers: /health, /api/audit-logs
app.include_router(health.router)
app.include_router(audit_logs.router, prefix=f"{settings.api_prefix}/audit-logs")

"""FastAPI dependency injection: unit of work, principal, named permission checks, audit logger."""

import logging
from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.models.authorization import Principal
from app.governance.audit_logger import AuditLogger
from app.infrastructure.database.audit_repository_db import DbAuditLogRepository
from app.infrastructure.database.permission_repository_db import DbPermissionRepository
from app.infrastructure.database.session import get_session_factory
from app.infrastructure.database.unit_of_work import UnitOfWork
from app.security.exceptions import AuthorizationError
from app.security.permission_resolver import PermissionResolver
from app.security.role_policy import RolePolicy, build_default_role_policy

logger = logging.getLogger(__name__)

SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


async def get_unit_of_work(session_factory: SessionFactory) -> AsyncIterator[UnitOfWork]:
    """One unit of work per request, closed (and rolled back if still open) when the request ends."""
    async with UnitOfWork(session_factory) as uow:
        yield uow


def get_principal(request: Request) -> Principal:
    """Authenticated caller from request.state (set by AuthenticationMiddleware). 401 if anonymous."""
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


def get_role_policy(request: Request) -> RolePolicy:
    policy = getattr(request.app.state, "role_policy", None)
    if policy is None:
        policy = build_default_role_policy()
        request.app.state.role_policy = policy
    return policy


def get_audit_logger(session_factory: SessionFactory) -> AuditLogger:
    return AuditLogger(DbAuditLogRepository(session_factory))


def require_permission(permission_name: str):
    """
    Route dependency: the caller's role must hold the named permission in its tenant.
    Any failure while checking counts as a denial.
    """

    async def _check(
        principal: Annotated[Principal, Depends(get_principal)],
        role_policy: Annotated[RolePolicy, Depends(get_role_policy)],
        session_factory: SessionFactory,
    ) -> Principal:
        try:
            async with session_factory() as session:
                resolver = PermissionResolver(DbPermissionRepository(session), role_policy)
                decision = await resolver.resolve_named(
                    principal.role, principal.tenant_id, permission_name
                )
        except Exception as e:
            logger.error(
                "permission_check_failed",
                extra={"permission": permission_name, "error": str(e)},
                exc_info=True,
            )
            raise AuthorizationError(f"Permission check for '{permission_name}' failed") from e
        if not decision.allowed:
            logger.warning(
                "permission_denied",
                extra={
                    "role": principal.role,
                    "permission": permission_name,
                    "tier": decision.tier.value,
                },
            )
            raise AuthorizationError(f"Permission '{permission_name}' denied")
        return principal

    return _check

"""API middleware: correlation ID, bearer authentication, permission authorization."""

import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config.settings import get_settings
from app.core.context import correlation_id_ctx, tenant_id_ctx, user_id_ctx
from app.domain.models.authorization import (
    UNKNOWN_RESOURCE,
    AuthorizationDecision,
    PermissionAction,
    Principal,
)
from app.governance.audit_logger import AuditLogger
from app.infrastructure.database.audit_repository_db import DbAuditLogRepository
from app.infrastructure.database.permission_repository_db import DbPermissionRepository
from app.infrastructure.database.session import get_session_factory
from app.security.authentication import decode_principal, extract_bearer_token
from app.security.exceptions import AuthenticationError
from app.security.permission_resolver import PermissionResolver
from app.security.role_policy import RolePolicy, build_default_role_policy

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
ACCESS_DENIED_MESSAGE = "Access denied: Insufficient permissions"
UNKNOWN_CLIENT = "Unknown"


def forbidden_response() -> JSONResponse:
    """The single 403 body returned for every authorization denial."""
    return JSONResponse(status_code=403, content={"detail": ACCESS_DENIED_MESSAGE})


def _normalize_path(path: str) -> str:
    path = (path or "/").strip().lower()
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Generate or preserve correlation ID; attach to request.state, response header, and logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        correlation_id_ctx.set(correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Decode 'Authorization: Bearer <jwt>' into request.state.principal.
    Absent or invalid tokens leave the principal as None; rejecting
    anonymous callers is left to the routes that need a principal.
    """

    def __init__(self, app, *, secret: Optional[str] = None, algorithm: Optional[str] = None) -> None:
        super().__init__(app)
        self._secret = secret
        self._algorithm = algorithm

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.principal = None
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token:
            secret = self._secret or get_settings().jwt_secret
            algorithm = self._algorithm or get_settings().jwt_algorithm
            try:
                principal = decode_principal(token, secret, algorithm)
            except AuthenticationError as e:
                logger.info("authentication_failed", extra={"error": e.message})
            else:
                request.state.principal = principal
                tenant_id_ctx.set(principal.tenant_id)
                user_id_ctx.set(principal.user_id)
        return await call_next(request)


class PermissionAuthorizationMiddleware(BaseHTTPMiddleware):
    """
    Gate every authenticated request on (role, tenant, resource, action).

    Resource is the first path segment after the API prefix, action comes
    from the HTTP verb. Denials write a PermissionDenied audit record and
    return a uniform 403. If the check itself fails, fail_closed decides
    between 403 and letting the request through.
    """

    def __init__(
        self,
        app,
        *,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        role_policy: Optional[RolePolicy] = None,
        bypass_paths: Optional[Iterable[str]] = None,
        api_prefix: str = "/api",
        fail_closed: bool = True,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        super().__init__(app)
        self._session_factory = session_factory
        self._role_policy = role_policy or build_default_role_policy()
        paths = bypass_paths if bypass_paths is not None else get_settings().authorization_bypass_paths
        self._bypass_paths = tuple(_normalize_path(p) for p in paths)
        self._api_prefix = _normalize_path(api_prefix)
        self._fail_closed = fail_closed
        self._audit_logger = audit_logger

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    @property
    def audit_logger(self) -> AuditLogger:
        if self._audit_logger is None:
            self._audit_logger = AuditLogger(DbAuditLogRepository(self.session_factory))
        return self._audit_logger

    def is_bypassed(self, path: str) -> bool:
        """Case-insensitive segment-prefix match. '/' only matches the root itself."""
        path = _normalize_path(path)
        for bypass in self._bypass_paths:
            if bypass == "/":
                if path == "/":
                    return True
            elif path == bypass or path.startswith(bypass + "/"):
                return True
        return False

    def resource_for(self, path: str) -> str:
        path = _normalize_path(path)
        if path != self._api_prefix and not path.startswith(self._api_prefix + "/"):
            return UNKNOWN_RESOURCE
        segments = [s for s in path[len(self._api_prefix):].split("/") if s]
        return segments[0] if segments else UNKNOWN_RESOURCE

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if self.is_bypassed(path):
            return await call_next(request)

        principal: Optional[Principal] = getattr(request.state, "principal", None)
        if principal is None:
            return await call_next(request)

        resource = self.resource_for(path)
        action = PermissionAction.from_http_method(request.method)

        try:
            decision = await self._decide(principal, resource, action)
        except Exception as e:
            logger.error(
                "permission_check_failed",
                extra={
                    "path": path,
                    "method": request.method,
                    "fail_closed": self._fail_closed,
                    "error": str(e),
                },
                exc_info=True,
            )
            if self._fail_closed:
                return forbidden_response()
            return await call_next(request)

        if decision.allowed:
            return await call_next(request)

        logger.warning(
            "permission_denied",
            extra={
                "role": principal.role,
                "resource": resource,
                "action": action.value,
                "tier": decision.tier.value,
            },
        )
        await self.audit_logger.log_permission_denied(
            user_id=principal.numeric_user_id,
            email=principal.email or "",
            resource=resource,
            action=action.value,
            ip_address=request.client.host if request.client else UNKNOWN_CLIENT,
            user_agent=request.headers.get("User-Agent", ""),
            tenant_id=principal.tenant_id or "",
        )
        return forbidden_response()

    async def _decide(
        self, principal: Principal, resource: str, action: PermissionAction
    ) -> AuthorizationDecision:
        async with self.session_factory() as session:
            resolver = PermissionResolver(DbPermissionRepository(session), self._role_policy)
            return await resolver.resolve(principal.role, principal.tenant_id, resource, action)

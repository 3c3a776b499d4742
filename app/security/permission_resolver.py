"""Three-tier permission resolution: explicit grant, wildcard grant, role default. No FastAPI."""

import logging
from typing import Optional

from app.application.exceptions import StoreUnavailableError
from app.application.permission_store import PermissionStore
from app.domain.models.authorization import AuthorizationDecision, DecisionTier, PermissionAction
from app.security.role_policy import RolePolicy

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


class PermissionResolver:
    """
    Decide whether a role may perform an action in a tenant.

    Tiers are tried in order and the first match wins. A store outage during
    tiers 1 and 2 skips straight to the role defaults; it never opens access
    beyond what the role defaults grant.
    """

    def __init__(self, store: PermissionStore, role_policy: RolePolicy) -> None:
        self._store = store
        self._role_policy = role_policy

    async def resolve(
        self,
        role: Optional[str],
        tenant_id: Optional[str],
        resource: str,
        action: PermissionAction,
    ) -> AuthorizationDecision:
        if _blank(role) or _blank(tenant_id):
            return AuthorizationDecision.deny(DecisionTier.MISSING_CLAIMS)

        try:
            if await self._store.has_resource_grant(role, tenant_id, resource, action.value):
                return AuthorizationDecision.allow(DecisionTier.EXPLICIT_GRANT)
            # Wildcard grants cover every action, UNKNOWN included.
            if await self._store.has_wildcard_resource_grant(role, tenant_id):
                return AuthorizationDecision.allow(DecisionTier.WILDCARD_GRANT)
        except StoreUnavailableError as e:
            logger.warning(
                "permission_store_unavailable",
                extra={"role": role, "resource": resource, "action": action.value, "error": e.message},
            )

        if self._role_policy.allows(role, resource, action):
            return AuthorizationDecision.allow(DecisionTier.ROLE_DEFAULT)
        return AuthorizationDecision.deny()

    async def resolve_named(
        self,
        role: Optional[str],
        tenant_id: Optional[str],
        permission_name: str,
    ) -> AuthorizationDecision:
        if _blank(role) or _blank(tenant_id):
            return AuthorizationDecision.deny(DecisionTier.MISSING_CLAIMS)

        try:
            if await self._store.has_named_grant(role, tenant_id, permission_name):
                return AuthorizationDecision.allow(DecisionTier.EXPLICIT_GRANT)
            if await self._store.has_wildcard_named_grant(role, tenant_id):
                return AuthorizationDecision.allow(DecisionTier.WILDCARD_GRANT)
        except StoreUnavailableError as e:
            logger.warning(
                "permission_store_unavailable",
                extra={"role": role, "permission": permission_name, "error": e.message},
            )

        if self._role_policy.allows_named(role, permission_name):
            return AuthorizationDecision.allow(DecisionTier.ROLE_DEFAULT)
        return AuthorizationDecision.deny()

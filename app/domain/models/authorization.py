"""Domain model for authorization: actions, caller identity, decisions. No ORM."""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional

# Permission resource/name values that grant everything for a role within a tenant.
WILDCARD_VALUES: FrozenSet[str] = frozenset({"All", "*"})

UNKNOWN_RESOURCE = "unknown"


class PermissionAction(str, Enum):
    """CRUD action a permission applies to. UNKNOWN is derived for unmapped verbs and never granted."""

    CREATE = "Create"
    READ = "Read"
    UPDATE = "Update"
    DELETE = "Delete"
    UNKNOWN = "Unknown"

    @classmethod
    def from_http_method(cls, method: str) -> "PermissionAction":
        return _METHOD_ACTIONS.get((method or "").upper(), cls.UNKNOWN)


_METHOD_ACTIONS = {
    "GET": PermissionAction.READ,
    "POST": PermissionAction.CREATE,
    "PUT": PermissionAction.UPDATE,
    "PATCH": PermissionAction.UPDATE,
    "DELETE": PermissionAction.DELETE,
}

CRUD_ACTIONS: FrozenSet[PermissionAction] = frozenset(
    {
        PermissionAction.CREATE,
        PermissionAction.READ,
        PermissionAction.UPDATE,
        PermissionAction.DELETE,
    }
)


class DecisionTier(str, Enum):
    """Which step of the resolution procedure produced the decision."""

    EXPLICIT_GRANT = "explicit_grant"
    WILDCARD_GRANT = "wildcard_grant"
    ROLE_DEFAULT = "role_default"
    NO_MATCH = "no_match"
    MISSING_CLAIMS = "missing_claims"


@dataclass(frozen=True)
class AuthorizationDecision:
    """
    Outcome of a permission check. Denial is a value, not an exception.
    The tier is for logs only; it is never shown to the caller.
    """

    allowed: bool
    tier: DecisionTier

    @classmethod
    def allow(cls, tier: DecisionTier) -> "AuthorizationDecision":
        return cls(allowed=True, tier=tier)

    @classmethod
    def deny(cls, tier: DecisionTier = DecisionTier.NO_MATCH) -> "AuthorizationDecision":
        return cls(allowed=False, tier=tier)


@dataclass(frozen=True)
class Principal:
    """Identity claims of an authenticated caller, as issued by the authentication layer."""

    user_id: Optional[str]
    email: Optional[str]
    role: Optional[str]
    tenant_id: Optional[str]

    @property
    def has_authorization_claims(self) -> bool:
        return bool(self.role and self.role.strip()) and bool(
            self.tenant_id and self.tenant_id.strip()
        )

    @property
    def numeric_user_id(self) -> Optional[int]:
        """User id as stored on audit records; None when the claim is absent or not an integer."""
        try:
            return int(self.user_id) if self.user_id is not None else None
        except ValueError:
            return None

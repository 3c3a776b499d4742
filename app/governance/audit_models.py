"""Immutable audit record model. Domain-level immutability."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple


class AuditAction(str, Enum):
    """Security-relevant events written to the audit trail."""

    LOGIN = "Login"
    LOGOUT = "Logout"
    PASSWORD_CHANGE = "PasswordChange"
    MFA_SETUP = "MfaSetup"
    MFA_VERIFICATION = "MfaVerification"
    ACCOUNT_LOCKOUT = "AccountLockout"
    ACCOUNT_UNLOCK = "AccountUnlock"
    ROLE_CHANGE = "RoleChange"
    PERMISSION_DENIED = "PermissionDenied"


SECURITY_ACTIONS: FrozenSet[str] = frozenset(action.value for action in AuditAction)


@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable audit record: who (user_id, email), what (action, details),
    where from (ip_address, user_agent), outcome, when (UTC) and which tenant.
    id is None until the sink has stored it.
    """

    user_id: Optional[int]
    email: str
    action: str
    details: Optional[str]
    ip_address: str
    user_agent: str
    success: bool
    tenant_id: str
    timestamp: datetime
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for JSON logging."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "email": self.email,
            "action": self.action,
            "details": self.details,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "success": self.success,
            "tenant_id": self.tenant_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class AuditQuery:
    """Filters for reading the audit trail of one tenant. Empty filters match everything."""

    tenant_id: str
    user_id: Optional[int] = None
    actions: Tuple[str, ...] = field(default_factory=tuple)
    start: Optional[datetime] = None
    end: Optional[datetime] = None

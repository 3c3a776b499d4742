"""Append-only security audit logging. No FastAPI."""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from app.governance.audit_models import SECURITY_ACTIONS, AuditAction, AuditQuery, AuditRecord
from app.governance.audit_repository import AuditRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def _page_window(page: int, page_size: int) -> tuple[int, int]:
    page = max(page, 1)
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
    return (page - 1) * page_size, page_size


class AuditLogger:
    """
    Writes immutable audit records via repository and reads them back per tenant.

    Writes are best-effort: a failing store is logged and reported as False,
    never raised, so auditing cannot break the request being audited.
    """

    def __init__(self, repository: AuditRepository) -> None:
        self._repository = repository

    async def log_event(
        self,
        *,
        user_id: Optional[int],
        email: str,
        action: str,
        ip_address: str,
        user_agent: str,
        success: bool,
        details: Optional[str],
        tenant_id: str,
    ) -> bool:
        """Write one audit record with a UTC timestamp. Returns False if the store rejected it."""
        record = AuditRecord(
            user_id=user_id,
            email=email or "",
            action=action,
            details=details,
            ip_address=ip_address or "",
            user_agent=user_agent or "",
            success=success,
            tenant_id=tenant_id or "",
            timestamp=datetime.now(timezone.utc),
        )
        try:
            await self._repository.save(record)
        except Exception as e:
            logger.error(
                "audit_write_failed",
                extra={"action": action, "audit_user_id": user_id, "error": str(e)},
            )
            return False
        return True

    async def log_permission_denied(
        self,
        *,
        user_id: Optional[int],
        email: str,
        resource: str,
        action: str,
        ip_address: str,
        user_agent: str,
        tenant_id: str,
    ) -> bool:
        return await self.log_event(
            user_id=user_id,
            email=email,
            action=AuditAction.PERMISSION_DENIED.value,
            ip_address=ip_address,
            user_agent=user_agent,
            success=False,
            details=f"Access denied to {resource} for action {action}",
            tenant_id=tenant_id,
        )

    async def log_login_attempt(
        self,
        *,
        user_id: Optional[int],
        email: str,
        ip_address: str,
        user_agent: str,
        success: bool,
        details: str,
        tenant_id: str,
    ) -> bool:
        return await self.log_event(
            user_id=user_id,
            email=email,
            action=AuditAction.LOGIN.value,
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
            details=details,
            tenant_id=tenant_id,
        )

    async def log_logout(
        self,
        *,
        user_id: int,
        email: str,
        ip_address: str,
        user_agent: str,
        tenant_id: str,
    ) -> bool:
        return await self.log_event(
            user_id=user_id,
            email=email,
            action=AuditAction.LOGOUT.value,
            ip_address=ip_address,
            user_agent=user_agent,
            success=True,
            details="User logged out",
            tenant_id=tenant_id,
        )

    async def log_password_change(
        self,
        *,
        user_id: int,
        email: str,
        ip_address: str,
        user_agent: str,
        success: bool,
        tenant_id: str,
    ) -> bool:
        return await self.log_event(
            user_id=user_id,
            email=email,
            action=AuditAction.PASSWORD_CHANGE.value,
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
            details="Password changed" if success else "Password change failed",
            tenant_id=tenant_id,
        )

    async def log_role_change(
        self,
        *,
        user_id: int,
        email: str,
        old_role: str,
        new_role: str,
        ip_address: str,
        user_agent: str,
        tenant_id: str,
    ) -> bool:
        return await self.log_event(
            user_id=user_id,
            email=email,
            action=AuditAction.ROLE_CHANGE.value,
            ip_address=ip_address,
            user_agent=user_agent,
            success=True,
            details=f"Role changed from {old_role} to {new_role}",
            tenant_id=tenant_id,
        )

    # --- reads ---

    async def get_audit_logs(
        self,
        tenant_id: str,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[AuditRecord]:
        offset, limit = _page_window(page, page_size)
        query = AuditQuery(
            tenant_id=tenant_id,
            user_id=user_id,
            actions=(action,) if action else (),
            start=start,
            end=end,
        )
        return await self._repository.list(query, offset, limit)

    async def count_audit_logs(
        self,
        tenant_id: str,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        query = AuditQuery(
            tenant_id=tenant_id,
            user_id=user_id,
            actions=(action,) if action else (),
            start=start,
            end=end,
        )
        return await self._repository.count(query)

    async def get_security_events(
        self,
        tenant_id: str,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> List[AuditRecord]:
        offset, limit = _page_window(page, page_size)
        query = AuditQuery(tenant_id=tenant_id, actions=tuple(sorted(SECURITY_ACTIONS)))
        return await self._repository.list(query, offset, limit)

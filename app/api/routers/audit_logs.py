"""Audit log API router: tenant-scoped, paginated, read-only views of the security audit trail."""

from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_audit_logger, get_principal
from app.domain.models.authorization import Principal
from app.domain.schemas.audit_log import AuditLogPage, AuditLogResponse
from app.governance.audit_logger import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, AuditLogger

router = APIRouter()

PageParam = Annotated[int, Query(ge=1)]
PageSizeParam = Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)]


@router.get("", response_model=AuditLogPage)
async def list_audit_logs(
    principal: Annotated[Principal, Depends(get_principal)],
    audit_logger: Annotated[AuditLogger, Depends(get_audit_logger)],
    page: PageParam = 1,
    page_size: PageSizeParam = DEFAULT_PAGE_SIZE,
    user_id: Optional[int] = None,
    action: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> AuditLogPage:
    """Audit records of the caller's tenant, newest first."""
    tenant_id = principal.tenant_id or ""
    records = await audit_logger.get_audit_logs(
        tenant_id,
        page=page,
        page_size=page_size,
        user_id=user_id,
        action=action,
        start=start,
        end=end,
    )
    total = await audit_logger.count_audit_logs(
        tenant_id, user_id=user_id, action=action, start=start, end=end
    )
    return AuditLogPage(
        items=[AuditLogResponse.model_validate(r) for r in records],
        page=page,
        page_size=page_size,
        total=total,
    )


@router.get("/count")
async def count_audit_logs(
    principal: Annotated[Principal, Depends(get_principal)],
    audit_logger: Annotated[AuditLogger, Depends(get_audit_logger)],
    user_id: Optional[int] = None,
    action: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
):
    total = await audit_logger.count_audit_logs(
        principal.tenant_id or "", user_id=user_id, action=action, start=start, end=end
    )
    return {"count": total}


@router.get("/security-events", response_model=list[AuditLogResponse])
async def list_security_events(
    principal: Annotated[Principal, Depends(get_principal)],
    audit_logger: Annotated[AuditLogger, Depends(get_audit_logger)],
    page: PageParam = 1,
    page_size: PageSizeParam = DEFAULT_PAGE_SIZE,
):
    records = await audit_logger.get_security_events(
        principal.tenant_id or "", page=page, page_size=page_size
    )
    return [AuditLogResponse.model_validate(r) for r in records]

"""Pydantic schemas for audit log queries. Read-only; audit records are never updated through the API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuditLogResponse(BaseModel):
    """One persisted audit record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    email: str
    action: str
    details: Optional[str] = None
    ip_address: str
    user_agent: str
    success: bool
    timestamp: datetime
    tenant_id: str


class AuditLogPage(BaseModel):
    """Page of audit records, newest first."""

    items: List[AuditLogResponse]
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0)

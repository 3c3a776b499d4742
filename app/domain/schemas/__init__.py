"""Domain schemas. Request/response and validation."""

from app.domain.schemas.audit_log import AuditLogPage, AuditLogResponse

__all__ = [
    "AuditLogPage",
    "AuditLogResponse",
]

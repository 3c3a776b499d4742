"""Governance: append-only security audit trail. No FastAPI."""

from app.governance.audit_logger import AuditLogger
from app.governance.audit_models import AuditAction, AuditQuery, AuditRecord

__all__ = [
    "AuditAction",
    "AuditLogger",
    "AuditQuery",
    "AuditRecord",
]

"""Audit repository protocol. Governance layer depends on this; infrastructure implements it."""

from typing import List, Protocol

from app.governance.audit_models import AuditQuery, AuditRecord


class AuditRepository(Protocol):
    """Protocol for persisting and reading immutable audit records."""

    async def save(self, record: AuditRecord) -> None:
        """Append an immutable audit record. Must not allow mutation."""
        ...

    async def list(self, query: AuditQuery, offset: int, limit: int) -> List[AuditRecord]:
        """Records matching the query, newest first."""
        ...

    async def count(self, query: AuditQuery) -> int:
        """Number of records matching the query."""
        ...

"""DB-backed audit repository. Persists audit records to the audit_logs table."""

from datetime import timezone
from typing import List

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.governance.audit_models import AuditQuery, AuditRecord
from app.infrastructure.database.models import AuditLog


def _to_record(orm: AuditLog) -> AuditRecord:
    timestamp = orm.timestamp
    if timestamp is not None and timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return AuditRecord(
        id=orm.id,
        user_id=orm.user_id,
        email=orm.email,
        action=orm.action,
        details=orm.details,
        ip_address=orm.ip_address,
        user_agent=orm.user_agent,
        success=orm.success,
        tenant_id=orm.tenant_id,
        timestamp=timestamp,
    )


def _apply_filters(stmt: Select, query: AuditQuery) -> Select:
    stmt = stmt.where(AuditLog.tenant_id == query.tenant_id)
    if query.user_id is not None:
        stmt = stmt.where(AuditLog.user_id == query.user_id)
    if query.actions:
        stmt = stmt.where(AuditLog.action.in_(query.actions))
    if query.start is not None:
        stmt = stmt.where(AuditLog.timestamp >= query.start)
    if query.end is not None:
        stmt = stmt.where(AuditLog.timestamp <= query.end)
    return stmt


class DbAuditLogRepository:
    """
    Implements AuditRepository. Every call opens its own short-lived session,
    so an audit write commits independently of whatever the caller's unit of
    work later does.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, record: AuditRecord) -> None:
        async with self._session_factory() as session:
            session.add(
                AuditLog(
                    user_id=record.user_id,
                    email=record.email,
                    action=record.action,
                    details=record.details,
                    ip_address=record.ip_address,
                    user_agent=record.user_agent,
                    success=record.success,
                    tenant_id=record.tenant_id,
                    timestamp=record.timestamp,
                )
            )
            await session.commit()

    async def list(self, query: AuditQuery, offset: int, limit: int) -> List[AuditRecord]:
        stmt = (
            _apply_filters(select(AuditLog), query)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
            .offset(offset)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [_to_record(row) for row in result.scalars().all()]

    async def count(self, query: AuditQuery) -> int:
        stmt = _apply_filters(select(func.count(AuditLog.id)), query)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

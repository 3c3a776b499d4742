# app/infrastructure/database/repository.py

from typing import Any, AsyncIterator, Callable, Generic, Iterable, List, Optional, Type, TypeVar, Union

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.application.exceptions import TenantScopeRequiredError
from app.domain.validators.tenant_validator import parse_tenant_id
from app.infrastructure.database.models import SYSTEM_ACTOR, BaseEntity, is_tenant_owned, utcnow

T = TypeVar("T", bound=BaseEntity)

TenantId = Union[int, str]


class Repository(Generic[T]):
    """
    Soft-delete-aware, tenant-scoped data access for one entity type.

    Every read composes the caller's predicate with the base filter
    (not deleted, and same tenant for tenant-owned types) using AND.
    Writes only queue changes on the session; the owning unit of work persists them.
    """

    def __init__(
        self,
        model: Type[T],
        session: AsyncSession,
        on_access: Optional[Callable[[], None]] = None,
    ) -> None:
        self.model = model
        self._session = session
        # Owner hook; raises once the owning unit of work is closed.
        self._on_access = on_access
        # Decided once per repository, never per call.
        self._tenant_scoped = is_tenant_owned(model)

    @property
    def tenant_scoped(self) -> bool:
        return self._tenant_scoped

    # --- query composition ---

    def _check_access(self) -> None:
        if self._on_access is not None:
            self._on_access()

    def _base_criteria(self, tenant_id: Optional[TenantId]) -> List[ColumnElement[bool]]:
        self._check_access()
        criteria: List[ColumnElement[bool]] = [self.model.is_deleted.is_(False)]
        # Malformed ids fail fast even for types without a tenant column.
        parsed = parse_tenant_id(tenant_id) if tenant_id is not None else None
        if self._tenant_scoped:
            if parsed is None:
                raise TenantScopeRequiredError(
                    f"{self.model.__name__} is tenant-owned; a tenant_id is required"
                )
            criteria.append(self.model.tenant_id == parsed)
        return criteria

    def query(self, tenant_id: Optional[TenantId] = None) -> Select:
        """Composable select pre-filtered by soft delete (and tenant)."""
        return select(self.model).where(*self._base_criteria(tenant_id))

    def query_with_includes(self, *includes: Any, tenant_id: Optional[TenantId] = None) -> Select:
        """Pre-filtered select that eager-loads the given relationship attributes."""
        stmt = self.query(tenant_id)
        for include in includes:
            stmt = stmt.options(selectinload(include))
        return stmt

    def _filtered(
        self,
        predicate: Optional[ColumnElement[bool]],
        tenant_id: Optional[TenantId],
    ) -> Select:
        stmt = self.query(tenant_id)
        if predicate is not None:
            stmt = stmt.where(predicate)
        return stmt

    # --- reads ---

    async def get_by_id(self, id: int, tenant_id: Optional[TenantId] = None) -> Optional[T]:
        stmt = self.query(tenant_id).where(self.model.id == id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(self, tenant_id: Optional[TenantId] = None) -> List[T]:
        result = await self._session.execute(self.query(tenant_id))
        return list(result.scalars().all())

    async def stream(self, tenant_id: Optional[TenantId] = None) -> AsyncIterator[T]:
        """Yield matching entities as rows arrive instead of materializing a list."""
        result = await self._session.stream_scalars(self.query(tenant_id))
        try:
            async for entity in result:
                yield entity
        finally:
            await result.close()

    async def find(
        self,
        predicate: ColumnElement[bool],
        tenant_id: Optional[TenantId] = None,
    ) -> List[T]:
        result = await self._session.execute(self._filtered(predicate, tenant_id))
        return list(result.scalars().all())

    async def first_or_default(
        self,
        predicate: ColumnElement[bool],
        tenant_id: Optional[TenantId] = None,
    ) -> Optional[T]:
        stmt = self._filtered(predicate, tenant_id).order_by(self.model.id).limit(1)
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def exists(
        self,
        predicate: ColumnElement[bool],
        tenant_id: Optional[TenantId] = None,
    ) -> bool:
        stmt = select(self._filtered(predicate, tenant_id).exists())
        return bool(await self._session.scalar(stmt))

    async def exists_by_id(self, id: int, tenant_id: Optional[TenantId] = None) -> bool:
        return await self.exists(self.model.id == id, tenant_id)

    async def count(
        self,
        predicate: Optional[ColumnElement[bool]] = None,
        tenant_id: Optional[TenantId] = None,
    ) -> int:
        subquery = self._filtered(predicate, tenant_id).subquery()
        stmt = select(func.count()).select_from(subquery)
        return int(await self._session.scalar(stmt) or 0)

    # --- writes (queued until the unit of work saves changes) ---

    async def add(self, entity: T) -> T:
        """Stamp created_at and queue the insert. Identity is assigned by the store on save."""
        self._check_access()
        entity.created_at = utcnow()
        self._session.add(entity)
        return entity

    async def add_range(self, entities: Iterable[T]) -> List[T]:
        return [await self.add(entity) for entity in entities]

    async def update(self, entity: T) -> T:
        self._check_access()
        entity.mark_as_updated(entity.updated_by or SYSTEM_ACTOR)
        self._session.add(entity)
        return entity

    async def update_range(self, entities: Iterable[T]) -> List[T]:
        return [await self.update(entity) for entity in entities]

    async def delete(self, entity: T, deleted_by: str) -> None:
        """Logical delete: flag the entity and queue it as an update."""
        entity.mark_as_deleted(deleted_by)
        entity.updated_by = deleted_by
        await self.update(entity)

    async def delete_by_id(
        self,
        id: int,
        deleted_by: str,
        tenant_id: Optional[TenantId] = None,
    ) -> bool:
        """Soft-delete by id. Returns False when no visible entity matches."""
        entity = await self.get_by_id(id, tenant_id)
        if entity is None:
            return False
        await self.delete(entity, deleted_by)
        return True

    async def delete_range(self, entities: Iterable[T], deleted_by: str) -> None:
        for entity in entities:
            await self.delete(entity, deleted_by)

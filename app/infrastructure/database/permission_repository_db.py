"""DB-backed permission grant lookups. Implements the PermissionStore protocol."""

from sqlalchemy import ColumnElement, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.exceptions import StoreUnavailableError
from app.domain.models.authorization import WILDCARD_VALUES
from app.infrastructure.database.models import Permission, RolePermission


class DbPermissionRepository:
    """Answers "does this role hold a true grant" over role_permissions joined to permissions."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def has_resource_grant(self, role: str, tenant_id: str, resource: str, action: str) -> bool:
        return await self._has_grant(
            role,
            tenant_id,
            Permission.resource == resource,
            Permission.action == action,
        )

    async def has_wildcard_resource_grant(self, role: str, tenant_id: str) -> bool:
        return await self._has_grant(role, tenant_id, Permission.resource.in_(sorted(WILDCARD_VALUES)))

    async def has_named_grant(self, role: str, tenant_id: str, permission_name: str) -> bool:
        return await self._has_grant(role, tenant_id, Permission.name == permission_name)

    async def has_wildcard_named_grant(self, role: str, tenant_id: str) -> bool:
        return await self._has_grant(role, tenant_id, Permission.name.in_(sorted(WILDCARD_VALUES)))

    async def _has_grant(self, role: str, tenant_id: str, *criteria: ColumnElement[bool]) -> bool:
        # is_granted=False rows are ignored, which makes them equivalent to no row at all.
        stmt = (
            select(RolePermission.id)
            .join(RolePermission.permission)
            .where(
                RolePermission.role == role,
                RolePermission.is_granted.is_(True),
                Permission.tenant_id == tenant_id,
                Permission.is_active.is_(True),
                *criteria,
            )
            .limit(1)
        )
        try:
            result = await self._session.execute(stmt)
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailableError(f"Permission lookup failed: {e}") from e
        return result.first() is not None

"""DB permission store tests: grant lookups over role_permissions joined to permissions."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from app.application.exceptions import StoreUnavailableError
from app.infrastructure.database.models import Permission, RolePermission
from app.infrastructure.database.permission_repository_db import DbPermissionRepository


async def _grant(
    session,
    *,
    role: str,
    tenant_id: str = "1",
    name: str = "ViewTrips",
    resource: str = "trips",
    action: str = "Read",
    is_granted: bool = True,
    is_active: bool = True,
):
    permission = Permission(
        name=name,
        resource=resource,
        action=action,
        tenant_id=tenant_id,
        is_active=is_active,
    )
    session.add(permission)
    await session.flush()
    session.add(
        RolePermission(
            role=role,
            permission_id=permission.id,
            is_granted=is_granted,
            tenant_id=tenant_id,
        )
    )
    await session.commit()


@pytest.fixture
def store(session):
    return DbPermissionRepository(session)


async def test_resource_grant_matches_role_tenant_resource_action(session, store):
    await _grant(session, role="Driver")
    assert await store.has_resource_grant("Driver", "1", "trips", "Read") is True
    assert await store.has_resource_grant("Driver", "1", "trips", "Delete") is False
    assert await store.has_resource_grant("Driver", "2", "trips", "Read") is False
    assert await store.has_resource_grant("Parent", "1", "trips", "Read") is False


async def test_false_grant_is_not_a_grant(session, store):
    await _grant(session, role="Driver", is_granted=False)
    assert await store.has_resource_grant("Driver", "1", "trips", "Read") is False
    assert await store.has_named_grant("Driver", "1", "ViewTrips") is False


async def test_inactive_permission_is_not_a_grant(session, store):
    await _grant(session, role="Driver", is_active=False)
    assert await store.has_resource_grant("Driver", "1", "trips", "Read") is False


@pytest.mark.parametrize("wildcard", ["All", "*"])
async def test_wildcard_resource_grant(session, store, wildcard):
    await _grant(session, role="Auditor", name="Everything", resource=wildcard, action="Read")
    assert await store.has_wildcard_resource_grant("Auditor", "1") is True
    assert await store.has_wildcard_resource_grant("Auditor", "2") is False


@pytest.mark.parametrize("wildcard", ["All", "*"])
async def test_wildcard_named_grant(session, store, wildcard):
    await _grant(session, role="Auditor", name=wildcard, resource="reports")
    assert await store.has_wildcard_named_grant("Auditor", "1") is True
    assert await store.has_named_grant("Auditor", "1", "ViewReports") is False


async def test_named_grant(session, store):
    await _grant(session, role="Dispatcher", name="ManageTrips", action="Update")
    assert await store.has_named_grant("Dispatcher", "1", "ManageTrips") is True
    assert await store.has_named_grant("Dispatcher", "1", "ViewTrips") is False


async def test_store_failure_raises_store_unavailable():
    session = AsyncMock()
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
    store = DbPermissionRepository(session)
    with pytest.raises(StoreUnavailableError):
        await store.has_resource_grant("Driver", "1", "trips", "Read")

"""Tests for API dependencies: per-request unit of work and named permission checks."""

from typing import Annotated

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_principal, get_unit_of_work, require_permission
from app.api.middleware import AuthenticationMiddleware
from app.domain.models.authorization import Principal
from app.infrastructure.database.models import Permission, RolePermission, Student
from app.infrastructure.database.session import get_session_factory
from app.infrastructure.database.unit_of_work import UnitOfWork
from app.main import authorization_error_handler
from app.security.exceptions import AuthorizationError


def build_app(session_factory, seen: list) -> FastAPI:
    test_app = FastAPI()
    test_app.dependency_overrides[get_session_factory] = lambda: session_factory
    test_app.add_exception_handler(AuthorizationError, authorization_error_handler)
    test_app.add_middleware(AuthenticationMiddleware)

    @test_app.post("/students")
    async def create_student(
        principal: Annotated[Principal, Depends(get_principal)],
        uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    ):
        seen.append(uow)
        student = await uow.students.add(
            Student(
                tenant_id=int(principal.tenant_id),
                student_number="S-1",
                first_name="Ann",
                last_name="Doe",
            )
        )
        await uow.save_changes()
        return {"id": student.id}

    @test_app.get("/students/count")
    async def count_students(
        principal: Annotated[Principal, Depends(get_principal)],
        uow: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    ):
        return {"count": await uow.students.count(tenant_id=principal.tenant_id)}

    @test_app.get("/trips")
    async def view_trips(principal: Annotated[Principal, Depends(require_permission("ViewTrips"))]):
        return {"role": principal.role}

    @test_app.get("/users")
    async def manage_users(_: Annotated[Principal, Depends(require_permission("ManageUsers"))]):
        return {"ok": True}

    return test_app


@pytest.fixture
def seen():
    return []


@pytest.fixture
async def client(session_factory, seen):
    transport = ASGITransport(app=build_app(session_factory, seen))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def test_unit_of_work_per_request_and_closed_after(client, auth_headers, seen):
    r1 = await client.post("/students", headers=auth_headers(tenant_id="1"))
    r2 = await client.post("/students", headers=auth_headers(tenant_id="1"))
    assert r1.status_code == 200 and r2.status_code == 200
    assert r1.json()["id"] != r2.json()["id"]
    assert len(seen) == 2
    assert seen[0] is not seen[1]
    assert all(uow.closed for uow in seen)


async def test_unit_of_work_reads_are_tenant_scoped(client, auth_headers):
    await client.post("/students", headers=auth_headers(tenant_id="1"))
    r = await client.get("/students/count", headers=auth_headers(tenant_id="2"))
    assert r.json() == {"count": 0}


async def test_require_permission_role_default(client, auth_headers):
    r = await client.get("/trips", headers=auth_headers(role="Student"))
    assert r.status_code == 200
    assert r.json() == {"role": "Student"}


async def test_require_permission_denied_with_uniform_body(client, auth_headers):
    r = await client.get("/users", headers=auth_headers(role="Parent"))
    assert r.status_code == 403
    assert r.json() == {"detail": "Access denied: Insufficient permissions"}


async def test_require_permission_explicit_grant(client, auth_headers, session):
    permission = Permission(name="ManageUsers", resource="users", action="Update", tenant_id="1")
    session.add(permission)
    await session.flush()
    session.add(RolePermission(role="Parent", permission_id=permission.id, tenant_id="1"))
    await session.commit()

    r = await client.get("/users", headers=auth_headers(role="Parent", tenant_id="1"))
    assert r.status_code == 200


async def test_require_permission_missing_tenant_claim(client, raw_auth_headers):
    r = await client.get("/trips", headers=raw_auth_headers({"sub": "1", "role": "Student"}))
    assert r.status_code == 403


async def test_require_permission_needs_principal(client):
    r = await client.get("/trips")
    assert r.status_code == 401

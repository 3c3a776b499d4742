"""Unit of work tests: repository registry, transaction state machine, save semantics, disposal."""

import asyncio

import pytest

from app.application.exceptions import (
    RepositoryNotRegisteredError,
    TransactionStateError,
    UnitOfWorkClosedError,
)
from app.infrastructure.database.models import AuditLog, Driver, Student, Trip, VehicleLocation
from app.infrastructure.database.unit_of_work import UnitOfWork


def _student(first_name: str, tenant_id: int = 1) -> Student:
    return Student(
        tenant_id=tenant_id,
        student_number=f"S-{first_name}",
        first_name=first_name,
        last_name="Doe",
    )


async def _count_students(session_factory, tenant_id: int = 1) -> int:
    async with UnitOfWork(session_factory) as uow:
        return await uow.students.count(tenant_id=tenant_id)


async def test_repository_returns_same_instance(session_factory):
    async with UnitOfWork(session_factory) as uow:
        assert uow.repository(Student) is uow.repository(Student)
        assert uow.students is uow.repository(Student)
        assert uow.trips is uow.repository(Trip)
        assert uow.drivers.model is Driver
        assert uow.repository(VehicleLocation).tenant_scoped is False


async def test_unregistered_type_raises(session_factory):
    async with UnitOfWork(session_factory) as uow:
        with pytest.raises(RepositoryNotRegisteredError):
            uow.repository(AuditLog)


async def test_registry_limited_to_given_types(session_factory):
    async with UnitOfWork(session_factory, entity_types=[Student]) as uow:
        assert uow.students.model is Student
        with pytest.raises(RepositoryNotRegisteredError):
            _ = uow.drivers


async def test_repositories_share_the_unit_of_work_session(session_factory):
    async with UnitOfWork(session_factory) as uow:
        await uow.students.add(_student("Ann"))
        await uow.drivers.add(
            Driver(
                tenant_id=1,
                employee_number="E1",
                first_name="Dee",
                last_name="River",
                license_number="L1",
            )
        )
        assert len(uow.session.new) == 2


async def test_save_changes_commits_and_assigns_identity(session_factory):
    async with UnitOfWork(session_factory) as uow:
        student = await uow.students.add(_student("Ann"))
        assert student.id is None
        affected = await uow.save_changes()
        assert affected == 1
        assert student.id is not None
        assert await uow.students.get_by_id(student.id, tenant_id=1) is student
    assert await _count_students(session_factory) == 1


async def test_save_changes_counts_adds_and_updates(session_factory):
    async with UnitOfWork(session_factory) as uow:
        ann = await uow.students.add(_student("Ann"))
        await uow.save_changes()

        ann.grade = "4"
        await uow.students.update(ann)
        await uow.students.add(_student("Bob"))
        assert await uow.save_changes() == 2


async def test_save_changes_with_nothing_pending_returns_zero(session_factory):
    async with UnitOfWork(session_factory) as uow:
        assert await uow.save_changes() == 0


async def test_begin_twice_raises(session_factory):
    async with UnitOfWork(session_factory) as uow:
        await uow.begin_transaction()
        with pytest.raises(TransactionStateError):
            await uow.begin_transaction()
        assert uow.in_transaction is True


async def test_commit_and_rollback_without_transaction_are_noops(session_factory):
    async with UnitOfWork(session_factory) as uow:
        await uow.commit_transaction()
        await uow.rollback_transaction()
        assert uow.in_transaction is False


async def test_changes_join_open_transaction_until_commit(session_factory):
    async with UnitOfWork(session_factory) as uow:
        await uow.begin_transaction()
        await uow.students.add(_student("Ann"))
        await uow.save_changes()
        assert uow.in_transaction is True
        await uow.commit_transaction()
        assert uow.in_transaction is False
    assert await _count_students(session_factory) == 1


async def test_rollback_discards_saved_changes(session_factory):
    async with UnitOfWork(session_factory) as uow:
        await uow.begin_transaction()
        await uow.students.add(_student("Ann"))
        await uow.save_changes()
        await uow.rollback_transaction()
        assert uow.in_transaction is False
    assert await _count_students(session_factory) == 0


async def test_transaction_can_be_reopened_after_commit(session_factory):
    async with UnitOfWork(session_factory) as uow:
        await uow.begin_transaction()
        await uow.commit_transaction()
        await uow.begin_transaction()
        assert uow.in_transaction is True


async def test_open_transaction_rolled_back_on_exit(session_factory):
    async with UnitOfWork(session_factory) as uow:
        await uow.begin_transaction()
        await uow.students.add(_student("Ann"))
        await uow.save_changes()
    assert uow.closed is True
    assert await _count_students(session_factory) == 0


async def test_open_transaction_rolled_back_when_block_raises(session_factory):
    with pytest.raises(RuntimeError):
        async with UnitOfWork(session_factory) as uow:
            await uow.begin_transaction()
            await uow.students.add(_student("Ann"))
            await uow.save_changes()
            raise RuntimeError("boom")
    assert uow.closed is True
    assert await _count_students(session_factory) == 0


async def test_open_transaction_rolled_back_on_cancellation(session_factory):
    started = asyncio.Event()
    holder = {}

    async def work():
        async with UnitOfWork(session_factory) as uow:
            holder["uow"] = uow
            await uow.begin_transaction()
            await uow.students.add(_student("Ann"))
            await uow.save_changes()
            started.set()
            await asyncio.sleep(3600)

    task = asyncio.create_task(work())
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert holder["uow"].closed is True
    assert await _count_students(session_factory) == 0


async def test_use_after_close_raises(session_factory):
    async with UnitOfWork(session_factory) as uow:
        students = uow.students
    with pytest.raises(UnitOfWorkClosedError):
        uow.repository(Student)
    with pytest.raises(UnitOfWorkClosedError):
        await uow.save_changes()
    with pytest.raises(UnitOfWorkClosedError):
        await uow.begin_transaction()
    # Repositories handed out earlier are guarded too.
    with pytest.raises(UnitOfWorkClosedError):
        await students.get_all(tenant_id=1)


async def test_close_is_idempotent(session_factory):
    uow = UnitOfWork(session_factory)
    await uow.close()
    await uow.close()
    assert uow.closed is True


async def test_soft_delete_persists_through_save_changes(session_factory):
    async with UnitOfWork(session_factory) as uow:
        ann = await uow.students.add(_student("Ann"))
        await uow.save_changes()
        await uow.students.delete(ann, deleted_by="admin")
        assert await uow.save_changes() == 1
    assert await _count_students(session_factory) == 0

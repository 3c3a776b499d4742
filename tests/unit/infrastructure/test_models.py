"""Entity tests: audit stamps, soft delete, tenant marker, transport helpers."""

from datetime import date

from app.infrastructure.database.models import (
    REGISTERED_ENTITIES,
    AuditLog,
    Driver,
    Student,
    Trip,
    TripStatus,
    VehicleLocation,
    is_tenant_owned,
)


def test_mark_as_updated_stamps_actor_and_time():
    student = Student(tenant_id=1, student_number="S1", first_name="A", last_name="B")
    student.mark_as_updated("dispatcher")
    assert student.updated_by == "dispatcher"
    assert student.updated_at is not None


def test_mark_as_deleted_sets_flag_and_stamps():
    student = Student(tenant_id=1, student_number="S1", first_name="A", last_name="B")
    student.mark_as_deleted("admin")
    assert student.is_deleted is True
    assert student.deleted_by == "admin"
    assert student.deleted_at is not None


def test_tenant_marker():
    assert is_tenant_owned(Student) is True
    assert is_tenant_owned(VehicleLocation) is False
    assert is_tenant_owned(AuditLog) is False
    assert VehicleLocation in REGISTERED_ENTITIES
    assert AuditLog not in REGISTERED_ENTITIES


def test_trip_status_helpers():
    trip = Trip(status=TripStatus.IN_PROGRESS.value)
    assert trip.is_in_progress() is True
    assert trip.is_completed() is False
    trip.status = TripStatus.COMPLETED.value
    assert trip.is_completed() is True


def test_driver_license_validity():
    driver = Driver(license_expiry=date(2030, 1, 1))
    assert driver.is_license_valid(today=date(2029, 12, 31)) is True
    assert driver.is_license_valid(today=date(2030, 1, 1)) is False
    assert Driver(license_expiry=None).is_license_valid() is False

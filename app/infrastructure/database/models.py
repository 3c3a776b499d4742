# app/infrastructure/database/models.py

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.infrastructure.database.session import Base

SYSTEM_ACTOR = "System"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseEntity(Base):
    """
    Contract every stored record satisfies: store-assigned integer identity,
    audit timestamps and a soft-delete flag. Records are never physically removed.
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    created_by = Column(String(100), nullable=False, default="")
    updated_by = Column(String(100), nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(100), nullable=True)

    def mark_as_updated(self, updated_by: str) -> None:
        self.updated_at = utcnow()
        self.updated_by = updated_by

    def mark_as_deleted(self, deleted_by: str) -> None:
        self.is_deleted = True
        self.deleted_at = utcnow()
        self.deleted_by = deleted_by


class TenantOwned:
    """Marker mixin: the entity belongs to exactly one tenant and every query must be scoped to it."""

    tenant_id = Column(Integer, nullable=False, index=True)


def is_tenant_owned(entity_type: type) -> bool:
    return issubclass(entity_type, TenantOwned)


class TripStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    DELAYED = "Delayed"


# --- Transport entities (tenant-owned) ---


class User(TenantOwned, BaseEntity):
    __tablename__ = "users"

    username = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)


class Driver(TenantOwned, BaseEntity):
    __tablename__ = "drivers"

    employee_number = Column(String(50), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    license_number = Column(String(50), nullable=False)
    license_expiry = Column(Date, nullable=True)
    phone = Column(String(30), nullable=False, default="")
    status = Column(String(30), nullable=False, default="Active")

    trips = relationship("Trip", back_populates="driver")

    def is_license_valid(self, today: Optional[date] = None) -> bool:
        today = today or date.today()
        return self.license_expiry is not None and self.license_expiry > today


class Vehicle(TenantOwned, BaseEntity):
    __tablename__ = "vehicles"

    vehicle_number = Column(String(50), nullable=False)
    license_plate = Column(String(20), nullable=False)
    make = Column(String(50), nullable=False, default="")
    model = Column(String(50), nullable=False, default="")
    year = Column(Integer, nullable=True)
    capacity = Column(Integer, nullable=False, default=0)
    status = Column(String(30), nullable=False, default="Active")
    assigned_driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)

    assigned_driver = relationship("Driver")
    trips = relationship("Trip", back_populates="vehicle")


class Route(TenantOwned, BaseEntity):
    __tablename__ = "routes"

    route_number = Column(String(50), nullable=False)
    name = Column(String(200), nullable=False)
    status = Column(String(30), nullable=False, default="Active")
    assigned_vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    assigned_driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)

    stops = relationship("RouteStop", back_populates="route", order_by="RouteStop.sequence")
    trips = relationship("Trip", back_populates="route")
    students = relationship("Student", back_populates="route")


class RouteStop(TenantOwned, BaseEntity):
    __tablename__ = "route_stops"

    route_id = Column(Integer, ForeignKey("routes.id"), nullable=False)
    name = Column(String(200), nullable=False)
    sequence = Column(Integer, nullable=False, default=0)

    route = relationship("Route", back_populates="stops")


class Student(TenantOwned, BaseEntity):
    __tablename__ = "students"

    student_number = Column(String(50), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    grade = Column(String(20), nullable=False, default="")
    school = Column(String(200), nullable=False, default="")
    status = Column(String(30), nullable=False, default="Active")
    parent_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    route_id = Column(Integer, ForeignKey("routes.id"), nullable=True)

    route = relationship("Route", back_populates="students")


class Trip(TenantOwned, BaseEntity):
    __tablename__ = "trips"

    route_id = Column(Integer, ForeignKey("routes.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    scheduled_start_time = Column(DateTime(timezone=True), nullable=False)
    scheduled_end_time = Column(DateTime(timezone=True), nullable=False)
    actual_start_time = Column(DateTime(timezone=True), nullable=True)
    actual_end_time = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(30), nullable=False, default=TripStatus.SCHEDULED.value)
    notes = Column(Text, nullable=True)

    route = relationship("Route", back_populates="trips")
    vehicle = relationship("Vehicle", back_populates="trips")
    driver = relationship("Driver", back_populates="trips")
    attendances = relationship("Attendance", back_populates="trip")

    def is_in_progress(self) -> bool:
        return self.status == TripStatus.IN_PROGRESS.value

    def is_completed(self) -> bool:
        return self.status == TripStatus.COMPLETED.value


class Attendance(TenantOwned, BaseEntity):
    __tablename__ = "attendances"

    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(30), nullable=False)
    recorded_by = Column(String(100), nullable=False, default="")

    student = relationship("Student")
    trip = relationship("Trip", back_populates="attendances")


class Payment(TenantOwned, BaseEntity):
    __tablename__ = "payments"

    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(30), nullable=False, default="Pending")
    paid_at = Column(DateTime(timezone=True), nullable=True)

    student = relationship("Student")


class MaintenanceRecord(TenantOwned, BaseEntity):
    __tablename__ = "maintenance_records"

    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    maintenance_type = Column(String(50), nullable=False)
    scheduled_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    cost = Column(Numeric(10, 2), nullable=True)
    status = Column(String(30), nullable=False, default="Scheduled")

    vehicle = relationship("Vehicle")


class Notification(TenantOwned, BaseEntity):
    __tablename__ = "notifications"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    channel = Column(String(30), nullable=False, default="InApp")
    is_read = Column(Boolean, nullable=False, default=False)


# --- Entities shared across tenants ---


class VehicleLocation(BaseEntity):
    """GPS ping. Scoped through its vehicle, not through a tenant column."""

    __tablename__ = "vehicle_locations"

    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    latitude = Column(Numeric(9, 6), nullable=False)
    longitude = Column(Numeric(9, 6), nullable=False)
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


# --- Authorization and audit (administrative data; not soft-deletable) ---


class Permission(Base):
    __tablename__ = "permissions"
    __table_args__ = (UniqueConstraint("tenant_id", "name", name="uq_permissions_tenant_name"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=False, default="")
    category = Column(String(50), nullable=False, default="")
    resource = Column(String(100), nullable=False)
    action = Column(String(50), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    tenant_id = Column(String(50), nullable=False, index=True)

    role_permissions = relationship("RolePermission", back_populates="permission")


class RolePermission(Base):
    __tablename__ = "role_permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role = Column(String(50), nullable=False, index=True)
    permission_id = Column(Integer, ForeignKey("permissions.id"), nullable=False)
    is_granted = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    tenant_id = Column(String(50), nullable=False, index=True)

    permission = relationship("Permission", back_populates="role_permissions")


class AuditLog(Base):
    """Append-only security audit trail. Rows are inserted by the audit sink and never updated."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=True)
    email = Column(String(255), nullable=False, default="")
    action = Column(String(100), nullable=False, index=True)
    ip_address = Column(String(45), nullable=False, default="")
    user_agent = Column(String(500), nullable=False, default="")
    success = Column(Boolean, nullable=False, default=False)
    details = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    tenant_id = Column(String(50), nullable=False, index=True)


# Entity types a unit of work vends repositories for.
REGISTERED_ENTITIES = (
    Student,
    Driver,
    Vehicle,
    Route,
    RouteStop,
    Trip,
    Attendance,
    Payment,
    MaintenanceRecord,
    User,
    Notification,
    VehicleLocation,
)

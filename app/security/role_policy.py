"""Role-default permissions. Immutable, built once at startup, shared without locking. No FastAPI."""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from app.domain.models.authorization import CRUD_ACTIONS, PermissionAction

FULL_ACCESS_ROLES = frozenset({"SuperAdmin", "TenantAdmin"})

_READ = frozenset({PermissionAction.READ})
_READ_UPDATE = frozenset({PermissionAction.READ, PermissionAction.UPDATE})

# Role -> resource -> actions, used when no explicit or wildcard grant exists.
DEFAULT_RESOURCE_ACTIONS = {
    "SystemAdmin": {
        resource: CRUD_ACTIONS
        for resource in ("users", "drivers", "vehicles", "routes", "trips", "attendance", "reports")
    },
    "SafetyOfficer": {
        resource: CRUD_ACTIONS
        for resource in (
            "drivers",
            "vehicles",
            "routes",
            "trips",
            "attendance",
            "maintenance",
            "reports",
        )
    },
    "Dispatcher": {
        resource: CRUD_ACTIONS
        for resource in ("drivers", "vehicles", "routes", "trips", "attendance")
    },
    "Driver": {
        "trips": _READ_UPDATE,
        "attendance": _READ_UPDATE,
        "drivers": _READ,
    },
    "Parent": {
        "students": _READ,
        "trips": _READ,
        "attendance": _READ,
        "payments": frozenset({PermissionAction.READ, PermissionAction.CREATE}),
    },
    "Student": {
        "trips": _READ,
        "attendance": _READ,
    },
}

DEFAULT_NAMED_PERMISSIONS = {
    "SystemAdmin": (
        "ManageUsers",
        "ViewUsers",
        "ManageDrivers",
        "ViewDrivers",
        "ManageVehicles",
        "ViewVehicles",
        "ManageRoutes",
        "ViewRoutes",
        "ManageTrips",
        "ViewTrips",
        "ViewAttendance",
        "ViewReports",
    ),
    "SafetyOfficer": (
        "ViewDrivers",
        "ViewVehicles",
        "ViewRoutes",
        "ViewTrips",
        "ViewAttendance",
        "ManageMaintenance",
        "ViewMaintenance",
        "ViewReports",
    ),
    "Dispatcher": (
        "ViewDrivers",
        "ViewVehicles",
        "ViewRoutes",
        "ManageTrips",
        "ViewTrips",
        "ManageAttendance",
        "ViewAttendance",
    ),
    "Driver": ("ViewTrips", "UpdateAttendance", "ViewAttendance"),
    "Parent": ("ViewStudents", "ViewTrips", "ViewAttendance", "ManagePayments", "ViewPayments"),
    "Student": ("ViewTrips", "ViewAttendance"),
}


def _freeze_resources(
    table: Mapping[str, Mapping[str, Iterable[PermissionAction]]],
) -> Mapping[str, Mapping[str, frozenset]]:
    return MappingProxyType(
        {
            role: MappingProxyType(
                {resource.lower(): frozenset(actions) for resource, actions in resources.items()}
            )
            for role, resources in table.items()
        }
    )


def _freeze_names(table: Mapping[str, Iterable[str]]) -> Mapping[str, frozenset]:
    return MappingProxyType({role: frozenset(names) for role, names in table.items()})


class RolePolicy:
    """
    Static allow-lists per role. Full-access roles are allowed everything,
    known roles consult their tables, unknown roles get nothing.
    UNKNOWN actions are never allowed by a table.
    """

    __slots__ = ("_full_access_roles", "_resource_actions", "_named_permissions")

    def __init__(
        self,
        full_access_roles: Iterable[str],
        resource_actions: Mapping[str, Mapping[str, Iterable[PermissionAction]]],
        named_permissions: Mapping[str, Iterable[str]],
    ) -> None:
        self._full_access_roles = frozenset(full_access_roles)
        self._resource_actions = _freeze_resources(resource_actions)
        self._named_permissions = _freeze_names(named_permissions)

    def __setattr__(self, name, value):
        if hasattr(self, name):
            raise AttributeError(f"RolePolicy is immutable; cannot set '{name}'")
        object.__setattr__(self, name, value)

    @property
    def full_access_roles(self) -> frozenset:
        return self._full_access_roles

    @property
    def known_roles(self) -> frozenset:
        return (
            self._full_access_roles
            | frozenset(self._resource_actions)
            | frozenset(self._named_permissions)
        )

    def is_full_access(self, role: Optional[str]) -> bool:
        return role in self._full_access_roles

    def allows(self, role: Optional[str], resource: str, action: PermissionAction) -> bool:
        if not role:
            return False
        if self.is_full_access(role):
            return True
        if action is PermissionAction.UNKNOWN:
            return False
        resources = self._resource_actions.get(role)
        if resources is None:
            return False
        return action in resources.get((resource or "").lower(), frozenset())

    def allows_named(self, role: Optional[str], permission_name: str) -> bool:
        if not role:
            return False
        if self.is_full_access(role):
            return True
        return permission_name in self._named_permissions.get(role, frozenset())


def build_default_role_policy() -> RolePolicy:
    return RolePolicy(
        full_access_roles=FULL_ACCESS_ROLES,
        resource_actions=DEFAULT_RESOURCE_ACTIONS,
        named_permissions=DEFAULT_NAMED_PERMISSIONS,
    )

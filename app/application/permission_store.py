"""Permission store protocol. Security layer depends on this; infrastructure implements it."""

from typing import Protocol


class PermissionStore(Protocol):
    """
    Read-only lookups over role/permission grant records.
    Every method only counts grants with is_granted=True on an active permission of the tenant.
    Implementations raise StoreUnavailableError when the store cannot be reached.
    """

    async def has_resource_grant(self, role: str, tenant_id: str, resource: str, action: str) -> bool:
        """True if the role holds a grant for exactly this resource and action."""
        ...

    async def has_wildcard_resource_grant(self, role: str, tenant_id: str) -> bool:
        """True if the role holds a grant whose resource is a wildcard value."""
        ...

    async def has_named_grant(self, role: str, tenant_id: str, permission_name: str) -> bool:
        """True if the role holds a grant for the permission with this name."""
        ...

    async def has_wildcard_named_grant(self, role: str, tenant_id: str) -> bool:
        """True if the role holds a grant whose permission name is a wildcard value."""
        ...

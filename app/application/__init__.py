# Application layer: contracts and errors shared by security and infrastructure.

from app.application.exceptions import (
    ApplicationError,
    RepositoryNotRegisteredError,
    StoreUnavailableError,
    TenantScopeRequiredError,
    TransactionStateError,
    UnitOfWorkClosedError,
)
from app.application.permission_store import PermissionStore

__all__ = [
    "ApplicationError",
    "PermissionStore",
    "RepositoryNotRegisteredError",
    "StoreUnavailableError",
    "TenantScopeRequiredError",
    "TransactionStateError",
    "UnitOfWorkClosedError",
]

"""Application-layer exceptions. Do not reuse domain exceptions."""


class ApplicationError(Exception):
    """Base for all application-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TransactionStateError(ApplicationError):
    """Raised when the unit of work transaction lifecycle is misused (e.g. begin twice)."""


class UnitOfWorkClosedError(ApplicationError):
    """Raised when a unit of work or one of its repositories is used after disposal."""


class RepositoryNotRegisteredError(ApplicationError):
    """Raised when a repository is requested for an entity type the unit of work does not manage."""


class TenantScopeRequiredError(ApplicationError):
    """Raised when a tenant-owned entity type is queried without a tenant id."""


class StoreUnavailableError(ApplicationError):
    """Raised when the entity store cannot be reached. Permission checks degrade to role defaults."""

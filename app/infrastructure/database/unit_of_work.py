"""Unit of work: one AsyncSession per logical operation, shared by every repository it vends."""

import logging
from typing import Dict, Iterable, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.exceptions import (
    RepositoryNotRegisteredError,
    TransactionStateError,
    UnitOfWorkClosedError,
)
from app.infrastructure.database.models import (
    REGISTERED_ENTITIES,
    Attendance,
    BaseEntity,
    Driver,
    MaintenanceRecord,
    Notification,
    Payment,
    Route,
    Student,
    Trip,
    User,
    Vehicle,
)
from app.infrastructure.database.repository import Repository

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseEntity)


class UnitOfWork:
    """
    Owns one session and its transaction lifecycle.

    Repositories come from a registry built once at construction, so every call
    for the same entity type returns the same instance. Adds, updates and soft
    deletes only reach the store through save_changes() (or commit_transaction()).

    Transaction states: no transaction -> begin_transaction() -> open ->
    commit_transaction() | rollback_transaction() -> no transaction.

    Use as an async context manager; leaving the block rolls back an open
    transaction and closes the session on every exit path, cancellation included.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        entity_types: Iterable[Type[BaseEntity]] = REGISTERED_ENTITIES,
    ) -> None:
        self._session = session_factory()
        self._transaction_open = False
        self._closed = False
        self._repositories: Dict[type, Repository] = {
            entity_type: Repository(entity_type, self._session, on_access=self._ensure_open)
            for entity_type in entity_types
        }

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # --- repositories ---

    def repository(self, entity_type: Type[T]) -> Repository[T]:
        self._ensure_open()
        try:
            return self._repositories[entity_type]
        except KeyError:
            raise RepositoryNotRegisteredError(
                f"No repository registered for {entity_type.__name__}"
            ) from None

    @property
    def students(self) -> Repository[Student]:
        return self.repository(Student)

    @property
    def drivers(self) -> Repository[Driver]:
        return self.repository(Driver)

    @property
    def vehicles(self) -> Repository[Vehicle]:
        return self.repository(Vehicle)

    @property
    def routes(self) -> Repository[Route]:
        return self.repository(Route)

    @property
    def trips(self) -> Repository[Trip]:
        return self.repository(Trip)

    @property
    def attendances(self) -> Repository[Attendance]:
        return self.repository(Attendance)

    @property
    def payments(self) -> Repository[Payment]:
        return self.repository(Payment)

    @property
    def maintenance_records(self) -> Repository[MaintenanceRecord]:
        return self.repository(MaintenanceRecord)

    @property
    def users(self) -> Repository[User]:
        return self.repository(User)

    @property
    def notifications(self) -> Repository[Notification]:
        return self.repository(Notification)

    @property
    def session(self) -> AsyncSession:
        self._ensure_open()
        return self._session

    # --- transaction lifecycle ---

    @property
    def in_transaction(self) -> bool:
        return self._transaction_open

    @property
    def closed(self) -> bool:
        return self._closed

    async def begin_transaction(self) -> None:
        """Open an explicit transaction. Raises TransactionStateError if one is already open."""
        self._ensure_open()
        if self._transaction_open:
            raise TransactionStateError("A transaction is already open on this unit of work")
        # Checking out the connection starts the session's transaction.
        await self._session.connection()
        self._transaction_open = True
        logger.debug("transaction_begun")

    async def commit_transaction(self) -> None:
        """Commit and clear the open transaction; no-op when none is open."""
        self._ensure_open()
        if not self._transaction_open:
            return
        try:
            await self._session.commit()
        finally:
            self._transaction_open = False
        logger.debug("transaction_committed")

    async def rollback_transaction(self) -> None:
        """Roll back and clear the open transaction; no-op when none is open."""
        self._ensure_open()
        if not self._transaction_open:
            return
        try:
            await self._session.rollback()
        finally:
            self._transaction_open = False
        logger.debug("transaction_rolled_back")

    async def save_changes(self) -> int:
        """
        Flush every queued add/update in call order and return the number of affected records.
        Outside an explicit transaction each call commits on its own; inside one the
        changes become part of it.
        """
        self._ensure_open()
        affected = self._pending_count()
        try:
            await self._session.flush()
            if not self._transaction_open:
                await self._session.commit()
        except Exception:
            if not self._transaction_open:
                await self._session.rollback()
            raise
        return affected

    def _pending_count(self) -> int:
        session = self._session
        modified = sum(1 for obj in session.dirty if session.is_modified(obj))
        return len(session.new) + modified + len(session.deleted)

    # --- disposal ---

    async def close(self) -> None:
        """Release the transaction (rolling back if still open) and the session. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            if self._transaction_open:
                logger.warning("transaction_rolled_back_on_close")
                await self._session.rollback()
        finally:
            self._transaction_open = False
            await self._session.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise UnitOfWorkClosedError("Unit of work has been closed")


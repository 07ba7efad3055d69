"""Abstract repository interface (port) for User persistence."""

from abc import abstractmethod

from dualstore.application.interfaces.record_repository import RecordRepository
from dualstore.domain.entities import User, UserStatusStats


class UserRepository(RecordRepository[User]):
    """Port for user persistence — implemented by the MongoDB adapter.

    ``bulk_create`` inserts in order without rollback: records stored before
    a failing one are kept (see BulkInsertError).
    """

    @abstractmethod
    async def get_by_email(self, email: str) -> User | None:
        """Retrieve a user by its (lower-cased) email address."""
        ...

    @abstractmethod
    async def stats_by_status(self) -> list[UserStatusStats]:
        """Count and average age per status; empty groups are omitted."""
        ...

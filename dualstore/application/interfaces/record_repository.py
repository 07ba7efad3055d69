"""Abstract repository interface (port) shared by every record type."""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from dualstore.domain.query import RecordQuery

T = TypeVar("T")


class RecordRepository(ABC, Generic[T]):
    """Port for record persistence — implemented once per datastore.

    Lookups by an id the backend cannot represent (e.g. a malformed
    ObjectId) behave exactly like lookups of an id that does not exist.
    """

    @abstractmethod
    async def get_by_id(self, record_id: str) -> T | None:
        """Retrieve a single record by its id."""
        ...

    @abstractmethod
    async def find(self, query: RecordQuery) -> list[T]:
        """Retrieve the records matching ``query``, honouring sort/offset/limit."""
        ...

    @abstractmethod
    async def count(self, query: RecordQuery) -> int:
        """Count every record matching the filter part of ``query``."""
        ...

    async def find_page(self, query: RecordQuery) -> tuple[list[T], int]:
        """Return the matching slice together with the total match count.

        The two reads share one filter but are not one atomic snapshot.
        """
        items = await self.find(query)
        total = await self.count(query.unpaginated())
        return items, total

    @abstractmethod
    async def create(self, record: T) -> T:
        """Persist a new record and return it with storage-assigned fields."""
        ...

    @abstractmethod
    async def bulk_create(self, records: list[T]) -> list[T]:
        """Persist several records in order; atomicity is backend-specific."""
        ...

    @abstractmethod
    async def update(self, record_id: str, changes: dict[str, Any]) -> T | None:
        """Apply validated field changes. Returns None if the record does not exist."""
        ...

    @abstractmethod
    async def delete(self, record_id: str) -> T | None:
        """Delete a record. Returns the deleted record, or None if not found."""
        ...

    @abstractmethod
    async def ping(self) -> None:
        """Round-trip to the datastore; raises if it is unreachable."""
        ...

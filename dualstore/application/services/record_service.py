"""Application service (use case) shared by every record type."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any, Generic, TypeVar

from dualstore.application.interfaces import RecordRepository
from dualstore.domain.entities import Page
from dualstore.domain.exceptions import (
    EntityNotFoundError,
    FieldError,
    RecordValidationError,
)
from dualstore.domain.query import equality_filter, keyword_search

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordService(ABC, Generic[T]):
    """Orchestrates record CRUD, search and pagination. Depends on the repository port (DI).

    Subclasses name the entity, whitelist the filter and search fields, and
    provide validation plus the entity factory.
    """

    entity_name: str = "Record"
    filter_fields: tuple[str, ...] = ()
    # Filter fields drawn from a closed set; any other value matches nothing.
    enum_filters: dict[str, type[Enum]] = {}
    search_fields: tuple[str, ...] = ()

    def __init__(self, repository: RecordRepository[T], *, search_limit: int = 50):
        self._repository = repository
        self._search_limit = search_limit

    # ── Hooks ───────────────────────────────────────────────────────

    @abstractmethod
    def _validate(
        self, data: Mapping[str, Any], *, partial: bool
    ) -> tuple[dict[str, Any], list[FieldError]]:
        """Return cleaned values and every failed field constraint."""
        ...

    @abstractmethod
    def _build(self, cleaned: dict[str, Any]) -> T:
        """Create a new entity from validated values."""
        ...

    # ── Reads ───────────────────────────────────────────────────────

    async def get_record(self, record_id: str) -> T:
        record = await self._repository.get_by_id(record_id)
        if record is None:
            raise EntityNotFoundError(self.entity_name, record_id)
        return record

    async def list_records(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        filters: Mapping[str, Any] | None = None,
    ) -> Page[T]:
        """Return one page of records matching ``filters``, newest first."""
        errors = []
        if page < 1:
            errors.append(FieldError("page", "Page must be at least 1"))
        if limit < 1:
            errors.append(FieldError("limit", "Limit must be at least 1"))
        if errors:
            raise RecordValidationError(errors)

        filters = filters or {}
        for name, enum_type in self.enum_filters.items():
            value = filters.get(name)
            if value not in (None, "") and value not in {m.value for m in enum_type}:
                return Page(items=[], total=0, page=page, limit=limit)

        query = equality_filter(filters, self.filter_fields).paginate(page, limit)
        items, total = await self._repository.find_page(query)
        return Page(items=items, total=total, page=page, limit=limit)

    async def search_records(self, text: str | None) -> list[T]:
        query = keyword_search(text, self.search_fields, self._search_limit)
        return await self._repository.find(query)

    # ── Writes ──────────────────────────────────────────────────────

    async def create_record(self, data: Mapping[str, Any]) -> T:
        cleaned, errors = self._validate(data, partial=False)
        if errors:
            raise RecordValidationError(errors)
        record = await self._repository.create(self._build(cleaned))
        logger.info("Created %s %s", self.entity_name, getattr(record, "id", None))
        return record

    async def bulk_create_records(self, items: list[Mapping[str, Any]]) -> list[T]:
        """Validate every candidate first; nothing is written if any of them fails."""
        if not items:
            raise RecordValidationError(
                [FieldError("items", "At least one record is required")]
            )

        records: list[T] = []
        errors: list[FieldError] = []
        for index, data in enumerate(items):
            cleaned, item_errors = self._validate(data, partial=False)
            if item_errors:
                errors.extend(
                    FieldError(e.field, e.message, index=index) for e in item_errors
                )
                continue
            records.append(self._build(cleaned))
        if errors:
            raise RecordValidationError(errors)

        created = await self._repository.bulk_create(records)
        logger.info("Bulk-created %d %s record(s)", len(created), self.entity_name)
        return created

    async def update_record(self, record_id: str, changes: Mapping[str, Any]) -> T:
        cleaned, errors = self._validate(changes, partial=True)
        if errors:
            raise RecordValidationError(errors)
        if not cleaned:
            return await self.get_record(record_id)

        record = await self._repository.update(record_id, cleaned)
        if record is None:
            raise EntityNotFoundError(self.entity_name, record_id)
        return record

    async def delete_record(self, record_id: str) -> T:
        record = await self._repository.delete(record_id)
        if record is None:
            raise EntityNotFoundError(self.entity_name, record_id)
        logger.info("Deleted %s %s", self.entity_name, record_id)
        return record

    async def check_connection(self) -> None:
        await self._repository.ping()

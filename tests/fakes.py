"""In-memory fake repositories for unit and API tests.

They evaluate ``RecordQuery`` with ``RecordQuery.matches`` so filtering,
search, sorting and paging behave like the real backends.
"""

import copy
import itertools
from collections import defaultdict
from typing import Any

from dualstore.application.interfaces import ProductRepository, UserRepository
from dualstore.domain.entities import (
    Product,
    ProductCategoryStats,
    User,
    UserStatusStats,
)
from dualstore.domain.exceptions import DuplicateEntityError, ResourceExhaustedError
from dualstore.domain.query import RecordQuery


def _apply(records: list, query: RecordQuery) -> list:
    matched = [r for r in records if query.matches(r)]
    if query.sort_field:
        def key(record):
            value = getattr(record, query.sort_field)
            return getattr(value, "value", value)

        matched.sort(key=key, reverse=query.descending)
    end = None if query.limit is None else query.offset + query.limit
    return matched[query.offset:end]


class _InMemoryRepository:
    def __init__(self):
        self._records: dict[str, Any] = {}
        self.available = True

    def _check(self) -> None:
        if not self.available:
            raise ResourceExhaustedError("fake datastore", "pool exhausted")

    async def get_by_id(self, record_id: str):
        self._check()
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def find(self, query: RecordQuery) -> list:
        self._check()
        return [copy.deepcopy(r) for r in _apply(list(self._records.values()), query)]

    async def count(self, query: RecordQuery) -> int:
        self._check()
        return sum(1 for r in self._records.values() if query.matches(r))

    async def bulk_create(self, records: list) -> list:
        return [await self.create(r) for r in records]

    async def update(self, record_id: str, changes: dict[str, Any]):
        self._check()
        record = self._records.get(record_id)
        if record is None:
            return None
        record.update(changes)
        return copy.deepcopy(record)

    async def delete(self, record_id: str):
        self._check()
        return self._records.pop(record_id, None)

    async def ping(self) -> None:
        self._check()


class FakeUserRepository(_InMemoryRepository, UserRepository):
    """Users keyed by a generated 24-hex id; email is unique."""

    def __init__(self):
        super().__init__()
        self._ids = itertools.count(1)

    async def get_by_email(self, email: str) -> User | None:
        self._check()
        for user in self._records.values():
            if user.email == email:
                return copy.deepcopy(user)
        return None

    async def create(self, record: User) -> User:
        self._check()
        if any(u.email == record.email for u in self._records.values()):
            raise DuplicateEntityError("User", "email", record.email)
        record = copy.deepcopy(record)
        record.id = f"{next(self._ids):024x}"
        self._records[record.id] = record
        return copy.deepcopy(record)

    async def update(self, record_id: str, changes: dict[str, Any]) -> User | None:
        email = changes.get("email")
        if email is not None and any(
            u.email == email and u.id != record_id for u in self._records.values()
        ):
            raise DuplicateEntityError("User", "email", email)
        return await super().update(record_id, changes)

    async def stats_by_status(self) -> list[UserStatusStats]:
        self._check()
        groups: dict[str, list[User]] = defaultdict(list)
        for user in self._records.values():
            groups[user.status.value].append(user)
        stats = []
        for status in sorted(groups):
            ages = [u.age for u in groups[status] if u.age is not None]
            stats.append(
                UserStatusStats(
                    status=status,
                    count=len(groups[status]),
                    avg_age=sum(ages) / len(ages) if ages else None,
                )
            )
        return stats


class FakeProductRepository(_InMemoryRepository, ProductRepository):
    """Products keyed by their UUID string."""

    async def create(self, record: Product) -> Product:
        self._check()
        record = copy.deepcopy(record)
        self._records[record.id] = record
        return copy.deepcopy(record)

    async def stats_by_category(self) -> list[ProductCategoryStats]:
        self._check()
        groups: dict[str | None, list[Product]] = defaultdict(list)
        for product in self._records.values():
            groups[product.category].append(product)
        ordered = sorted(groups, key=lambda c: (c is None, c or ""))
        return [
            ProductCategoryStats(
                category=category,
                count=len(groups[category]),
                avg_price=float(sum(p.price for p in groups[category]) / len(groups[category])),
                total_quantity=sum(p.quantity for p in groups[category]),
            )
            for category in ordered
        ]

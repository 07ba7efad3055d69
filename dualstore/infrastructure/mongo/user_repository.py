"""Concrete repository implementation for User backed by MongoDB (PyMongo async)."""

import asyncio
import functools
import logging
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import BulkWriteError, ConnectionFailure, DuplicateKeyError

from dualstore.application.interfaces import UserRepository
from dualstore.domain.entities import User, UserStatus, UserStatusStats
from dualstore.domain.exceptions import (
    BulkInsertError,
    DuplicateEntityError,
    FieldError,
    ResourceExhaustedError,
)
from dualstore.domain.query import RecordQuery
from dualstore.infrastructure.mongo.query_adapter import to_mongo_filter, to_mongo_sort

logger = logging.getLogger(__name__)

_RESOURCE = "MongoDB connection pool"


def _pool_guard(method):
    """Report pool waits and server-selection timeouts as ResourceExhaustedError."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except ConnectionFailure as exc:
            logger.warning("MongoDB unavailable in %s: %s", method.__name__, exc)
            raise ResourceExhaustedError(_RESOURCE, str(exc)) from exc

    return wrapper


def _object_id(record_id: str) -> ObjectId | None:
    """ObjectId for ``record_id``, or None when it is not a valid id."""
    if not ObjectId.is_valid(record_id):
        return None
    return ObjectId(record_id)


def _duplicate_key(details: dict[str, Any] | None) -> tuple[str, str]:
    """(field, value) named by a duplicate-key error, e.g. ('email', 'a@b.io')."""
    details = details or {}
    pattern = details.get("keyPattern") or {}
    field = next(iter(pattern), "field")
    value = (details.get("keyValue") or {}).get(field, "")
    return field, str(value)


class MongoUserRepository(UserRepository):
    """Implements the UserRepository port on the ``users`` collection.

    Bulk inserts are ordered and not transactional: documents written before
    the first failing one stay in the collection.
    """

    def __init__(self, collection: AsyncCollection):
        self._collection = collection

    def _to_entity(self, document: dict[str, Any]) -> User:
        """Map BSON document → domain entity."""
        return User(
            id=str(document["_id"]),
            name=document["name"],
            email=document["email"],
            age=document.get("age"),
            status=UserStatus(document.get("status", UserStatus.ACTIVE.value)),
            metadata=document.get("metadata") or {},
            created_at=document["created_at"],
            updated_at=document["updated_at"],
        )

    def _to_document(self, entity: User) -> dict[str, Any]:
        """Map domain entity → BSON document (for creation)."""
        now = datetime.now(timezone.utc)
        return {
            "name": entity.name,
            "email": entity.email,
            "age": entity.age,
            "status": UserStatus(entity.status).value,
            "metadata": dict(entity.metadata),
            "created_at": now,
            "updated_at": now,
        }

    @_pool_guard
    async def get_by_id(self, record_id: str) -> User | None:
        oid = _object_id(record_id)
        if oid is None:
            return None
        document = await self._collection.find_one({"_id": oid})
        return self._to_entity(document) if document else None

    @_pool_guard
    async def get_by_email(self, email: str) -> User | None:
        document = await self._collection.find_one({"email": email})
        return self._to_entity(document) if document else None

    @_pool_guard
    async def find(self, query: RecordQuery) -> list[User]:
        cursor = self._collection.find(to_mongo_filter(query))
        sort = to_mongo_sort(query)
        if sort:
            cursor = cursor.sort(sort)
        if query.offset:
            cursor = cursor.skip(query.offset)
        if query.limit is not None:
            cursor = cursor.limit(query.limit)
        documents = await cursor.to_list()
        return [self._to_entity(d) for d in documents]

    @_pool_guard
    async def count(self, query: RecordQuery) -> int:
        return await self._collection.count_documents(to_mongo_filter(query))

    async def find_page(self, query: RecordQuery) -> tuple[list[User], int]:
        # Independent reads on two pooled connections; a failure cancels the other.
        try:
            async with asyncio.TaskGroup() as group:
                items = group.create_task(self.find(query))
                total = group.create_task(self.count(query.unpaginated()))
        except ExceptionGroup as failure:
            raise failure.exceptions[0] from None
        return items.result(), total.result()

    @_pool_guard
    async def create(self, record: User) -> User:
        document = self._to_document(record)
        try:
            result = await self._collection.insert_one(document)
        except DuplicateKeyError as exc:
            field, value = _duplicate_key(exc.details)
            raise DuplicateEntityError("User", field, value) from exc
        document["_id"] = result.inserted_id
        return self._to_entity(document)

    @_pool_guard
    async def bulk_create(self, records: list[User]) -> list[User]:
        documents = [self._to_document(r) for r in records]
        try:
            result = await self._collection.insert_many(documents, ordered=True)
        except BulkWriteError as exc:
            details = exc.details or {}
            inserted = details.get("nInserted", 0)
            errors = []
            for write_error in details.get("writeErrors", []):
                if write_error.get("code") == 11000:
                    field, value = _duplicate_key(write_error)
                    message = f"{field} '{value}' already exists"
                else:
                    field, message = "record", write_error.get("errmsg", "Write failed")
                errors.append(FieldError(field, message, index=write_error.get("index")))
            logger.warning(
                "User bulk insert stopped after %d of %d documents", inserted, len(documents)
            )
            raise BulkInsertError("User", inserted, errors) from exc

        for document, inserted_id in zip(documents, result.inserted_ids):
            document["_id"] = inserted_id
        return [self._to_entity(d) for d in documents]

    @_pool_guard
    async def update(self, record_id: str, changes: dict[str, Any]) -> User | None:
        oid = _object_id(record_id)
        if oid is None:
            return None
        update_fields = {
            name: (value.value if isinstance(value, UserStatus) else value)
            for name, value in changes.items()
            if name in User.WRITABLE_FIELDS
        }
        update_fields["updated_at"] = datetime.now(timezone.utc)
        try:
            document = await self._collection.find_one_and_update(
                {"_id": oid},
                {"$set": update_fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            field, value = _duplicate_key(exc.details)
            raise DuplicateEntityError("User", field, value) from exc
        return self._to_entity(document) if document else None

    @_pool_guard
    async def delete(self, record_id: str) -> User | None:
        oid = _object_id(record_id)
        if oid is None:
            return None
        document = await self._collection.find_one_and_delete({"_id": oid})
        return self._to_entity(document) if document else None

    @_pool_guard
    async def stats_by_status(self) -> list[UserStatusStats]:
        pipeline = [
            {
                "$group": {
                    "_id": "$status",
                    "count": {"$sum": 1},
                    "avgAge": {"$avg": "$age"},  # $avg skips null and missing ages
                }
            },
            {"$sort": {"_id": 1}},
        ]
        cursor = await self._collection.aggregate(pipeline)
        rows = await cursor.to_list()
        return [
            UserStatusStats(status=row["_id"], count=row["count"], avg_age=row.get("avgAge"))
            for row in rows
        ]

    @_pool_guard
    async def ping(self) -> None:
        await self._collection.database.command("ping")

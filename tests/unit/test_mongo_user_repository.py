"""Unit tests for MongoUserRepository against a stub collection."""

import asyncio
from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pymongo.errors import BulkWriteError, DuplicateKeyError, WaitQueueTimeoutError

from dualstore.domain.entities import User, UserStatus
from dualstore.domain.exceptions import (
    BulkInsertError,
    DuplicateEntityError,
    ResourceExhaustedError,
)
from dualstore.domain.query import RecordQuery
from dualstore.infrastructure.mongo import MongoUserRepository

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _document(**overrides) -> dict:
    document = {
        "_id": ObjectId(),
        "name": "Ada",
        "email": "ada@example.com",
        "age": 36,
        "status": "active",
        "metadata": {},
        "created_at": NOW,
        "updated_at": NOW,
    }
    document.update(overrides)
    return document


class StubCursor:
    def __init__(self, documents: list[dict]):
        self.documents = documents
        self.calls: list[tuple] = []

    def sort(self, spec):
        self.calls.append(("sort", spec))
        return self

    def skip(self, n):
        self.calls.append(("skip", n))
        return self

    def limit(self, n):
        self.calls.append(("limit", n))
        return self

    async def to_list(self, length=None):
        return list(self.documents)


class StubDatabase:
    def __init__(self, error: Exception | None = None):
        self.error = error

    async def command(self, name):
        if self.error:
            raise self.error
        return {"ok": 1}


class StubCollection:
    """Records calls; each behaviour is overridable per test."""

    def __init__(self):
        self.database = StubDatabase()
        self.inserted: list[dict] = []
        self.find_filter: dict | None = None
        self.cursor = StubCursor([])
        self.error: Exception | None = None
        self.found: dict | None = None

    async def insert_one(self, document):
        if self.error:
            raise self.error
        self.inserted.append(document)
        return type("Result", (), {"inserted_id": ObjectId()})()

    async def insert_many(self, documents, ordered=True):
        if self.error:
            raise self.error
        self.inserted.extend(documents)
        return type("Result", (), {"inserted_ids": [ObjectId() for _ in documents]})()

    async def find_one(self, filter):
        self.find_filter = filter
        return self.found

    def find(self, filter):
        self.find_filter = filter
        return self.cursor

    async def count_documents(self, filter):
        if self.error:
            raise self.error
        return len(self.cursor.documents)

    async def find_one_and_update(self, filter, update, return_document=None):
        if self.error:
            raise self.error
        self.find_filter = filter
        self.last_update = update
        return self.found

    async def find_one_and_delete(self, filter):
        self.find_filter = filter
        return self.found

    async def aggregate(self, pipeline):
        self.pipeline = pipeline
        return self.cursor


@pytest.fixture
def collection() -> StubCollection:
    return StubCollection()


@pytest.fixture
def repository(collection: StubCollection) -> MongoUserRepository:
    return MongoUserRepository(collection)


def _duplicate(email: str) -> DuplicateKeyError:
    return DuplicateKeyError(
        "E11000 duplicate key error",
        code=11000,
        details={"keyPattern": {"email": 1}, "keyValue": {"email": email}},
    )


@pytest.mark.asyncio
async def test_create_stores_status_value_and_timestamps(repository, collection):
    user = await repository.create(User(name="Ada", email="ada@example.com"))
    stored = collection.inserted[0]
    assert stored["status"] == "active"
    assert stored["created_at"] == stored["updated_at"]
    assert ObjectId.is_valid(user.id)
    assert user.status is UserStatus.ACTIVE


@pytest.mark.asyncio
async def test_create_maps_duplicate_key_to_domain_error(repository, collection):
    collection.error = _duplicate("ada@example.com")
    with pytest.raises(DuplicateEntityError) as exc_info:
        await repository.create(User(name="Ada", email="ada@example.com"))
    assert exc_info.value.field == "email"
    assert exc_info.value.value == "ada@example.com"


@pytest.mark.asyncio
async def test_malformed_id_is_treated_as_missing(repository, collection):
    assert await repository.get_by_id("not-an-object-id") is None
    assert await repository.update("not-an-object-id", {"age": 3}) is None
    assert await repository.delete("not-an-object-id") is None
    assert collection.find_filter is None


@pytest.mark.asyncio
async def test_get_by_id_maps_document(repository, collection):
    document = _document(status="pending", age=None)
    collection.found = document
    user = await repository.get_by_id(str(document["_id"]))
    assert collection.find_filter == {"_id": document["_id"]}
    assert user.id == str(document["_id"])
    assert user.status is UserStatus.PENDING
    assert user.age is None


@pytest.mark.asyncio
async def test_find_applies_sort_skip_and_limit(repository, collection):
    collection.cursor = StubCursor([_document()])
    query = RecordQuery().where_equal("status", "active").paginate(3, 10)
    users = await repository.find(query)
    assert len(users) == 1
    assert collection.find_filter == {"status": "active"}
    names = [call[0] for call in collection.cursor.calls]
    assert names == ["sort", "skip", "limit"]
    assert ("skip", 20) in collection.cursor.calls
    assert ("limit", 10) in collection.cursor.calls


@pytest.mark.asyncio
async def test_find_page_returns_items_and_total(repository, collection):
    collection.cursor = StubCursor([_document(), _document(email="b@example.com")])
    items, total = await repository.find_page(RecordQuery().paginate(1, 10))
    assert len(items) == 2
    assert total == 2


class FailingCursor(StubCursor):
    """Fails once the sibling count is in flight."""

    def __init__(self, count_started: asyncio.Event):
        super().__init__([])
        self.count_started = count_started

    async def to_list(self, length=None):
        await self.count_started.wait()
        raise WaitQueueTimeoutError("timed out waiting for a connection")


class HangingCountCollection(StubCollection):
    def __init__(self):
        super().__init__()
        self.count_started = asyncio.Event()
        self.count_cancelled = False
        self.cursor = FailingCursor(self.count_started)

    async def count_documents(self, filter):
        self.count_started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.count_cancelled = True
            raise


@pytest.mark.asyncio
async def test_find_page_failure_cancels_count_and_keeps_domain_error():
    collection = HangingCountCollection()
    repository = MongoUserRepository(collection)

    with pytest.raises(ResourceExhaustedError):
        await asyncio.wait_for(repository.find_page(RecordQuery().paginate(1, 10)), 5)
    assert collection.count_cancelled


@pytest.mark.asyncio
async def test_update_sets_only_writable_fields(repository, collection):
    document = _document(age=40)
    collection.found = document
    user = await repository.update(
        str(document["_id"]), {"age": 40, "status": UserStatus.INACTIVE, "bogus": 1}
    )
    update = collection.last_update["$set"]
    assert update["age"] == 40
    assert update["status"] == "inactive"
    assert "bogus" not in update
    assert "updated_at" in update
    assert user.age == 40


@pytest.mark.asyncio
async def test_update_maps_duplicate_email(repository, collection):
    collection.error = _duplicate("taken@example.com")
    with pytest.raises(DuplicateEntityError):
        await repository.update(str(ObjectId()), {"email": "taken@example.com"})


@pytest.mark.asyncio
async def test_bulk_create_reports_partial_insert(repository, collection):
    collection.error = BulkWriteError(
        {
            "nInserted": 1,
            "writeErrors": [
                {
                    "index": 1,
                    "code": 11000,
                    "errmsg": "E11000 duplicate key error",
                    "keyPattern": {"email": 1},
                    "keyValue": {"email": "ada@example.com"},
                }
            ],
        }
    )
    with pytest.raises(BulkInsertError) as exc_info:
        await repository.bulk_create(
            [
                User(name="Grace", email="grace@example.com"),
                User(name="Ada", email="ada@example.com"),
            ]
        )
    error = exc_info.value
    assert error.inserted == 1
    assert error.errors[0].index == 1
    assert error.errors[0].field == "email"


@pytest.mark.asyncio
async def test_bulk_create_assigns_ids_in_order(repository, collection):
    users = await repository.bulk_create(
        [User(name="A", email="a@x.io"), User(name="B", email="b@x.io")]
    )
    assert [u.name for u in users] == ["A", "B"]
    assert all(ObjectId.is_valid(u.id) for u in users)


@pytest.mark.asyncio
async def test_stats_by_status_maps_group_rows(repository, collection):
    collection.cursor = StubCursor(
        [
            {"_id": "active", "count": 2, "avgAge": 25.0},
            {"_id": "pending", "count": 1, "avgAge": None},
        ]
    )
    stats = await repository.stats_by_status()
    assert collection.pipeline[0]["$group"]["_id"] == "$status"
    assert [(s.status, s.count, s.avg_age) for s in stats] == [
        ("active", 2, 25.0),
        ("pending", 1, None),
    ]


@pytest.mark.asyncio
async def test_pool_wait_timeout_becomes_resource_exhausted(repository, collection):
    collection.error = WaitQueueTimeoutError("timed out waiting for a connection")
    with pytest.raises(ResourceExhaustedError):
        await repository.count(RecordQuery())


@pytest.mark.asyncio
async def test_ping_runs_ping_command(repository, collection):
    await repository.ping()
    collection.database.error = WaitQueueTimeoutError("timed out")
    with pytest.raises(ResourceExhaustedError):
        await repository.ping()

"""MongoDB client, database handle and index setup.

One ``AsyncMongoClient`` per process owns the connection pool
(``maxPoolSize``); a request waiting longer than ``waitQueueTimeoutMS`` for a
pooled connection fails with ``WaitQueueTimeoutError``.
"""

import logging
from functools import lru_cache

from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from dualstore.config import get_settings

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
_DEFAULT_DATABASE = "loadtest_db"


@lru_cache
def get_mongo_client() -> AsyncMongoClient:
    """Process-wide client, created on first use."""
    settings = get_settings()
    return AsyncMongoClient(
        settings.effective_mongodb_uri,
        maxPoolSize=settings.mongodb_max_pool_size,
        waitQueueTimeoutMS=settings.mongodb_wait_queue_timeout_ms,
        serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
        tz_aware=True,
    )


def get_mongo_database(client: AsyncMongoClient | None = None) -> AsyncDatabase:
    """The database named in the URI path, falling back to ``loadtest_db``."""
    client = client or get_mongo_client()
    return client.get_default_database(default=_DEFAULT_DATABASE)


def get_users_collection(database: AsyncDatabase | None = None) -> AsyncCollection:
    database = database if database is not None else get_mongo_database()
    return database[USERS_COLLECTION]


async def ensure_indexes(database: AsyncDatabase) -> None:
    """Create the user indexes (idempotent)."""
    users = database[USERS_COLLECTION]
    await users.create_index([("email", ASCENDING)], unique=True, name="email_unique")
    await users.create_index([("status", ASCENDING)], name="status")
    await users.create_index([("created_at", DESCENDING)], name="created_at_desc")
    logger.info("MongoDB indexes ensured on '%s.%s'", database.name, USERS_COLLECTION)


async def close_mongo_client() -> None:
    """Close the pooled client if one was created."""
    if get_mongo_client.cache_info().currsize == 0:
        return
    client = get_mongo_client()
    await client.close()
    get_mongo_client.cache_clear()
    logger.info("MongoDB client closed")

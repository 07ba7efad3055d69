from .client import (
    close_mongo_client,
    ensure_indexes,
    get_mongo_client,
    get_mongo_database,
    get_users_collection,
)
from .user_repository import MongoUserRepository

__all__ = [
    "close_mongo_client",
    "ensure_indexes",
    "get_mongo_client",
    "get_mongo_database",
    "get_users_collection",
    "MongoUserRepository",
]

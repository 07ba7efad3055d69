from .record_repository import RecordRepository
from .user_repository import UserRepository
from .product_repository import ProductRepository

__all__ = [
    "RecordRepository",
    "UserRepository",
    "ProductRepository",
]

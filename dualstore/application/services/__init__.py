from .record_service import RecordService
from .user_service import UserService
from .product_service import ProductService

__all__ = [
    "RecordService",
    "UserService",
    "ProductService",
]

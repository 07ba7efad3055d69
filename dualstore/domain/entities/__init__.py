from .page import Page
from .product import Product, ProductCategoryStats, ProductStatus
from .user import User, UserStatus, UserStatusStats

__all__ = [
    "Page",
    "Product",
    "ProductCategoryStats",
    "ProductStatus",
    "User",
    "UserStatus",
    "UserStatusStats",
]

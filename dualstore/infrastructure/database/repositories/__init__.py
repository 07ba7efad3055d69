from .product_repository import SQLAlchemyProductRepository

__all__ = [
    "SQLAlchemyProductRepository",
]

"""Abstract repository interface (port) for Product persistence."""

from abc import abstractmethod

from dualstore.application.interfaces.record_repository import RecordRepository
from dualstore.domain.entities import Product, ProductCategoryStats


class ProductRepository(RecordRepository[Product]):
    """Port for product persistence — implemented by the SQLAlchemy adapter.

    ``bulk_create`` is all-or-nothing: any failure leaves no record behind.
    """

    @abstractmethod
    async def stats_by_category(self) -> list[ProductCategoryStats]:
        """Count, average price and total quantity per category."""
        ...

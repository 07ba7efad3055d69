"""Application service (use case) for Product operations."""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from dualstore.application.interfaces import ProductRepository
from dualstore.application.services.record_service import RecordService
from dualstore.domain.entities import Product, ProductCategoryStats, ProductStatus
from dualstore.domain.exceptions import FieldError, RecordValidationError
from dualstore.domain.query import Operator, RecordQuery
from dualstore.domain.validation import validate_product


class ProductService(RecordService[Product]):
    """Product CRUD plus per-category statistics, price-range and low-stock lookups."""

    entity_name = "Product"
    filter_fields = ("category", "status")
    enum_filters = {"status": ProductStatus}
    search_fields = ("name", "description")

    def __init__(
        self,
        repository: ProductRepository,
        *,
        search_limit: int = 50,
        low_stock_threshold: int = 10,
    ):
        super().__init__(repository, search_limit=search_limit)
        self._products = repository
        self._low_stock_threshold = low_stock_threshold

    def _validate(
        self, data: Mapping[str, Any], *, partial: bool
    ) -> tuple[dict[str, Any], list[FieldError]]:
        return validate_product(data, partial=partial)

    def _build(self, cleaned: dict[str, Any]) -> Product:
        return Product(**cleaned)

    async def get_stats(self) -> list[ProductCategoryStats]:
        return await self._products.stats_by_category()

    async def find_by_price_range(
        self, min_price: Decimal | None, max_price: Decimal | None
    ) -> list[Product]:
        """Products priced within ``[min_price, max_price]``, cheapest first."""
        errors = []
        if min_price is None:
            errors.append(FieldError("minPrice", "minPrice is required"))
        elif min_price < 0:
            errors.append(FieldError("minPrice", "minPrice cannot be negative"))
        if max_price is None:
            errors.append(FieldError("maxPrice", "maxPrice is required"))
        if not errors and min_price > max_price:
            errors.append(
                FieldError("minPrice", "minPrice cannot be greater than maxPrice")
            )
        if errors:
            raise RecordValidationError(errors)

        query = (
            RecordQuery(sort_field="price", descending=False)
            .where("price", Operator.GTE, min_price)
            .where("price", Operator.LTE, max_price)
        )
        return await self._products.find(query)

    async def find_low_stock(self, threshold: int | None = None) -> list[Product]:
        """Available products whose quantity is at or below ``threshold``."""
        if threshold is None:
            threshold = self._low_stock_threshold
        if threshold < 0:
            raise RecordValidationError(
                [FieldError("threshold", "Threshold cannot be negative")]
            )
        query = (
            RecordQuery(sort_field="quantity", descending=False)
            .where("quantity", Operator.LTE, threshold)
            .where_equal("status", ProductStatus.AVAILABLE)
        )
        return await self._products.find(query)

"""Domain entity — a product record stored in PostgreSQL."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import uuid4


class ProductStatus(str, Enum):
    AVAILABLE = "available"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"


@dataclass
class Product:
    """Core domain entity for a catalogue product."""

    name: str
    price: Decimal
    quantity: int = 0
    description: str | None = None
    category: str | None = None
    status: ProductStatus = ProductStatus.AVAILABLE
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    WRITABLE_FIELDS = ("name", "description", "price", "quantity", "category", "status")

    def update(self, changes: dict[str, Any]) -> None:
        """Apply already-validated field changes and refresh updated_at."""
        for name, value in changes.items():
            if name in self.WRITABLE_FIELDS:
                setattr(self, name, value)
        self.updated_at = datetime.now(timezone.utc)


@dataclass
class ProductCategoryStats:
    """Aggregate figures for all products in one category (``None`` = uncategorised)."""

    category: str | None
    count: int
    avg_price: float | None = None
    total_quantity: int = 0

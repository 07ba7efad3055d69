"""SQLAlchemy ORM model for the Product entity."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Enum, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dualstore.domain.entities import ProductStatus
from dualstore.infrastructure.database.base import Base


class ProductModel(Base):
    """ORM model — maps to the 'products' table."""

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[ProductStatus] = mapped_column(
        Enum(
            ProductStatus,
            name="enum_products_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=ProductStatus.AVAILABLE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_product_name", "name"),
        Index("idx_product_category", "category"),
        Index("idx_product_status", "status"),
        Index("idx_product_price", "price"),
        Index("idx_product_category_status", "category", "status"),
        Index("idx_product_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ProductModel(id={self.id}, name='{self.name}', category='{self.category}')>"

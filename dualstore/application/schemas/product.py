"""Pydantic DTOs (Data Transfer Objects) for the Product feature."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from dualstore.application.schemas.common import ApiModel
from dualstore.domain.entities import ProductStatus


class ProductCreate(ApiModel):
    """Schema for creating a new product."""

    name: str | None = Field(None, examples=["Widget"])
    description: str | None = Field(None, examples=["A small widget"])
    price: Decimal | None = Field(None, examples=[9.99])
    quantity: int | None = Field(None, examples=[5])
    category: str | None = Field(None, examples=["Tools"])
    status: str | None = Field(None, examples=["available"])


class ProductUpdate(ApiModel):
    """Schema for a partial update — only the fields sent are changed."""

    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    quantity: int | None = None
    category: str | None = None
    status: str | None = None


class ProductResponse(ApiModel):
    """Schema returned to the client."""

    id: str
    name: str
    description: str | None
    price: float
    quantity: int
    category: str | None
    status: ProductStatus
    created_at: datetime
    updated_at: datetime


class ProductStatsResponse(ApiModel):
    category: str | None
    count: int
    avg_price: float | None
    total_quantity: int

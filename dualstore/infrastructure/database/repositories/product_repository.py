"""Concrete repository implementation for Product backed by SQLAlchemy."""

import functools
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from dualstore.application.interfaces import ProductRepository
from dualstore.domain.entities import Product, ProductCategoryStats
from dualstore.domain.exceptions import ResourceExhaustedError
from dualstore.domain.query import RecordQuery
from dualstore.infrastructure.database.models import ProductModel
from dualstore.infrastructure.database.query_adapter import apply_query, where_clause

logger = logging.getLogger(__name__)

_RESOURCE = "PostgreSQL connection pool"


def _pool_guard(method):
    """Report pool-acquisition timeouts as ResourceExhaustedError."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except PoolTimeoutError as exc:
            logger.warning("PostgreSQL pool exhausted in %s: %s", method.__name__, exc)
            raise ResourceExhaustedError(_RESOURCE, str(exc)) from exc

    return wrapper


def _normalize_id(record_id: str) -> str | None:
    """Canonical UUID string, or None when ``record_id`` cannot be a product id."""
    try:
        return str(uuid.UUID(str(record_id)))
    except ValueError:
        return None


class SQLAlchemyProductRepository(ProductRepository):
    """Implements the ProductRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: ProductModel) -> Product:
        """Map ORM model → domain entity."""
        return Product(
            id=model.id,
            name=model.name,
            description=model.description,
            price=model.price,
            quantity=model.quantity,
            category=model.category,
            status=model.status,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Product) -> ProductModel:
        """Map domain entity → ORM model (for creation)."""
        return ProductModel(
            id=entity.id,
            name=entity.name,
            description=entity.description,
            price=entity.price,
            quantity=entity.quantity,
            category=entity.category,
            status=entity.status,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def _get_model(self, record_id: str) -> ProductModel | None:
        product_id = _normalize_id(record_id)
        if product_id is None:
            return None
        return await self._session.get(ProductModel, product_id)

    @_pool_guard
    async def get_by_id(self, record_id: str) -> Product | None:
        model = await self._get_model(record_id)
        return self._to_entity(model) if model else None

    @_pool_guard
    async def find(self, query: RecordQuery) -> list[Product]:
        stmt = apply_query(select(ProductModel), ProductModel, query)
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    @_pool_guard
    async def count(self, query: RecordQuery) -> int:
        stmt = select(func.count()).select_from(ProductModel)
        clause = where_clause(ProductModel, query)
        if clause is not None:
            stmt = stmt.where(clause)
        result = await self._session.execute(stmt)
        return result.scalar_one()

    @_pool_guard
    async def create(self, record: Product) -> Product:
        model = self._to_model(record)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    @_pool_guard
    async def bulk_create(self, records: list[Product]) -> list[Product]:
        models = [self._to_model(r) for r in records]
        self._session.add_all(models)
        try:
            await self._session.flush()
        except SQLAlchemyError:
            # One transaction for the whole batch: undo every row.
            await self._session.rollback()
            raise
        return [self._to_entity(m) for m in models]

    @_pool_guard
    async def update(self, record_id: str, changes: dict[str, Any]) -> Product | None:
        model = await self._get_model(record_id)
        if model is None:
            return None
        for name, value in changes.items():
            if name in Product.WRITABLE_FIELDS:
                setattr(model, name, value)
        model.updated_at = datetime.now(timezone.utc)
        await self._session.flush()
        return self._to_entity(model)

    @_pool_guard
    async def delete(self, record_id: str) -> Product | None:
        model = await self._get_model(record_id)
        if model is None:
            return None
        entity = self._to_entity(model)
        await self._session.delete(model)
        await self._session.flush()
        return entity

    @_pool_guard
    async def stats_by_category(self) -> list[ProductCategoryStats]:
        stmt = (
            select(
                ProductModel.category,
                func.count(ProductModel.id),
                func.avg(ProductModel.price),
                func.sum(ProductModel.quantity),
            )
            .group_by(ProductModel.category)
            .order_by(ProductModel.category.asc().nulls_last())
        )
        result = await self._session.execute(stmt)
        return [
            ProductCategoryStats(
                category=category,
                count=count,
                avg_price=float(avg_price) if avg_price is not None else None,
                total_quantity=int(total_quantity or 0),
            )
            for category, count, avg_price, total_quantity in result.all()
        ]

    async def ping(self) -> None:
        try:
            await self._session.execute(text("SELECT 1"))
        except (PoolTimeoutError, DBAPIError, OSError) as exc:
            raise ResourceExhaustedError("PostgreSQL", str(exc)) from exc

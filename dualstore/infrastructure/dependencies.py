"""FastAPI dependency injection — wires infrastructure to application layer."""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dualstore.application.services import ProductService, UserService
from dualstore.config import get_settings
from dualstore.infrastructure.database.repositories import SQLAlchemyProductRepository
from dualstore.infrastructure.database.session import get_db_session
from dualstore.infrastructure.mongo import MongoUserRepository, get_users_collection


async def get_product_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[ProductService, None]:
    """Provides a ProductService bound to the request's PostgreSQL session."""
    settings = get_settings()
    repository = SQLAlchemyProductRepository(session)
    yield ProductService(
        repository,
        search_limit=settings.search_limit,
        low_stock_threshold=settings.low_stock_threshold,
    )


async def get_user_service() -> AsyncGenerator[UserService, None]:
    """Provides a UserService over the shared MongoDB client's ``users`` collection."""
    settings = get_settings()
    repository = MongoUserRepository(get_users_collection())
    yield UserService(repository, search_limit=settings.search_limit)

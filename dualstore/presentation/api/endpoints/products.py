"""Product CRUD endpoints backed by PostgreSQL."""

from datetime import datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Body, Depends, Query, status

from dualstore.application.schemas import (
    BulkCreateResponse,
    ConnectionTestResponse,
    DataResponse,
    DeletedResponse,
    PaginatedResponse,
    PaginationSchema,
    ProductCreate,
    ProductResponse,
    ProductStatsResponse,
    ProductUpdate,
)
from dualstore.application.services import ProductService
from dualstore.config import get_settings
from dualstore.infrastructure.dependencies import get_product_service

settings = get_settings()

router = APIRouter(prefix="/postgres", tags=["PostgreSQL Products"])


def _many(products) -> list[ProductResponse]:
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/test", response_model=ConnectionTestResponse)
async def test_connection(
    service: ProductService = Depends(get_product_service),
) -> ConnectionTestResponse:
    """Round-trip ``SELECT 1`` through the connection pool."""
    await service.check_connection()
    return ConnectionTestResponse(
        message="PostgreSQL connection successful",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.post(
    "/products",
    response_model=DataResponse[ProductResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    data: ProductCreate,
    service: ProductService = Depends(get_product_service),
) -> DataResponse[ProductResponse]:
    product = await service.create_record(data.model_dump(exclude_unset=True))
    return DataResponse(data=ProductResponse.model_validate(product))


@router.post(
    "/products/bulk",
    response_model=BulkCreateResponse[ProductResponse],
    status_code=status.HTTP_201_CREATED,
)
async def bulk_create_products(
    items: list[ProductCreate] = Body(...),
    service: ProductService = Depends(get_product_service),
) -> BulkCreateResponse[ProductResponse]:
    """Create many products in one transaction; any failure stores none of them."""
    products = await service.bulk_create_records(
        [item.model_dump(exclude_unset=True) for item in items]
    )
    return BulkCreateResponse(data=_many(products), count=len(products))


@router.get("/products", response_model=PaginatedResponse[ProductResponse])
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    category: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    service: ProductService = Depends(get_product_service),
) -> PaginatedResponse[ProductResponse]:
    """Retrieve a page of products, newest first, optionally by category and status."""
    result = await service.list_records(
        page=page,
        limit=limit,
        filters={"category": category, "status": status_filter},
    )
    return PaginatedResponse(
        data=_many(result.items),
        pagination=PaginationSchema(
            total=result.total, page=result.page, limit=result.limit, pages=result.pages
        ),
    )


@router.get("/products/search", response_model=DataResponse[list[ProductResponse]])
async def search_products(
    q: str | None = None,
    service: ProductService = Depends(get_product_service),
) -> DataResponse[list[ProductResponse]]:
    """Case-insensitive substring search over name and description."""
    products = await service.search_records(q)
    return DataResponse(data=_many(products))


@router.get("/products/stats", response_model=DataResponse[list[ProductStatsResponse]])
async def product_stats(
    service: ProductService = Depends(get_product_service),
) -> DataResponse[list[ProductStatsResponse]]:
    stats = await service.get_stats()
    return DataResponse(data=[ProductStatsResponse.model_validate(s) for s in stats])


@router.get("/products/price-range", response_model=DataResponse[list[ProductResponse]])
async def products_in_price_range(
    min_price: Decimal | None = Query(None, alias="minPrice"),
    max_price: Decimal | None = Query(None, alias="maxPrice"),
    service: ProductService = Depends(get_product_service),
) -> DataResponse[list[ProductResponse]]:
    products = await service.find_by_price_range(min_price, max_price)
    return DataResponse(data=_many(products))


@router.get("/products/low-stock", response_model=DataResponse[list[ProductResponse]])
async def low_stock_products(
    threshold: int | None = None,
    service: ProductService = Depends(get_product_service),
) -> DataResponse[list[ProductResponse]]:
    """Available products at or below ``threshold`` units (default from settings)."""
    products = await service.find_low_stock(threshold)
    return DataResponse(data=_many(products))


@router.get("/products/{product_id}", response_model=DataResponse[ProductResponse])
async def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
) -> DataResponse[ProductResponse]:
    product = await service.get_record(product_id)
    return DataResponse(data=ProductResponse.model_validate(product))


@router.api_route(
    "/products/{product_id}",
    methods=["PUT", "PATCH"],
    response_model=DataResponse[ProductResponse],
)
async def update_product(
    product_id: str,
    data: ProductUpdate,
    service: ProductService = Depends(get_product_service),
) -> DataResponse[ProductResponse]:
    product = await service.update_record(
        product_id, data.model_dump(exclude_unset=True)
    )
    return DataResponse(data=ProductResponse.model_validate(product))


@router.delete("/products/{product_id}", response_model=DeletedResponse[ProductResponse])
async def delete_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
) -> DeletedResponse[ProductResponse]:
    product = await service.delete_record(product_id)
    return DeletedResponse(
        data=ProductResponse.model_validate(product),
        message="Product deleted successfully",
    )

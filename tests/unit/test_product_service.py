"""Unit tests for the ProductService."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from dualstore.application.services import ProductService
from dualstore.domain.entities import Product, ProductStatus
from dualstore.domain.exceptions import EntityNotFoundError, RecordValidationError
from fakes import FakeProductRepository


@pytest.fixture
def repository() -> FakeProductRepository:
    return FakeProductRepository()


@pytest.fixture
def service(repository: FakeProductRepository) -> ProductService:
    return ProductService(repository, search_limit=50, low_stock_threshold=10)


async def _seed(repository: FakeProductRepository, *products: Product) -> None:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for offset, product in enumerate(products):
        product.created_at = base + timedelta(minutes=offset)
        await repository.create(product)


@pytest.mark.asyncio
async def test_widget_scenario(service: ProductService):
    widget = await service.create_record(
        {"name": "Widget", "price": 9.99, "quantity": 5, "category": "Tools"}
    )
    assert widget.price == Decimal("9.99")
    assert widget.status is ProductStatus.AVAILABLE

    tools = await service.list_records(page=1, limit=10, filters={"category": "Tools"})
    assert [p.id for p in tools.items] == [widget.id]

    before = {s.category: s for s in await service.get_stats()}["Tools"]
    await service.update_record(widget.id, {"quantity": 0})
    after = {s.category: s for s in await service.get_stats()}["Tools"]
    assert after.total_quantity == before.total_quantity - 5

    await service.delete_record(widget.id)
    with pytest.raises(EntityNotFoundError):
        await service.get_record(widget.id)


@pytest.mark.asyncio
async def test_list_products_newest_first(
    service: ProductService, repository: FakeProductRepository
):
    await _seed(
        repository,
        Product(name="Old", price=Decimal("1")),
        Product(name="Mid", price=Decimal("1")),
        Product(name="New", price=Decimal("1")),
    )
    page = await service.list_records(page=1, limit=2)
    assert [p.name for p in page.items] == ["New", "Mid"]
    assert page.total == 3
    assert page.pages == 2


@pytest.mark.asyncio
async def test_list_products_filters_combine(
    service: ProductService, repository: FakeProductRepository
):
    await _seed(
        repository,
        Product(name="Hammer", price=Decimal("10"), category="Tools"),
        Product(
            name="Saw",
            price=Decimal("20"),
            category="Tools",
            status=ProductStatus.DISCONTINUED,
        ),
        Product(name="Apple", price=Decimal("1"), category="Food"),
    )
    page = await service.list_records(
        page=1, limit=10, filters={"category": "Tools", "status": "discontinued"}
    )
    assert [p.name for p in page.items] == ["Saw"]


@pytest.mark.asyncio
async def test_search_products_over_name_and_description(
    service: ProductService, repository: FakeProductRepository
):
    await _seed(
        repository,
        Product(name="Hammer", price=Decimal("10"), description="Steel head"),
        Product(name="Steelyard", price=Decimal("30")),
        Product(name="Rope", price=Decimal("5")),
    )
    names = sorted(p.name for p in await service.search_records("steel"))
    assert names == ["Hammer", "Steelyard"]


@pytest.mark.asyncio
async def test_stats_put_uncategorised_last(
    service: ProductService, repository: FakeProductRepository
):
    await _seed(
        repository,
        Product(name="A", price=Decimal("10.00"), quantity=2, category="Tools"),
        Product(name="B", price=Decimal("20.00"), quantity=3, category="Tools"),
        Product(name="C", price=Decimal("5.00"), quantity=1),
        Product(name="D", price=Decimal("1.00"), quantity=7, category="Food"),
    )
    stats = await service.get_stats()
    assert [s.category for s in stats] == ["Food", "Tools", None]
    tools = stats[1]
    assert tools.count == 2
    assert tools.avg_price == 15.0
    assert tools.total_quantity == 5


@pytest.mark.asyncio
async def test_price_range_is_inclusive_and_sorted_by_price(
    service: ProductService, repository: FakeProductRepository
):
    await _seed(
        repository,
        Product(name="Ten", price=Decimal("10.00")),
        Product(name="Five", price=Decimal("5.00")),
        Product(name="Twenty", price=Decimal("20.00")),
    )
    products = await service.find_by_price_range(Decimal("5"), Decimal("10"))
    assert [p.name for p in products] == ["Five", "Ten"]


@pytest.mark.asyncio
async def test_price_range_validation(service: ProductService):
    with pytest.raises(RecordValidationError) as exc_info:
        await service.find_by_price_range(None, None)
    assert {e.field for e in exc_info.value.errors} == {"minPrice", "maxPrice"}

    with pytest.raises(RecordValidationError) as exc_info:
        await service.find_by_price_range(Decimal("10"), Decimal("5"))
    assert exc_info.value.errors[0].message == "minPrice cannot be greater than maxPrice"

    with pytest.raises(RecordValidationError) as exc_info:
        await service.find_by_price_range(Decimal("-1"), Decimal("5"))
    assert exc_info.value.errors[0].message == "minPrice cannot be negative"


@pytest.mark.asyncio
async def test_low_stock_returns_available_products_at_or_below_threshold(
    service: ProductService, repository: FakeProductRepository
):
    await _seed(
        repository,
        Product(name="Few", price=Decimal("1"), quantity=3),
        Product(name="Edge", price=Decimal("1"), quantity=10),
        Product(name="Plenty", price=Decimal("1"), quantity=50),
        Product(
            name="Gone",
            price=Decimal("1"),
            quantity=0,
            status=ProductStatus.DISCONTINUED,
        ),
    )
    assert [p.name for p in await service.find_low_stock()] == ["Few", "Edge"]
    assert [p.name for p in await service.find_low_stock(5)] == ["Few"]

    with pytest.raises(RecordValidationError):
        await service.find_low_stock(-1)


@pytest.mark.asyncio
async def test_update_product_revalidates_changed_fields(service: ProductService):
    product = await service.create_record({"name": "Widget", "price": "9.99"})
    with pytest.raises(RecordValidationError) as exc_info:
        await service.update_record(product.id, {"price": -2})
    assert exc_info.value.errors[0].message == "Price cannot be negative"

    updated = await service.update_record(product.id, {"status": "out_of_stock"})
    assert updated.status is ProductStatus.OUT_OF_STOCK
    assert updated.price == Decimal("9.99")


@pytest.mark.asyncio
async def test_get_unknown_product_raises_not_found(service: ProductService):
    with pytest.raises(EntityNotFoundError):
        await service.get_record("not-a-uuid")

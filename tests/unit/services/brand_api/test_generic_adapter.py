# Generic adapter unit tests
import pytest
from unittest.mock import AsyncMock

from app.core.exceptions import FormatError
from app.schemas import BrandRead
from app.services.brand_api.client import UpstreamClient, UpstreamPage
from app.services.brand_api.generic import GenericAdapter, unwrap_products


@pytest.fixture
def brand():
    return BrandRead(
        id=1,
        name="Acme",
        website="https://acme.example",
        api_key="acme-token",
        api_endpoint="https://api.acme.example/v1/products",
        api_type="generic",
    )


def make_adapter(brand, settings, clock, payload):
    client = UpstreamClient()
    client.get = AsyncMock(return_value=UpstreamPage(payload=payload, status_code=200))
    return GenericAdapter(brand, client, settings, clock), client


"""
1. Envelopes
"""

ITEM = {"id": 1, "name": "Tote", "price": 30}


@pytest.mark.parametrize("payload", [
    [ITEM],
    {"products": [ITEM]},
    {"data": [ITEM]},
    {"items": [ITEM]},
    {"results": [ITEM]},
    {"data": {"products": [ITEM]}},
    {"meta": {"page": 1}, "data": {"items": [ITEM]}},
])
def test_unwrap_products_finds_the_list(payload):
    assert unwrap_products(payload) == [ITEM]


@pytest.mark.parametrize("payload", [{"message": "ok"}, {"products": "none"}, "products", None, 42])
def test_unwrap_products_without_a_list_is_a_format_error(payload):
    with pytest.raises(FormatError):
        unwrap_products(payload)


@pytest.mark.asyncio
async def test_format_error_names_the_brand(brand, settings, clock):
    adapter, _ = make_adapter(brand, settings, clock, {"status": "ok"})

    with pytest.raises(FormatError) as exc_info:
        await adapter.fetch_products()

    assert "Acme" in str(exc_info.value)


@pytest.mark.asyncio
async def test_sends_bearer_token(brand, settings, clock):
    adapter, client = make_adapter(brand, settings, clock, [])

    assert await adapter.fetch_products() == []

    client.get.assert_awaited_once_with(
        "https://api.acme.example/v1/products",
        headers={"Authorization": "Bearer acme-token"},
    )


"""
2. Field mapping
"""

@pytest.mark.asyncio
async def test_maps_aliased_fields(brand, settings, clock):
    payload = {"data": [{
        "product_id": "A-77",
        "title": "Canvas Tote",
        "summary": "Heavy canvas",
        "current_price": "$45.00",
        "original_price": "60",
        "photos": [{"url": "https://cdn.acme.example/tote-1.jpg"}, "https://cdn.acme.example/tote-2.jpg"],
        "link": "https://acme.example/p/canvas-tote",
        "stock_quantity": 4,
        "average_rating": 4.2,
        "reviews_count": "31",
        "colours": "Natural, Black",
        "size": "One Size",
        "tags": ["bags", "canvas"],
        "date_created": "2024-06-01T00:00:00Z",
    }]}
    adapter, _ = make_adapter(brand, settings, clock, payload)

    draft = (await adapter.fetch_products())[0]

    assert draft.external_id == "generic-A-77"
    assert draft.name == "Canvas Tote"
    assert draft.description == "Heavy canvas"
    assert draft.price == 60.0
    assert draft.discounted_price == 45.0
    assert draft.images == ["https://cdn.acme.example/tote-1.jpg", "https://cdn.acme.example/tote-2.jpg"]
    assert draft.url == "https://acme.example/p/canvas-tote"
    assert draft.in_stock is True
    assert draft.rating == 4.2
    assert draft.review_count == 31
    assert draft.colors == ["Natural", "Black"]
    assert draft.sizes == ["One Size"]
    assert draft.tags == ["bags", "canvas"]
    assert draft.is_new is True
    assert draft.category_id == settings.DEFAULT_CATEGORY_ID


@pytest.mark.asyncio
@pytest.mark.parametrize("product, expected", [
    ({"price": 50, "sale_price": 40}, (50.0, 40.0)),
    ({"price": 50, "sale_price": 55}, (50.0, None)),
    ({"price": 50, "compare_at_price": 50}, (50.0, None)),
    ({"price": {"amount": "19.99", "currency": "EUR"}}, (19.99, None)),
    ({"price": "n/a"}, (0.0, None)),
    ({"original_price": 50}, (50.0, None)),
    ({"sale_price": 30}, (30.0, None)),
])
async def test_pricing_rules(brand, settings, clock, product, expected):
    adapter, _ = make_adapter(brand, settings, clock, [dict(id=1, name="Item", **product)])

    draft = (await adapter.fetch_products())[0]

    assert (draft.price, draft.discounted_price) == expected


@pytest.mark.asyncio
async def test_single_image_and_derived_url(brand, settings, clock):
    adapter, _ = make_adapter(brand, settings, clock, [
        {"slug": "wool-scarf", "name": "Wool Scarf", "price": 25, "image": {"src": "https://cdn.acme.example/scarf.jpg"}},
    ])

    draft = (await adapter.fetch_products())[0]

    assert draft.external_id == "generic-wool-scarf"
    assert draft.images == ["https://cdn.acme.example/scarf.jpg"]
    assert draft.url == "https://acme.example/products/wool-scarf"


@pytest.mark.asyncio
async def test_sizes_from_variants_skip_default_title(brand, settings, clock):
    adapter, _ = make_adapter(brand, settings, clock, [{
        "id": 3, "name": "Socks", "price": 8,
        "variants": [{"title": "Default Title"}, {"size": "M"}, {"title": "L"}],
    }])

    draft = (await adapter.fetch_products())[0]

    assert draft.sizes == ["M", "L"]


@pytest.mark.asyncio
@pytest.mark.parametrize("product, expected", [
    ({"available": False}, False),
    ({"in_stock": "false"}, False),
    ({"inventory_quantity": 0}, False),
    ({"stock_status": "in_stock"}, True),
    ({"stock_status": "outofstock"}, False),
    ({}, True),
])
async def test_stock_detection(brand, settings, clock, product, expected):
    adapter, _ = make_adapter(brand, settings, clock, [dict(id=1, name="Item", price=10, **product)])

    draft = (await adapter.fetch_products())[0]

    assert draft.in_stock is expected


@pytest.mark.asyncio
async def test_external_id_falls_back_to_url_then_name(brand, settings, clock):
    adapter, _ = make_adapter(brand, settings, clock, [
        {"name": "Cap", "price": 12, "url": "https://acme.example/cap"},
        {"name": "Belt", "price": 20},
    ])

    drafts = await adapter.fetch_products()

    assert [d.external_id for d in drafts] == ["generic-https://acme.example/cap", "generic-Belt"]


"""
3. Resilience
"""

@pytest.mark.asyncio
async def test_malformed_record_still_yields_a_product(brand, settings, clock):
    # variants must be iterable; this one breaks the full mapping
    adapter, _ = make_adapter(brand, settings, clock, [
        {"id": "x1", "name": "Odd Item", "price": "12", "variants": 5},
    ])

    drafts = await adapter.fetch_products()

    assert len(drafts) == 1
    assert drafts[0].external_id == "generic-x1"
    assert drafts[0].name == "Odd Item"
    assert drafts[0].price == 12.0
    assert drafts[0].sizes == []


@pytest.mark.asyncio
async def test_non_object_entries_are_skipped(brand, settings, clock):
    adapter, _ = make_adapter(brand, settings, clock, ["junk", 7, None, {"id": 2, "name": "Real", "price": 5}])

    drafts = await adapter.fetch_products()

    assert [d.external_id for d in drafts] == ["generic-2"]


@pytest.mark.asyncio
async def test_missing_name_gets_a_placeholder(brand, settings, clock):
    adapter, _ = make_adapter(brand, settings, clock, [{"id": 4, "price": 5}])

    draft = (await adapter.fetch_products())[0]

    assert draft.name == "Unnamed product"


@pytest.mark.asyncio
async def test_records_without_id_url_or_name_are_skipped(brand, settings, clock):
    adapter, _ = make_adapter(brand, settings, clock, [
        {"price": 10},
        {"price": 15, "description": "no identity either"},
        {"id": 9, "price": 20},
    ])

    drafts = await adapter.fetch_products()

    assert [d.external_id for d in drafts] == ["generic-9"]


@pytest.mark.asyncio
async def test_name_keyed_product_logs_a_warning(brand, settings, clock, caplog):
    adapter, _ = make_adapter(brand, settings, clock, [{"name": "Belt", "price": 20}])

    with caplog.at_level("WARNING", logger="app.services.brand_api.generic"):
        drafts = await adapter.fetch_products()

    assert drafts[0].external_id == "generic-Belt"
    assert "keying it by name" in caplog.text

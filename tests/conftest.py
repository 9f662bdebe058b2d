# tests/conftest.py
from datetime import datetime, timezone

import pytest
import httpx

from app.core.config import Settings
from app.schemas import BrandCreate, ProductDraft
from app.services.storage.memory import MemoryStorage

# Fixed "now" shared by tests that depend on today's date
FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    """Provide test settings"""
    return Settings(
        STORAGE_BACKEND="memory",
        SYNC_SCHEDULE_ENABLED=False,
        PRICE_ALERT_SCHEDULE_ENABLED=False,
        SMTP_HOST="",
        SMS_API_URL="",
    )


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now):
    """A clock that always returns FIXED_NOW"""
    return lambda: fixed_now


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
async def category(storage):
    return await storage.create_category("Clothing")


@pytest.fixture
async def generic_brand(storage, category):
    return await storage.create_brand(BrandCreate(
        name="Acme",
        website="https://acme.example",
        api_key="acme-token",
        api_endpoint="https://api.acme.example/v1/products",
        api_type="generic",
    ))


@pytest.fixture
async def unconfigured_brand(storage):
    return await storage.create_brand(BrandCreate(name="Offline Co", website="https://offline.example"))


def make_draft(brand_id: int, external_id: str = "generic-1", price: float = 100.0, **overrides) -> ProductDraft:
    data = {
        "external_id": external_id,
        "name": "Linen Shirt",
        "price": price,
        "brand_id": brand_id,
        "category_id": 1,
        "images": ["https://cdn.example/shirt.jpg"],
        "url": f"https://shop.example/products/{external_id}",
    }
    data.update(overrides)
    return ProductDraft(**data)


@pytest.fixture
def draft_factory():
    return make_draft


@pytest.fixture
async def test_client(settings, storage):
    """
    HTTP client for the app, with services built on the test storage.

    The lifespan is not entered, so no scheduler runs; app.state is filled in
    directly instead.
    """
    from app.dependencies import build_services
    from app.main import app

    app.state.services = build_services(settings, storage)
    app.state.scheduler = None
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    del app.state.services

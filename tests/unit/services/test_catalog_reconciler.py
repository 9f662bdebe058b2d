# Catalog reconciler tests
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import ReconciliationError
from app.schemas import BrandCreate, PriceHistoryEntry
from app.services.catalog_reconciler import CREATED, UPDATED, CatalogReconciler


@pytest.fixture
def reconciler(storage, settings, clock):
    return CatalogReconciler(storage, settings, clock)


@pytest.mark.asyncio
async def test_new_draft_is_created_with_history(reconciler, generic_brand, draft_factory):
    result = await reconciler.reconcile(draft_factory(generic_brand.id, price=100.0))

    assert result.action == CREATED
    assert result.product.id is not None
    assert result.product.external_id == "generic-1"
    assert result.product.price_history == [PriceHistoryEntry(date="2024-06-15", price=100.0)]


@pytest.mark.asyncio
async def test_new_product_is_stamped_with_the_sync_clock(reconciler, generic_brand, draft_factory, fixed_now):
    result = await reconciler.reconcile(draft_factory(generic_brand.id, price=100.0))

    assert result.product.created_at == fixed_now
    assert result.product.last_updated == fixed_now


@pytest.mark.asyncio
async def test_history_records_the_effective_price(reconciler, generic_brand, draft_factory):
    result = await reconciler.reconcile(
        draft_factory(generic_brand.id, price=50.0, discounted_price=40.0)
    )

    assert result.product.price_history[-1].price == 40.0


@pytest.mark.asyncio
async def test_known_draft_updates_in_place(reconciler, storage, generic_brand, draft_factory):
    created = (await reconciler.reconcile(draft_factory(generic_brand.id, price=100.0))).product

    result = await reconciler.reconcile(
        draft_factory(generic_brand.id, price=100.0, name="Linen Shirt v2", in_stock=False)
    )

    assert result.action == UPDATED
    assert result.product.id == created.id
    assert result.product.name == "Linen Shirt v2"
    assert result.product.in_stock is False
    assert (await storage.list_products()).total == 1


@pytest.mark.asyncio
async def test_same_day_resync_does_not_duplicate_history(reconciler, generic_brand, draft_factory):
    await reconciler.reconcile(draft_factory(generic_brand.id, price=100.0))

    result = await reconciler.reconcile(draft_factory(generic_brand.id, price=90.0))

    assert result.product.price_history == [PriceHistoryEntry(date="2024-06-15", price=90.0)]


@pytest.mark.asyncio
async def test_next_day_appends_history(storage, settings, fixed_now, generic_brand, draft_factory):
    now = {"value": fixed_now}
    reconciler = CatalogReconciler(storage, settings, lambda: now["value"])

    await reconciler.reconcile(draft_factory(generic_brand.id, price=100.0))
    now["value"] = fixed_now + timedelta(days=1)
    result = await reconciler.reconcile(draft_factory(generic_brand.id, price=80.0))

    assert result.product.price_history == [
        PriceHistoryEntry(date="2024-06-15", price=100.0),
        PriceHistoryEntry(date="2024-06-16", price=80.0),
    ]
    assert result.product.last_updated == now["value"]


@pytest.mark.asyncio
async def test_same_external_id_under_another_brand_is_a_new_product(
    reconciler, storage, generic_brand, draft_factory
):
    other = await storage.create_brand(BrandCreate(name="Other", website="https://other.example"))

    await reconciler.reconcile(draft_factory(generic_brand.id))
    result = await reconciler.reconcile(draft_factory(other.id))

    assert result.action == CREATED
    assert (await storage.list_products()).total == 2


@pytest.mark.asyncio
async def test_missing_external_id_is_rejected(reconciler, generic_brand, draft_factory):
    with pytest.raises(ReconciliationError):
        await reconciler.reconcile(draft_factory(generic_brand.id, external_id=None))


@pytest.mark.asyncio
async def test_storage_failure_is_wrapped(reconciler, storage, generic_brand, draft_factory):
    storage.create_product = AsyncMock(side_effect=RuntimeError("disk full"))

    with pytest.raises(ReconciliationError) as exc_info:
        await reconciler.reconcile(draft_factory(generic_brand.id, external_id="generic-9"))

    assert exc_info.value.external_id == "generic-9"
    assert "disk full" in str(exc_info.value)

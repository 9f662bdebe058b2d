# Brand sync orchestration tests
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.enums import SyncLogStatus
from app.core.exceptions import (
    BrandNotFoundError,
    ConfigurationError,
    FetchError,
    ReconciliationError,
)
from app.schemas import BrandCreate
from app.services.brand_sync_service import BrandSyncService


def fake_selector(drafts=None, error=None):
    """Adapter selector returning a stub adapter with canned fetch results"""
    adapter = MagicMock()
    adapter.fetch_products = AsyncMock(return_value=drafts or [], side_effect=error)
    selector = MagicMock(return_value=adapter)
    return selector, adapter


@pytest.fixture
def make_service(storage, settings, clock):
    def _make(selector=None):
        if selector is None:
            return BrandSyncService(storage, settings, clock=clock)
        return BrandSyncService(storage, settings, adapter_selector=selector, clock=clock)
    return _make


@pytest.mark.asyncio
async def test_unknown_brand_raises_without_a_sync_log(make_service, storage):
    service = make_service()

    with pytest.raises(BrandNotFoundError):
        await service.sync_brand_products(999)

    assert await storage.list_sync_logs(999) == []


@pytest.mark.asyncio
async def test_missing_config_fails_the_sync_log(make_service, storage, unconfigured_brand):
    service = make_service()

    with pytest.raises(ConfigurationError):
        await service.sync_brand_products(unconfigured_brand.id)

    log = await storage.get_latest_sync_log(unconfigured_brand.id)
    assert log.status == SyncLogStatus.FAILED
    assert log.completed_at is not None
    assert "Offline Co" in log.error


@pytest.mark.asyncio
async def test_fetch_error_fails_the_sync_log(make_service, storage, generic_brand):
    selector, _ = fake_selector(error=FetchError("Upstream API error: 500 Internal Server Error"))
    service = make_service(selector)

    with pytest.raises(FetchError):
        await service.sync_brand_products(generic_brand.id)

    log = await storage.get_latest_sync_log(generic_brand.id)
    assert log.status == SyncLogStatus.FAILED
    assert log.error == "Upstream API error: 500 Internal Server Error"
    assert log.products_added == 0
    assert not service.is_syncing(generic_brand.id)


@pytest.mark.asyncio
async def test_unexpected_adapter_error_becomes_fetch_error(make_service, storage, generic_brand):
    selector, _ = fake_selector(error=RuntimeError("boom"))
    service = make_service(selector)

    with pytest.raises(FetchError) as exc_info:
        await service.sync_brand_products(generic_brand.id)

    assert "boom" in str(exc_info.value)
    log = await storage.get_latest_sync_log(generic_brand.id)
    assert log.status == SyncLogStatus.FAILED


@pytest.mark.asyncio
async def test_successful_sync_counts_adds_and_updates(make_service, storage, generic_brand, draft_factory):
    drafts = [draft_factory(generic_brand.id, external_id=f"generic-{i}") for i in range(3)]
    selector, _ = fake_selector(drafts)
    service = make_service(selector)

    first = await service.sync_brand_products(generic_brand.id)
    second = await service.sync_brand_products(generic_brand.id)

    assert (first.products_added, first.products_updated, first.errors) == (3, 0, [])
    assert (second.products_added, second.products_updated) == (0, 3)
    assert (await storage.list_products()).total == 3

    logs = await storage.list_sync_logs(generic_brand.id)
    assert len(logs) == 2
    assert all(log.status == SyncLogStatus.SUCCESS for log in logs)
    assert all(log.error == "" for log in logs)


@pytest.mark.asyncio
async def test_selector_receives_brand_settings_client_and_clock(make_service, settings, clock, generic_brand):
    selector, _ = fake_selector()
    service = make_service(selector)

    await service.sync_brand_products(generic_brand.id)

    args = selector.call_args.args
    assert args[0].id == generic_brand.id
    assert args[1] is settings
    assert args[2] is service.client
    assert args[3] is clock


@pytest.mark.asyncio
async def test_one_bad_product_does_not_fail_the_sync(make_service, storage, generic_brand, draft_factory):
    drafts = [draft_factory(generic_brand.id, external_id=f"generic-{i}") for i in range(4)]
    selector, _ = fake_selector(drafts)
    service = make_service(selector)

    original = service.reconciler.reconcile

    async def flaky_reconcile(draft):
        if draft.external_id == "generic-2":
            raise ReconciliationError("Error processing product Linen Shirt (generic-2): bad row", "generic-2")
        return await original(draft)

    service.reconciler.reconcile = flaky_reconcile

    result = await service.sync_brand_products(generic_brand.id)

    assert result.products_added == 3
    assert len(result.errors) == 1
    log = await storage.get_latest_sync_log(generic_brand.id)
    assert log.status == SyncLogStatus.SUCCESS
    assert log.products_added == 3
    assert "generic-2" in log.error


@pytest.mark.asyncio
async def test_concurrent_syncs_for_one_brand_are_serialised(make_service, storage, generic_brand, draft_factory):
    release = asyncio.Event()
    selector, adapter = fake_selector()
    running = []

    async def slow_fetch():
        running.append(True)
        assert len(running) == 1
        await release.wait()
        running.pop()
        return [draft_factory(generic_brand.id)]

    adapter.fetch_products = slow_fetch
    service = make_service(selector)

    first = asyncio.create_task(service.sync_brand_products(generic_brand.id))
    second = asyncio.create_task(service.sync_brand_products(generic_brand.id))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert service.is_syncing(generic_brand.id)
    release.set()
    results = await asyncio.gather(first, second)

    assert [(r.products_added, r.products_updated) for r in results] == [(1, 0), (0, 1)]
    assert not service.is_syncing(generic_brand.id)


@pytest.mark.asyncio
async def test_sync_all_brands_isolates_failures(make_service, storage, generic_brand, unconfigured_brand, draft_factory):
    broken = await storage.create_brand(BrandCreate(
        name="Broken",
        api_key="k",
        api_endpoint="https://broken.example/api",
        api_type="generic",
    ))
    healthy_drafts = [draft_factory(generic_brand.id)]

    def selector(brand, *args):
        adapter = MagicMock()
        if brand.id == broken.id:
            adapter.fetch_products = AsyncMock(side_effect=FetchError("Network error calling broken"))
        else:
            adapter.fetch_products = AsyncMock(return_value=healthy_drafts)
        return adapter

    service = make_service(selector)

    results = await service.sync_all_brands()

    assert set(results) == {generic_brand.id, broken.id}
    assert results[generic_brand.id].products_added == 1
    assert results[broken.id].errors == ["Network error calling broken"]
    assert unconfigured_brand.id not in results


@pytest.mark.asyncio
async def test_failed_success_write_still_closes_the_log(make_service, storage, generic_brand, draft_factory):
    selector, _ = fake_selector([draft_factory(generic_brand.id)])
    service = make_service(selector)
    original_close = storage.close_sync_log

    async def close_rejecting_success(sync_log_id, status, **kwargs):
        if status == SyncLogStatus.SUCCESS:
            raise RuntimeError("disk full")
        return await original_close(sync_log_id, status=status, **kwargs)

    storage.close_sync_log = close_rejecting_success

    with pytest.raises(RuntimeError):
        await service.sync_brand_products(generic_brand.id)

    log = await storage.get_latest_sync_log(generic_brand.id)
    assert log.status == SyncLogStatus.FAILED
    assert log.completed_at is not None
    assert "disk full" in log.error
    assert not service.is_syncing(generic_brand.id)

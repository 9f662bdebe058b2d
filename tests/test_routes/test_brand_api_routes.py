import pytest
from unittest.mock import AsyncMock

from app.core.enums import SyncLogStatus
from app.core.exceptions import FetchError
from app.schemas import SyncResult


@pytest.fixture
def mock_sync(mocker, test_client):
    """Replace the real sync so background tasks never reach the network"""
    from app.main import app

    return mocker.patch.object(
        app.state.services.sync_service,
        "sync_brand_products",
        AsyncMock(return_value=SyncResult(products_added=1)),
    )


@pytest.mark.asyncio
async def test_api_status_lists_every_brand(test_client, generic_brand, unconfigured_brand):
    response = await test_client.get("/api/brands/api-status")

    assert response.status_code == 200
    status = {b["name"]: b for b in response.json()}
    assert status["Acme"]["has_api_config"] is True
    assert status["Acme"]["api_type"] == "generic"
    assert status["Offline Co"]["has_api_config"] is False


@pytest.mark.asyncio
async def test_update_api_config(test_client, unconfigured_brand):
    response = await test_client.patch(
        f"/api/brands/{unconfigured_brand.id}/api-config",
        json={
            "api_key": "ck_1:cs_2",
            "api_endpoint": "https://offline.example",
            "api_type": "woocommerce",
            "name": "Ignored Rename",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["api_type"] == "woocommerce"
    assert body["name"] == "Offline Co"


@pytest.mark.asyncio
async def test_update_api_config_unknown_brand(test_client):
    response = await test_client.patch("/api/brands/999/api-config", json={"api_type": "shopify"})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_trigger_sync_runs_in_background(test_client, mock_sync, generic_brand):
    response = await test_client.post(f"/api/brands/{generic_brand.id}/sync")

    assert response.status_code == 202
    assert response.json()["brand_id"] == generic_brand.id
    mock_sync.assert_awaited_once_with(generic_brand.id)


@pytest.mark.asyncio
async def test_background_failure_does_not_break_the_response(test_client, mock_sync, generic_brand):
    mock_sync.side_effect = FetchError("Upstream API error: 500 Internal Server Error")

    response = await test_client.post(f"/api/brands/{generic_brand.id}/sync")

    assert response.status_code == 202


@pytest.mark.asyncio
async def test_trigger_sync_unknown_brand(test_client, mock_sync):
    response = await test_client.post("/api/brands/999/sync")

    assert response.status_code == 404
    mock_sync.assert_not_awaited()


@pytest.mark.asyncio
async def test_trigger_sync_requires_api_config(test_client, mock_sync, unconfigured_brand):
    response = await test_client.post(f"/api/brands/{unconfigured_brand.id}/sync")

    assert response.status_code == 400
    mock_sync.assert_not_awaited()


@pytest.mark.asyncio
async def test_trigger_sync_conflict_while_running(mocker, test_client, mock_sync, generic_brand):
    from app.main import app

    mocker.patch.object(app.state.services.sync_service, "is_syncing", return_value=True)

    response = await test_client.post(f"/api/brands/{generic_brand.id}/sync")

    assert response.status_code == 409
    mock_sync.assert_not_awaited()


@pytest.mark.asyncio
async def test_sync_history(test_client, storage, generic_brand):
    first = await storage.open_sync_log(generic_brand.id)
    await storage.close_sync_log(
        first.id, status=SyncLogStatus.FAILED, products_added=0, products_updated=0, error="timeout"
    )
    second = await storage.open_sync_log(generic_brand.id)

    response = await test_client.get(f"/api/brands/{generic_brand.id}/sync-history")

    assert response.status_code == 200
    body = response.json()
    assert body["latest_sync"]["id"] == second.id
    assert body["latest_sync"]["status"] == "running"
    assert [log["id"] for log in body["history"]] == [second.id, first.id]


@pytest.mark.asyncio
async def test_sync_history_unknown_brand(test_client):
    response = await test_client.get("/api/brands/999/sync-history")

    assert response.status_code == 404

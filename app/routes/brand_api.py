"""
Brand upstream API endpoints: configuration status, manual syncs and sync history.
"""

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from app.core.exceptions import BaseServiceError, BrandNotFoundError
from app.dependencies import get_storage, get_sync_service
from app.schemas import BrandApiStatus, BrandRead, BrandUpdate
from app.services.brand_sync_service import BrandSyncService
from app.services.storage import Storage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/brands", tags=["brand-api"])


async def run_brand_sync(sync_service: BrandSyncService, brand_id: int) -> None:
    """Background wrapper: the sync log already records failures, so only log here"""
    try:
        await sync_service.sync_brand_products(brand_id)
    except BaseServiceError as e:
        logger.error(f"Background sync for brand {brand_id} failed: {str(e)}")


@router.get("/api-status", response_model=List[BrandApiStatus])
async def brands_api_status(storage: Storage = Depends(get_storage)):
    """All brands with whether their upstream API is fully configured"""
    brands = await storage.list_brands()
    return [
        BrandApiStatus(id=b.id, name=b.name, api_type=b.api_type, has_api_config=b.has_api_config)
        for b in brands
    ]


@router.patch("/{brand_id}/api-config", response_model=BrandRead)
async def update_brand_api_config(
    brand_id: int,
    changes: BrandUpdate,
    storage: Storage = Depends(get_storage)
):
    api_fields = changes.model_dump(include={"api_key", "api_endpoint", "api_type"}, exclude_unset=True)
    try:
        return await storage.update_brand(brand_id, BrandUpdate(**api_fields))
    except BrandNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{brand_id}/sync", status_code=202)
async def trigger_brand_sync(
    brand_id: int,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
    sync_service: BrandSyncService = Depends(get_sync_service)
):
    """Start a sync for one brand and return immediately"""
    brand = await storage.get_brand(brand_id)
    if brand is None:
        raise HTTPException(status_code=404, detail="Brand not found")
    if not brand.has_api_config:
        raise HTTPException(status_code=400, detail="Brand API configuration is incomplete")
    if sync_service.is_syncing(brand_id):
        raise HTTPException(status_code=409, detail="A sync for this brand is already running")

    background_tasks.add_task(run_brand_sync, sync_service, brand_id)
    logger.info(f"Queued background sync for brand {brand.name} (ID: {brand_id})")
    return {"message": "Brand sync started", "brand_id": brand_id}


@router.get("/{brand_id}/sync-history")
async def brand_sync_history(
    brand_id: int,
    limit: int = 20,
    storage: Storage = Depends(get_storage)
):
    if await storage.get_brand(brand_id) is None:
        raise HTTPException(status_code=404, detail="Brand not found")

    history = await storage.list_sync_logs(brand_id, limit=limit)
    return {
        "latest_sync": history[0] if history else None,
        "history": history
    }

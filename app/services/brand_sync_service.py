# app/services/brand_sync_service.py
"""
Drives catalog syncs for brands with an upstream API.

One sync run:
1. Looks up the brand (BrandNotFoundError, no sync log, when it is unknown)
2. Opens a sync log in status "running"
3. Resolves the adapter for the brand's api_type and fetches its products
4. Reconciles the drafts one at a time, counting adds/updates and collecting
   per-product errors
5. Closes the sync log exactly once, as "success" or "failed"

Runs for the same brand are serialised with a per-brand lock; runs for
different brands never touch each other's products.
"""

import asyncio
import logging
from typing import Callable, Dict, Optional

from app.core.config import Settings
from app.core.enums import SyncLogStatus
from app.core.exceptions import (
    BaseServiceError,
    BrandNotFoundError,
    ConfigurationError,
    FetchError,
    ReconciliationError,
)
from app.core.utils import utc_now
from app.schemas import BrandRead, SyncLogRead, SyncResult
from app.services.brand_api import select_adapter
from app.services.brand_api.base import BrandApiAdapter, Clock
from app.services.brand_api.client import UpstreamClient
from app.services.catalog_reconciler import CREATED, CatalogReconciler
from app.services.storage.base import Storage

logger = logging.getLogger(__name__)

AdapterSelector = Callable[..., Optional[BrandApiAdapter]]


class BrandSyncService:

    def __init__(
        self,
        storage: Storage,
        settings: Settings,
        adapter_selector: AdapterSelector = select_adapter,
        client: Optional[UpstreamClient] = None,
        clock: Clock = utc_now,
    ):
        self.storage = storage
        self.settings = settings
        self.adapter_selector = adapter_selector
        self.client = client or UpstreamClient(timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
        self.clock = clock
        self.reconciler = CatalogReconciler(storage, settings, clock=clock)
        self._locks: Dict[int, asyncio.Lock] = {}

    def _lock_for(self, brand_id: int) -> asyncio.Lock:
        if brand_id not in self._locks:
            self._locks[brand_id] = asyncio.Lock()
        return self._locks[brand_id]

    def is_syncing(self, brand_id: int) -> bool:
        lock = self._locks.get(brand_id)
        return bool(lock and lock.locked())

    async def sync_brand_products(self, brand_id: int) -> SyncResult:
        brand = await self.storage.get_brand(brand_id)
        if brand is None:
            raise BrandNotFoundError(f"Brand with ID {brand_id} not found")

        async with self._lock_for(brand_id):
            return await self._run_sync(brand)

    async def sync_all_brands(self) -> Dict[int, SyncResult]:
        """
        Sync every brand that has a complete API configuration, one after the
        other. A failing brand is reported in its result and does not stop the
        remaining brands.
        """
        results: Dict[int, SyncResult] = {}
        brands = [b for b in await self.storage.list_brands() if b.has_api_config]
        logger.info(f"Starting sync for {len(brands)} configured brands")

        for brand in brands:
            try:
                results[brand.id] = await self.sync_brand_products(brand.id)
            except BaseServiceError as e:
                logger.error(f"Sync failed for brand {brand.name} (ID: {brand.id}): {str(e)}")
                results[brand.id] = SyncResult(errors=[str(e)])

        return results

    async def _run_sync(self, brand: BrandRead) -> SyncResult:
        logger.info(f"Starting product sync for brand {brand.name} (ID: {brand.id})")
        sync_log = await self.storage.open_sync_log(brand.id)

        try:
            adapter = self._resolve_adapter(brand)
            drafts = await adapter.fetch_products()
        except BaseServiceError as e:
            await self._close_failed(sync_log, str(e))
            raise
        except Exception as e:
            await self._close_failed(sync_log, str(e))
            raise FetchError(f"Unexpected error fetching products for {brand.name}: {str(e)}") from e

        result = SyncResult()
        for draft in drafts:
            try:
                outcome = await self.reconciler.reconcile(draft)
            except ReconciliationError as e:
                logger.warning(f"Brand {brand.name}: {str(e)}")
                result.errors.append(str(e))
                continue

            if outcome.action == CREATED:
                result.products_added += 1
            else:
                result.products_updated += 1

        try:
            await self.storage.close_sync_log(
                sync_log.id,
                status=SyncLogStatus.SUCCESS,
                products_added=result.products_added,
                products_updated=result.products_updated,
                error="\n".join(result.errors),
                completed_at=self.clock(),
            )
        except Exception as e:
            try:
                await self._close_failed(sync_log, f"Could not record sync result: {str(e)}")
            except Exception as close_error:
                logger.error(f"Sync {sync_log.id} for brand {brand.name} left open: {str(close_error)}")
            raise

        logger.info(
            f"Completed sync for {brand.name}: {result.products_added} added, "
            f"{result.products_updated} updated, {len(result.errors)} errors"
        )
        return result

    def _resolve_adapter(self, brand: BrandRead) -> BrandApiAdapter:
        adapter = self.adapter_selector(brand, self.settings, self.client, self.clock)
        if adapter is None:
            raise ConfigurationError(f"No API adapter available for brand {brand.name}")
        return adapter

    async def _close_failed(self, sync_log: SyncLogRead, error: str) -> None:
        logger.error(f"Sync {sync_log.id} for brand {sync_log.brand_id} failed: {error}")
        await self.storage.close_sync_log(
            sync_log.id,
            status=SyncLogStatus.FAILED,
            products_added=0,
            products_updated=0,
            error=error or "Unknown error",
            completed_at=self.clock(),
        )

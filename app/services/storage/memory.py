"""
Dict-backed storage used for local development and tests.

Records are held as schema instances and copied on the way in and out so that
callers can never mutate stored state without going through the store.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List

from app.core.enums import SyncLogStatus
from app.core.exceptions import (
    AlertNotFoundError,
    BrandNotFoundError,
    ProductNotFoundError,
    SyncLogStateError,
    WishlistNotFoundError,
)
from app.core.utils import page_bounds, utc_now
from app.schemas import (
    BrandCreate,
    BrandRead,
    BrandUpdate,
    CategoryRead,
    ProductDraft,
    ProductFilters,
    ProductPage,
    ProductRead,
    SyncLogRead,
    PriceAlertCreate,
    PriceAlertRead,
    PriceAlertUpdate,
    WishlistCreate,
    WishlistItemRead,
    WishlistRead,
)
from app.services.storage.base import Storage


class MemoryStorage(Storage):

    def __init__(self):
        self._brands: Dict[int, BrandRead] = {}
        self._categories: Dict[int, CategoryRead] = {}
        self._products: Dict[int, ProductRead] = {}
        self._sync_logs: Dict[int, SyncLogRead] = {}
        self._alerts: Dict[int, PriceAlertRead] = {}
        self._wishlists: Dict[int, WishlistRead] = {}
        self._wishlist_items: Dict[int, WishlistItemRead] = {}
        self._ids: Dict[str, int] = {}

    def _next_id(self, table: str) -> int:
        self._ids[table] = self._ids.get(table, 0) + 1
        return self._ids[table]

    # ------------------------------------------------------------------
    # Brands & categories
    # ------------------------------------------------------------------
    async def get_brand(self, brand_id: int) -> Optional[BrandRead]:
        brand = self._brands.get(brand_id)
        return brand.model_copy(deep=True) if brand else None

    async def list_brands(self) -> List[BrandRead]:
        return [b.model_copy(deep=True) for b in sorted(self._brands.values(), key=lambda b: b.id)]

    async def create_brand(self, brand: BrandCreate) -> BrandRead:
        if any(existing.name == brand.name for existing in self._brands.values()):
            raise ValueError(f"Brand '{brand.name}' already exists")
        record = BrandRead(id=self._next_id("brands"), **brand.model_dump())
        self._brands[record.id] = record
        return record.model_copy(deep=True)

    async def update_brand(self, brand_id: int, changes: BrandUpdate) -> BrandRead:
        brand = self._brands.get(brand_id)
        if brand is None:
            raise BrandNotFoundError(f"Brand with ID {brand_id} not found")
        updated = brand.model_copy(update=changes.model_dump(exclude_unset=True), deep=True)
        self._brands[brand_id] = updated
        return updated.model_copy(deep=True)

    async def create_category(self, name: str) -> CategoryRead:
        record = CategoryRead(id=self._next_id("categories"), name=name)
        self._categories[record.id] = record
        return record

    async def list_categories(self) -> List[CategoryRead]:
        return sorted(self._categories.values(), key=lambda c: c.id)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------
    async def get_product(self, product_id: int) -> Optional[ProductRead]:
        product = self._products.get(product_id)
        return product.model_copy(deep=True) if product else None

    async def find_product_by_brand_and_external_id(
        self, brand_id: int, external_id: str
    ) -> Optional[ProductRead]:
        for product in self._products.values():
            if product.brand_id == brand_id and product.external_id == external_id:
                return product.model_copy(deep=True)
        return None

    async def create_product(self, draft: ProductDraft, timestamp: Optional[datetime] = None) -> ProductRead:
        now = timestamp or utc_now()
        record = ProductRead(
            id=self._next_id("products"),
            created_at=now,
            last_updated=now,
            **draft.model_dump(),
        )
        self._products[record.id] = record
        return record.model_copy(deep=True)

    async def update_product(self, product_id: int, changes: Dict[str, Any]) -> ProductRead:
        product = self._products.get(product_id)
        if product is None:
            raise ProductNotFoundError(f"Product with ID {product_id} not found")
        merged = product.model_dump()
        merged.update({k: v for k, v in changes.items() if k not in ("id", "created_at")})
        # Re-validate so price/discount invariants still hold after the merge
        updated = ProductRead.model_validate(merged)
        self._products[product_id] = updated
        return updated.model_copy(deep=True)

    async def list_products(self, filters: Optional[ProductFilters] = None) -> ProductPage:
        filters = filters or ProductFilters()
        matches = [p for p in sorted(self._products.values(), key=lambda p: p.id) if _matches(p, filters)]
        total = len(matches)
        bounds = page_bounds(filters.page, filters.limit)
        if bounds:
            matches = matches[bounds["offset"]:bounds["offset"] + bounds["limit"]]
        return ProductPage(items=[p.model_copy(deep=True) for p in matches], total=total)

    # ------------------------------------------------------------------
    # Sync logs
    # ------------------------------------------------------------------
    async def open_sync_log(self, brand_id: int) -> SyncLogRead:
        record = SyncLogRead(
            id=self._next_id("sync_logs"),
            brand_id=brand_id,
            started_at=utc_now(),
            status=SyncLogStatus.RUNNING,
        )
        self._sync_logs[record.id] = record
        return record.model_copy()

    async def close_sync_log(
        self,
        sync_log_id: int,
        *,
        status: SyncLogStatus,
        products_added: int,
        products_updated: int,
        error: Optional[str],
        completed_at: Optional[datetime] = None,
    ) -> SyncLogRead:
        log = self._sync_logs.get(sync_log_id)
        if log is None:
            raise SyncLogStateError(f"Sync log {sync_log_id} does not exist")
        if log.status != SyncLogStatus.RUNNING:
            raise SyncLogStateError(f"Sync log {sync_log_id} is already {log.status.value}")
        closed = log.model_copy(update={
            "status": status,
            "products_added": products_added,
            "products_updated": products_updated,
            "error": error,
            "completed_at": completed_at or utc_now(),
        })
        self._sync_logs[sync_log_id] = closed
        return closed.model_copy()

    async def get_latest_sync_log(self, brand_id: int) -> Optional[SyncLogRead]:
        logs = await self.list_sync_logs(brand_id, limit=1)
        return logs[0] if logs else None

    async def list_sync_logs(self, brand_id: int, limit: int = 20) -> List[SyncLogRead]:
        logs = [log for log in self._sync_logs.values() if log.brand_id == brand_id]
        logs.sort(key=lambda log: (log.started_at, log.id), reverse=True)
        return [log.model_copy() for log in logs[:limit]]

    # ------------------------------------------------------------------
    # Price alerts
    # ------------------------------------------------------------------
    async def list_active_alerts(self) -> List[PriceAlertRead]:
        return [a.model_copy() for a in sorted(self._alerts.values(), key=lambda a: a.id) if a.is_active]

    async def touch_alert_notified(self, alert_id: int, timestamp: datetime) -> None:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(f"Price alert {alert_id} not found")
        self._alerts[alert_id] = alert.model_copy(update={"last_notified_at": timestamp})

    async def create_alert(self, alert: PriceAlertCreate) -> PriceAlertRead:
        record = PriceAlertRead(
            id=self._next_id("price_alerts"),
            created_at=utc_now(),
            **alert.model_dump(),
        )
        self._alerts[record.id] = record
        return record.model_copy()

    async def get_alert(self, alert_id: int) -> Optional[PriceAlertRead]:
        alert = self._alerts.get(alert_id)
        return alert.model_copy() if alert else None

    async def list_alerts_for_user(self, user_id: str) -> List[PriceAlertRead]:
        return [a.model_copy() for a in sorted(self._alerts.values(), key=lambda a: a.id) if a.user_id == user_id]

    async def update_alert(self, alert_id: int, changes: PriceAlertUpdate) -> PriceAlertRead:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(f"Price alert {alert_id} not found")
        updated = alert.model_copy(update=changes.model_dump(exclude_unset=True))
        self._alerts[alert_id] = updated
        return updated.model_copy()

    async def delete_alert(self, alert_id: int) -> None:
        if self._alerts.pop(alert_id, None) is None:
            raise AlertNotFoundError(f"Price alert {alert_id} not found")

    # ------------------------------------------------------------------
    # Wishlists
    # ------------------------------------------------------------------
    async def list_wishlists(self, user_id: str) -> List[WishlistRead]:
        return [w.model_copy() for w in sorted(self._wishlists.values(), key=lambda w: w.id) if w.user_id == user_id]

    async def get_wishlist(self, wishlist_id: int) -> Optional[WishlistRead]:
        wishlist = self._wishlists.get(wishlist_id)
        return wishlist.model_copy() if wishlist else None

    async def create_wishlist(self, wishlist: WishlistCreate) -> WishlistRead:
        record = WishlistRead(id=self._next_id("wishlists"), created_at=utc_now(), **wishlist.model_dump())
        self._wishlists[record.id] = record
        return record.model_copy()

    async def list_wishlist_items(self, wishlist_id: int) -> List[WishlistItemRead]:
        return [i.model_copy() for i in sorted(self._wishlist_items.values(), key=lambda i: i.id)
                if i.wishlist_id == wishlist_id]

    async def add_wishlist_item(self, wishlist_id: int, product_id: int) -> WishlistItemRead:
        if wishlist_id not in self._wishlists:
            raise WishlistNotFoundError(f"Wishlist {wishlist_id} not found")
        for item in self._wishlist_items.values():
            if item.wishlist_id == wishlist_id and item.product_id == product_id:
                return item.model_copy()
        record = WishlistItemRead(
            id=self._next_id("wishlist_items"),
            wishlist_id=wishlist_id,
            product_id=product_id,
            added_at=utc_now(),
        )
        self._wishlist_items[record.id] = record
        return record.model_copy()

    async def remove_wishlist_item(self, wishlist_id: int, product_id: int) -> None:
        for item_id, item in list(self._wishlist_items.items()):
            if item.wishlist_id == wishlist_id and item.product_id == product_id:
                del self._wishlist_items[item_id]


def _matches(product: ProductRead, filters: ProductFilters) -> bool:
    if filters.brand_ids and product.brand_id not in filters.brand_ids:
        return False
    if filters.category_ids and product.category_id not in filters.category_ids:
        return False
    if filters.sizes and not set(filters.sizes) & set(product.sizes):
        return False
    if filters.price_min is not None and product.price < filters.price_min:
        return False
    if filters.price_max is not None and product.price > filters.price_max:
        return False
    if filters.in_stock is not None and product.in_stock != filters.in_stock:
        return False
    if filters.search:
        needle = filters.search.lower()
        haystack = f"{product.name} {product.description or ''}".lower()
        if needle not in haystack:
            return False
    return True

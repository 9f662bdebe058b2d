"""
Storage contract shared by the in-memory and relational backends.

Services only ever talk to these interfaces; which implementation backs them is
decided once at startup (see app.services.storage.create_storage).
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Dict, Any, List

from app.core.enums import SyncLogStatus
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


class CatalogStore(ABC):

    @abstractmethod
    async def get_brand(self, brand_id: int) -> Optional[BrandRead]:
        pass

    @abstractmethod
    async def list_brands(self) -> List[BrandRead]:
        pass

    @abstractmethod
    async def create_brand(self, brand: BrandCreate) -> BrandRead:
        pass

    @abstractmethod
    async def update_brand(self, brand_id: int, changes: BrandUpdate) -> BrandRead:
        """Apply the set fields of changes; raises BrandNotFoundError"""
        pass

    @abstractmethod
    async def create_category(self, name: str) -> CategoryRead:
        pass

    @abstractmethod
    async def list_categories(self) -> List[CategoryRead]:
        pass

    @abstractmethod
    async def get_product(self, product_id: int) -> Optional[ProductRead]:
        pass

    @abstractmethod
    async def find_product_by_brand_and_external_id(
        self, brand_id: int, external_id: str
    ) -> Optional[ProductRead]:
        """Exact match on (brand_id, external_id)"""
        pass

    @abstractmethod
    async def create_product(self, draft: ProductDraft, timestamp: Optional[datetime] = None) -> ProductRead:
        """Insert a product; timestamp stamps created_at and last_updated (defaults to now)"""
        pass

    @abstractmethod
    async def update_product(self, product_id: int, changes: Dict[str, Any]) -> ProductRead:
        """Partial update; raises ProductNotFoundError"""
        pass

    @abstractmethod
    async def list_products(self, filters: Optional[ProductFilters] = None) -> ProductPage:
        pass


class SyncLogStore(ABC):

    @abstractmethod
    async def open_sync_log(self, brand_id: int) -> SyncLogRead:
        """Create a log in status 'running' with started_at = now"""
        pass

    @abstractmethod
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
        """Finalise a running log; raises SyncLogStateError if it is already closed"""
        pass

    @abstractmethod
    async def get_latest_sync_log(self, brand_id: int) -> Optional[SyncLogRead]:
        pass

    @abstractmethod
    async def list_sync_logs(self, brand_id: int, limit: int = 20) -> List[SyncLogRead]:
        """Newest first"""
        pass


class AlertStore(ABC):

    @abstractmethod
    async def list_active_alerts(self) -> List[PriceAlertRead]:
        pass

    @abstractmethod
    async def touch_alert_notified(self, alert_id: int, timestamp: datetime) -> None:
        pass

    @abstractmethod
    async def create_alert(self, alert: PriceAlertCreate) -> PriceAlertRead:
        pass

    @abstractmethod
    async def get_alert(self, alert_id: int) -> Optional[PriceAlertRead]:
        pass

    @abstractmethod
    async def list_alerts_for_user(self, user_id: str) -> List[PriceAlertRead]:
        pass

    @abstractmethod
    async def update_alert(self, alert_id: int, changes: PriceAlertUpdate) -> PriceAlertRead:
        pass

    @abstractmethod
    async def delete_alert(self, alert_id: int) -> None:
        pass


class WishlistStore(ABC):

    @abstractmethod
    async def list_wishlists(self, user_id: str) -> List[WishlistRead]:
        pass

    @abstractmethod
    async def get_wishlist(self, wishlist_id: int) -> Optional[WishlistRead]:
        pass

    @abstractmethod
    async def create_wishlist(self, wishlist: WishlistCreate) -> WishlistRead:
        pass

    @abstractmethod
    async def list_wishlist_items(self, wishlist_id: int) -> List[WishlistItemRead]:
        pass

    @abstractmethod
    async def add_wishlist_item(self, wishlist_id: int, product_id: int) -> WishlistItemRead:
        """Adding a product twice returns the existing item"""
        pass

    @abstractmethod
    async def remove_wishlist_item(self, wishlist_id: int, product_id: int) -> None:
        pass


class Storage(CatalogStore, SyncLogStore, AlertStore, WishlistStore):
    """Everything the services need from persistence"""

    async def close(self) -> None:
        pass

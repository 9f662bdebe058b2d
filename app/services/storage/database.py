"""
SQLAlchemy-backed storage.

Each call opens its own short-lived AsyncSession from the injected session
factory and commits before returning, so the services above never see ORM
objects, only schema instances.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List

from pydantic import BaseModel
from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.enums import SyncLogStatus
from app.core.exceptions import (
    AlertNotFoundError,
    BrandNotFoundError,
    ProductNotFoundError,
    SyncLogStateError,
    WishlistNotFoundError,
)
from app.core.utils import model_to_schema, models_to_schemas, page_bounds, utc_now
from app.models import Brand, Category, Product, SyncLog, PriceAlert, Wishlist, WishlistItem
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

logger = logging.getLogger(__name__)


def _to_column_value(value: Any) -> Any:
    """Flatten schema objects and enums into JSON/column friendly values."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_to_column_value(v) for v in value]
    return value


class DatabaseStorage(Storage):

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Brands & categories
    # ------------------------------------------------------------------
    async def get_brand(self, brand_id: int) -> Optional[BrandRead]:
        async with self._session_factory() as session:
            brand = await session.get(Brand, brand_id)
            return await model_to_schema(brand, BrandRead) if brand else None

    async def list_brands(self) -> List[BrandRead]:
        async with self._session_factory() as session:
            result = await session.execute(select(Brand).order_by(Brand.id))
            return await models_to_schemas(result.scalars().all(), BrandRead)

    async def create_brand(self, brand: BrandCreate) -> BrandRead:
        async with self._session_factory() as session:
            record = Brand(**brand.model_dump())
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return await model_to_schema(record, BrandRead)

    async def update_brand(self, brand_id: int, changes: BrandUpdate) -> BrandRead:
        async with self._session_factory() as session:
            brand = await session.get(Brand, brand_id)
            if brand is None:
                raise BrandNotFoundError(f"Brand with ID {brand_id} not found")
            for field, value in changes.model_dump(exclude_unset=True).items():
                setattr(brand, field, value)
            await session.commit()
            await session.refresh(brand)
            return await model_to_schema(brand, BrandRead)

    async def create_category(self, name: str) -> CategoryRead:
        async with self._session_factory() as session:
            record = Category(name=name)
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return await model_to_schema(record, CategoryRead)

    async def list_categories(self) -> List[CategoryRead]:
        async with self._session_factory() as session:
            result = await session.execute(select(Category).order_by(Category.id))
            return await models_to_schemas(result.scalars().all(), CategoryRead)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------
    async def get_product(self, product_id: int) -> Optional[ProductRead]:
        async with self._session_factory() as session:
            product = await session.get(Product, product_id)
            return await model_to_schema(product, ProductRead) if product else None

    async def find_product_by_brand_and_external_id(
        self, brand_id: int, external_id: str
    ) -> Optional[ProductRead]:
        async with self._session_factory() as session:
            stmt = select(Product).where(
                Product.brand_id == brand_id,
                Product.external_id == external_id
            )
            result = await session.execute(stmt)
            product = result.scalar_one_or_none()
            return await model_to_schema(product, ProductRead) if product else None

    async def create_product(self, draft: ProductDraft, timestamp: Optional[datetime] = None) -> ProductRead:
        now = timestamp or utc_now()
        async with self._session_factory() as session:
            record = Product(**draft.model_dump(mode="json"), created_at=now, last_updated=now)
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return await model_to_schema(record, ProductRead)

    async def update_product(self, product_id: int, changes: Dict[str, Any]) -> ProductRead:
        async with self._session_factory() as session:
            product = await session.get(Product, product_id)
            if product is None:
                raise ProductNotFoundError(f"Product with ID {product_id} not found")
            for field, value in changes.items():
                if field in ("id", "created_at"):
                    continue
                setattr(product, field, _to_column_value(value))
            await session.commit()
            await session.refresh(product)
            return await model_to_schema(product, ProductRead)

    async def list_products(self, filters: Optional[ProductFilters] = None) -> ProductPage:
        filters = filters or ProductFilters()
        stmt = select(Product)

        if filters.brand_ids:
            stmt = stmt.where(Product.brand_id.in_(filters.brand_ids))
        if filters.category_ids:
            stmt = stmt.where(Product.category_id.in_(filters.category_ids))
        if filters.price_min is not None:
            stmt = stmt.where(Product.price >= filters.price_min)
        if filters.price_max is not None:
            stmt = stmt.where(Product.price <= filters.price_max)
        if filters.in_stock is not None:
            stmt = stmt.where(Product.in_stock == filters.in_stock)
        if filters.search:
            pattern = f"%{filters.search}%"
            stmt = stmt.where(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        stmt = stmt.order_by(Product.id)

        bounds = page_bounds(filters.page, filters.limit)

        async with self._session_factory() as session:
            if filters.sizes:
                # sizes live in a JSON column; filter them after the SQL pass
                result = await session.execute(stmt)
                wanted = set(filters.sizes)
                rows = [p for p in result.scalars().all() if wanted & set(p.sizes or [])]
                total = len(rows)
                if bounds:
                    rows = rows[bounds["offset"]:bounds["offset"] + bounds["limit"]]
            else:
                total = await session.scalar(select(func.count()).select_from(stmt.subquery()))
                if bounds:
                    stmt = stmt.offset(bounds["offset"]).limit(bounds["limit"])
                result = await session.execute(stmt)
                rows = result.scalars().all()

            return ProductPage(items=await models_to_schemas(rows, ProductRead), total=total or 0)

    # ------------------------------------------------------------------
    # Sync logs
    # ------------------------------------------------------------------
    async def open_sync_log(self, brand_id: int) -> SyncLogRead:
        async with self._session_factory() as session:
            record = SyncLog(
                brand_id=brand_id,
                started_at=utc_now(),
                status=SyncLogStatus.RUNNING.value,
                products_added=0,
                products_updated=0
            )
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return await model_to_schema(record, SyncLogRead)

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
        async with self._session_factory() as session:
            log = await session.get(SyncLog, sync_log_id)
            if log is None:
                raise SyncLogStateError(f"Sync log {sync_log_id} does not exist")
            if log.status != SyncLogStatus.RUNNING.value:
                raise SyncLogStateError(f"Sync log {sync_log_id} is already {log.status}")
            log.status = SyncLogStatus(status).value
            log.products_added = products_added
            log.products_updated = products_updated
            log.error = error
            log.completed_at = completed_at or utc_now()
            await session.commit()
            await session.refresh(log)
            return await model_to_schema(log, SyncLogRead)

    async def get_latest_sync_log(self, brand_id: int) -> Optional[SyncLogRead]:
        logs = await self.list_sync_logs(brand_id, limit=1)
        return logs[0] if logs else None

    async def list_sync_logs(self, brand_id: int, limit: int = 20) -> List[SyncLogRead]:
        async with self._session_factory() as session:
            stmt = (
                select(SyncLog)
                .where(SyncLog.brand_id == brand_id)
                .order_by(SyncLog.started_at.desc(), SyncLog.id.desc())
                .limit(limit)
            )
            result = await session.execute(stmt)
            return await models_to_schemas(result.scalars().all(), SyncLogRead)

    # ------------------------------------------------------------------
    # Price alerts
    # ------------------------------------------------------------------
    async def list_active_alerts(self) -> List[PriceAlertRead]:
        async with self._session_factory() as session:
            stmt = select(PriceAlert).where(PriceAlert.is_active.is_(True)).order_by(PriceAlert.id)
            result = await session.execute(stmt)
            return await models_to_schemas(result.scalars().all(), PriceAlertRead)

    async def touch_alert_notified(self, alert_id: int, timestamp: datetime) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                update(PriceAlert)
                .where(PriceAlert.id == alert_id)
                .values(last_notified_at=timestamp)
            )
            if result.rowcount == 0:
                await session.rollback()
                raise AlertNotFoundError(f"Price alert {alert_id} not found")
            await session.commit()

    async def create_alert(self, alert: PriceAlertCreate) -> PriceAlertRead:
        async with self._session_factory() as session:
            record = PriceAlert(**alert.model_dump(mode="json"), is_active=True)
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return await model_to_schema(record, PriceAlertRead)

    async def get_alert(self, alert_id: int) -> Optional[PriceAlertRead]:
        async with self._session_factory() as session:
            alert = await session.get(PriceAlert, alert_id)
            return await model_to_schema(alert, PriceAlertRead) if alert else None

    async def list_alerts_for_user(self, user_id: str) -> List[PriceAlertRead]:
        async with self._session_factory() as session:
            stmt = select(PriceAlert).where(PriceAlert.user_id == user_id).order_by(PriceAlert.id)
            result = await session.execute(stmt)
            return await models_to_schemas(result.scalars().all(), PriceAlertRead)

    async def update_alert(self, alert_id: int, changes: PriceAlertUpdate) -> PriceAlertRead:
        async with self._session_factory() as session:
            alert = await session.get(PriceAlert, alert_id)
            if alert is None:
                raise AlertNotFoundError(f"Price alert {alert_id} not found")
            for field, value in changes.model_dump(exclude_unset=True).items():
                setattr(alert, field, _to_column_value(value))
            await session.commit()
            await session.refresh(alert)
            return await model_to_schema(alert, PriceAlertRead)

    async def delete_alert(self, alert_id: int) -> None:
        async with self._session_factory() as session:
            result = await session.execute(delete(PriceAlert).where(PriceAlert.id == alert_id))
            if result.rowcount == 0:
                await session.rollback()
                raise AlertNotFoundError(f"Price alert {alert_id} not found")
            await session.commit()

    # ------------------------------------------------------------------
    # Wishlists
    # ------------------------------------------------------------------
    async def list_wishlists(self, user_id: str) -> List[WishlistRead]:
        async with self._session_factory() as session:
            stmt = select(Wishlist).where(Wishlist.user_id == user_id).order_by(Wishlist.id)
            result = await session.execute(stmt)
            return await models_to_schemas(result.scalars().all(), WishlistRead)

    async def get_wishlist(self, wishlist_id: int) -> Optional[WishlistRead]:
        async with self._session_factory() as session:
            wishlist = await session.get(Wishlist, wishlist_id)
            return await model_to_schema(wishlist, WishlistRead) if wishlist else None

    async def create_wishlist(self, wishlist: WishlistCreate) -> WishlistRead:
        async with self._session_factory() as session:
            record = Wishlist(**wishlist.model_dump())
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return await model_to_schema(record, WishlistRead)

    async def list_wishlist_items(self, wishlist_id: int) -> List[WishlistItemRead]:
        async with self._session_factory() as session:
            stmt = select(WishlistItem).where(WishlistItem.wishlist_id == wishlist_id).order_by(WishlistItem.id)
            result = await session.execute(stmt)
            return await models_to_schemas(result.scalars().all(), WishlistItemRead)

    async def add_wishlist_item(self, wishlist_id: int, product_id: int) -> WishlistItemRead:
        async with self._session_factory() as session:
            if await session.get(Wishlist, wishlist_id) is None:
                raise WishlistNotFoundError(f"Wishlist {wishlist_id} not found")
            stmt = select(WishlistItem).where(
                WishlistItem.wishlist_id == wishlist_id,
                WishlistItem.product_id == product_id
            )
            existing = (await session.execute(stmt)).scalar_one_or_none()
            if existing:
                return await model_to_schema(existing, WishlistItemRead)
            record = WishlistItem(wishlist_id=wishlist_id, product_id=product_id)
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return await model_to_schema(record, WishlistItemRead)

    async def remove_wishlist_item(self, wishlist_id: int, product_id: int) -> None:
        async with self._session_factory() as session:
            await session.execute(
                delete(WishlistItem).where(
                    WishlistItem.wishlist_id == wishlist_id,
                    WishlistItem.product_id == product_id
                )
            )
            await session.commit()

    async def close(self) -> None:
        logger.debug("Database storage closed")

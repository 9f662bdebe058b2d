import logging
from dataclasses import dataclass
from typing import Any, Dict

from app.core.config import Settings
from app.core.exceptions import ReconciliationError
from app.core.utils import utc_now
from app.schemas import PriceHistoryEntry, ProductDraft, ProductRead
from app.services.brand_api.base import Clock
from app.services.price_history import merge_price_history, today_in_timezone
from app.services.storage.base import CatalogStore

logger = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"

# Fields copied straight from a fresh draft onto the stored product
SYNCED_FIELDS = (
    "name",
    "description",
    "price",
    "discounted_price",
    "category_id",
    "images",
    "rating",
    "review_count",
    "in_stock",
    "is_new",
    "is_featured",
    "sizes",
    "colors",
    "tags",
    "url",
)


@dataclass
class ReconcileResult:
    action: str  # CREATED or UPDATED
    product: ProductRead


class CatalogReconciler:
    """
    Integrates one freshly fetched product draft into the catalog.

    Drafts are matched to existing products of the same brand by external_id.
    New products start their price history with today's observed price; known
    products are updated in place and have today's price merged into their
    existing history. The observed price is the effective one (the discounted
    price when there is one).
    """

    def __init__(self, catalog: CatalogStore, settings: Settings, clock: Clock = utc_now):
        self.catalog = catalog
        self.settings = settings
        self.clock = clock

    def today(self) -> str:
        return today_in_timezone(self.settings.PRICE_HISTORY_TIMEZONE, self.clock())

    async def reconcile(self, draft: ProductDraft) -> ReconcileResult:
        if not draft.external_id:
            raise ReconciliationError(f"Product '{draft.name}' has no external id", external_id=None)

        try:
            existing = await self.catalog.find_product_by_brand_and_external_id(
                draft.brand_id, draft.external_id
            )
            if existing is None:
                product = await self._create(draft)
                return ReconcileResult(action=CREATED, product=product)

            product = await self._update(existing, draft)
            return ReconcileResult(action=UPDATED, product=product)

        except ReconciliationError:
            raise
        except Exception as e:
            logger.error(f"Failed to reconcile {draft.external_id}: {str(e)}")
            raise ReconciliationError(
                f"Error processing product {draft.name} ({draft.external_id}): {str(e)}",
                external_id=draft.external_id
            ) from e

    async def _create(self, draft: ProductDraft) -> ProductRead:
        history = [PriceHistoryEntry(date=self.today(), price=draft.effective_price)]
        product = await self.catalog.create_product(
            draft.model_copy(update={"price_history": history}),
            timestamp=self.clock(),
        )
        logger.debug(f"Created product {product.id} for {draft.external_id}")
        return product

    async def _update(self, existing: ProductRead, draft: ProductDraft) -> ProductRead:
        changes: Dict[str, Any] = {field: getattr(draft, field) for field in SYNCED_FIELDS}
        changes["price_history"] = merge_price_history(
            existing.price_history,
            draft.effective_price,
            self.today(),
            retention=self.settings.PRICE_HISTORY_RETENTION,
        )
        changes["last_updated"] = self.clock()

        product = await self.catalog.update_product(existing.id, changes)
        logger.debug(f"Updated product {product.id} for {draft.external_id}")
        return product


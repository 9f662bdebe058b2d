"""
Price alert evaluation and management.

An alert fires whenever the product's effective price (discounted price if set,
otherwise price) is at or below the alert's target. Firing stamps
last_notified_at and hands the alert to the notifier; the alert itself stays
active, so it fires again on later evaluations while the price holds.
PRICE_ALERT_RENOTIFY_MINUTES can be set to leave a gap between repeats.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Protocol

from app.core.config import Settings
from app.core.enums import NotificationType
from app.core.exceptions import AlertNotFoundError, ProductNotFoundError
from app.core.utils import utc_now
from app.schemas import (
    AlertCheckResult,
    PriceAlertCreate,
    PriceAlertRead,
    PriceAlertUpdate,
    ProductRead,
)
from app.services.brand_api.base import Clock
from app.services.storage.base import Storage

logger = logging.getLogger(__name__)


class AlertNotifier(Protocol):

    async def send(
        self,
        channel: NotificationType,
        alert: PriceAlertRead,
        product: ProductRead,
        price: float,
    ) -> bool:
        ...


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class PriceAlertService:

    def __init__(
        self,
        storage: Storage,
        notifier: AlertNotifier,
        settings: Settings,
        clock: Clock = utc_now,
    ):
        self.storage = storage
        self.notifier = notifier
        self.settings = settings
        self.clock = clock

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    async def check_price_alerts(self) -> AlertCheckResult:
        result = AlertCheckResult()

        try:
            alerts = await self.storage.list_active_alerts()
        except Exception as e:
            logger.error(f"Error loading active price alerts: {str(e)}")
            result.errors.append(f"Error checking price alerts: {str(e)}")
            return result

        for alert in alerts:
            try:
                if await self._evaluate(alert):
                    result.alerts_triggered += 1
            except Exception as e:
                logger.error(f"Error processing alert {alert.id}: {str(e)}")
                result.errors.append(f"Error processing alert {alert.id}: {str(e)}")

        logger.info(
            f"Price alert check completed: {result.alerts_triggered} alerts triggered, "
            f"{len(result.errors)} errors"
        )
        return result

    async def _evaluate(self, alert: PriceAlertRead) -> bool:
        product = await self.storage.get_product(alert.product_id)
        if product is None:
            raise ProductNotFoundError(f"Product with ID {alert.product_id} not found for alert {alert.id}")

        current_price = product.effective_price
        if current_price > alert.target_price:
            return False

        now = self.clock()
        if self._cooling_down(alert, now):
            logger.debug(f"Alert {alert.id} notified recently; not repeating yet")
            return False

        await self.storage.touch_alert_notified(alert.id, now)
        try:
            delivered = await self.notifier.send(alert.notification_type, alert, product, current_price)
        except Exception as e:
            logger.error(f"Notification for alert {alert.id} failed: {str(e)}")
            delivered = False
        if not delivered:
            logger.warning(f"Alert {alert.id} triggered but the {alert.notification_type.value} notification was not delivered")

        logger.info(
            f"Price alert {alert.id} triggered for product {product.name}: "
            f"£{current_price:.2f} <= £{alert.target_price:.2f} ({alert.notification_type.value})"
        )
        return True

    def _cooling_down(self, alert: PriceAlertRead, now: datetime) -> bool:
        minutes = self.settings.PRICE_ALERT_RENOTIFY_MINUTES
        if minutes <= 0 or alert.last_notified_at is None:
            return False
        return _as_utc(now) - _as_utc(alert.last_notified_at) < timedelta(minutes=minutes)

    # ------------------------------------------------------------------
    # Management
    # ------------------------------------------------------------------
    async def create_alert(self, alert: PriceAlertCreate) -> PriceAlertRead:
        if await self.storage.get_product(alert.product_id) is None:
            raise ProductNotFoundError(f"Product with ID {alert.product_id} not found")
        created = await self.storage.create_alert(alert)
        logger.info(f"Created price alert {created.id} for user {created.user_id} on product {created.product_id}")
        return created

    async def get_alert(self, alert_id: int) -> PriceAlertRead:
        alert = await self.storage.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError(f"Price alert {alert_id} not found")
        return alert

    async def list_alerts(self, user_id: str) -> List[PriceAlertRead]:
        return await self.storage.list_alerts_for_user(user_id)

    async def update_alert(self, alert_id: int, changes: PriceAlertUpdate) -> PriceAlertRead:
        return await self.storage.update_alert(alert_id, changes)

    async def deactivate_alert(self, alert_id: int) -> PriceAlertRead:
        return await self.storage.update_alert(alert_id, PriceAlertUpdate(is_active=False))

    async def delete_alert(self, alert_id: int) -> None:
        await self.storage.delete_alert(alert_id)
        logger.info(f"Deleted price alert {alert_id}")


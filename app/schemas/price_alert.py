from datetime import datetime
from typing import Optional, List

from pydantic import Field

from app.core.enums import NotificationType
from app.schemas.base import BaseSchema


class PriceAlertCreate(BaseSchema):
    user_id: str
    product_id: int
    target_price: float = Field(gt=0)
    notification_type: NotificationType = NotificationType.EMAIL


class PriceAlertUpdate(BaseSchema):
    target_price: Optional[float] = Field(default=None, gt=0)
    is_active: Optional[bool] = None
    notification_type: Optional[NotificationType] = None


class PriceAlertRead(BaseSchema):
    id: int
    user_id: str
    product_id: int
    target_price: float
    is_active: bool = True
    notification_type: NotificationType = NotificationType.EMAIL
    created_at: datetime
    last_notified_at: Optional[datetime] = None


class AlertCheckResult(BaseSchema):
    alerts_triggered: int = 0
    errors: List[str] = []

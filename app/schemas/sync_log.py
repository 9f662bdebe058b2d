from datetime import datetime
from typing import Optional, List

from app.core.enums import SyncLogStatus
from app.schemas.base import BaseSchema


class SyncLogRead(BaseSchema):
    id: int
    brand_id: int
    started_at: datetime
    completed_at: Optional[datetime] = None
    status: SyncLogStatus
    products_added: int = 0
    products_updated: int = 0
    error: Optional[str] = None


class SyncResult(BaseSchema):
    """Summary returned by a single brand sync"""
    products_added: int = 0
    products_updated: int = 0
    errors: List[str] = []

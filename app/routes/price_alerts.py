"""
Price alert endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.exceptions import AlertNotFoundError, ProductNotFoundError
from app.dependencies import get_alert_service, get_storage
from app.schemas import AlertCheckResult, PriceAlertCreate, PriceAlertRead, PriceAlertUpdate
from app.services.price_alert_service import PriceAlertService
from app.services.storage import Storage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/price-alerts", tags=["price-alerts"])


@router.get("")
async def list_price_alerts(
    user_id: str = Query(..., min_length=1),
    alert_service: PriceAlertService = Depends(get_alert_service),
    storage: Storage = Depends(get_storage)
):
    """A user's alerts, each with its product (or null if the product is gone)"""
    alerts = await alert_service.list_alerts(user_id)
    enhanced = []
    for alert in alerts:
        product = await storage.get_product(alert.product_id)
        enhanced.append({**alert.model_dump(mode="json"), "product": product.model_dump(mode="json") if product else None})
    return enhanced


@router.post("", response_model=PriceAlertRead, status_code=201)
async def create_price_alert(
    alert: PriceAlertCreate,
    alert_service: PriceAlertService = Depends(get_alert_service)
):
    try:
        return await alert_service.create_alert(alert)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/check", response_model=AlertCheckResult)
async def check_price_alerts(alert_service: PriceAlertService = Depends(get_alert_service)):
    """Evaluate every active alert now"""
    return await alert_service.check_price_alerts()


@router.patch("/{alert_id}", response_model=PriceAlertRead)
async def update_price_alert(
    alert_id: int,
    changes: PriceAlertUpdate,
    alert_service: PriceAlertService = Depends(get_alert_service)
):
    try:
        return await alert_service.update_alert(alert_id, changes)
    except AlertNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{alert_id}", status_code=204)
async def delete_price_alert(
    alert_id: int,
    alert_service: PriceAlertService = Depends(get_alert_service)
):
    try:
        await alert_service.delete_alert(alert_id)
    except AlertNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

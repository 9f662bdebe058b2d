"""
Service wiring.

build_services() is the single place where storage and the services that use
it are constructed; the FastAPI lifespan and the CLI both call it and own the
resulting objects. Route handlers reach them through the helpers below.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from app.core.config import Settings
from app.services.brand_sync_service import BrandSyncService
from app.services.notification_service import PriceAlertNotifier
from app.services.price_alert_service import PriceAlertService
from app.services.storage import Storage, create_storage
from app.services.wishlist_service import WishlistService


@dataclass
class Services:
    settings: Settings
    storage: Storage
    sync_service: BrandSyncService
    alert_service: PriceAlertService
    wishlist_service: WishlistService


def build_services(settings: Settings, storage: Optional[Storage] = None) -> Services:
    storage = storage or create_storage(settings)
    return Services(
        settings=settings,
        storage=storage,
        sync_service=BrandSyncService(storage, settings),
        alert_service=PriceAlertService(storage, PriceAlertNotifier(settings), settings),
        wishlist_service=WishlistService(storage),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_storage(request: Request) -> Storage:
    return request.app.state.services.storage


def get_sync_service(request: Request) -> BrandSyncService:
    return request.app.state.services.sync_service


def get_alert_service(request: Request) -> PriceAlertService:
    return request.app.state.services.alert_service


def get_wishlist_service(request: Request) -> WishlistService:
    return request.app.state.services.wishlist_service

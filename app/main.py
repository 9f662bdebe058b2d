# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import get_settings
from app.core.enums import StorageBackend
from app.core.logging_config import configure_logging
from app.dependencies import build_services
from app.routes import brand_api, health, price_alerts, products, wishlists
from app.scheduler import create_scheduler, start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    settings = get_settings()

    # Storage and services live for the whole process and are shared by routes and jobs
    services = build_services(settings)
    app.state.services = services

    scheduler = create_scheduler(services.sync_service, services.alert_service, settings)
    start_scheduler(scheduler)
    app.state.scheduler = scheduler

    logger.info(f"Catalog service started ({settings.ENVIRONMENT}, storage={settings.STORAGE_BACKEND})")
    try:
        yield  # This is where the app runs
    finally:
        stop_scheduler(scheduler)
        await services.storage.close()
        if str(settings.STORAGE_BACKEND).lower() == StorageBackend.DATABASE.value:
            from app.database import dispose_engine
            await dispose_engine()


app = FastAPI(
    title="Brand Catalog Service",
    lifespan=lifespan
)

app.include_router(products.router)
app.include_router(brand_api.router)
app.include_router(price_alerts.router)
app.include_router(wishlists.router)
app.include_router(health.router)

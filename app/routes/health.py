from fastapi import APIRouter, Request

from app.scheduler import get_scheduler_status

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request):
    """Basic health check"""
    services = getattr(request.app.state, "services", None)
    return {
        "status": "healthy",
        "service": "Brand Catalog Service",
        "storage": type(services.storage).__name__ if services else None,
    }


@router.get("/health/scheduler")
async def scheduler_health(request: Request):
    """Scheduler status and configured jobs"""
    return get_scheduler_status(getattr(request.app.state, "scheduler", None))

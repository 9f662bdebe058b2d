"""
Scheduled tasks for the catalog service.

Two jobs run inside the FastAPI process:
- a cron-scheduled sync of every brand with an upstream API (SYNC_SCHEDULE)
- an interval-scheduled price alert check (PRICE_ALERT_INTERVAL_MINUTES)

Each is switched on by its own *_ENABLED setting.
"""

import logging
from datetime import datetime
from typing import Any, Dict

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import Settings
from app.services.brand_sync_service import BrandSyncService
from app.services.price_alert_service import PriceAlertService

logger = logging.getLogger(__name__)


async def sync_all_brands_task(sync_service: BrandSyncService):
    """Task to sync every configured brand"""
    try:
        logger.info("=== SCHEDULED BRAND SYNC STARTING ===")
        results = await sync_service.sync_all_brands()

        added = sum(r.products_added for r in results.values())
        updated = sum(r.products_updated for r in results.values())
        failed = [brand_id for brand_id, r in results.items() if r.errors]
        logger.info(
            f"Scheduled sync completed: {len(results)} brands, {added} added, {updated} updated, "
            f"{len(failed)} brands with errors"
        )
    except Exception as e:
        logger.exception(f"Error in scheduled sync task: {str(e)}")


async def check_price_alerts_task(alert_service: PriceAlertService):
    """Task to evaluate active price alerts"""
    try:
        result = await alert_service.check_price_alerts()
        if result.errors:
            logger.error(f"Price alert check errors: {result.errors}")
    except Exception as e:
        logger.exception(f"Error in scheduled price alert check: {str(e)}")


def job_listener(event):
    """Listen to job events for logging"""
    if event.exception:
        logger.error(f"Job {event.job_id} crashed: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now()}")


def create_scheduler(
    sync_service: BrandSyncService,
    alert_service: PriceAlertService,
    settings: Settings,
) -> AsyncIOScheduler:
    """Create and configure the scheduler"""
    scheduler = AsyncIOScheduler()

    # Add job event listeners
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    if settings.SYNC_SCHEDULE_ENABLED:
        scheduler.add_job(
            sync_all_brands_task,
            CronTrigger.from_crontab(settings.SYNC_SCHEDULE),
            args=[sync_service],
            id="sync_all_brands",
            name="Sync All Brands",
            replace_existing=True,
            max_instances=1,  # Only one sync at a time
            misfire_grace_time=3600  # 1 hour grace time
        )
        logger.info(f"Scheduled sync job added with schedule: {settings.SYNC_SCHEDULE}")
    else:
        logger.info("Scheduled sync is disabled. Set SYNC_SCHEDULE_ENABLED=true to enable")

    if settings.PRICE_ALERT_SCHEDULE_ENABLED:
        scheduler.add_job(
            check_price_alerts_task,
            IntervalTrigger(minutes=settings.PRICE_ALERT_INTERVAL_MINUTES),
            args=[alert_service],
            id="check_price_alerts",
            name="Check Price Alerts",
            replace_existing=True,
            max_instances=1
        )
        logger.info(f"Price alert checks scheduled every {settings.PRICE_ALERT_INTERVAL_MINUTES} minutes")
    else:
        logger.info("Scheduled price alert checks are disabled. Set PRICE_ALERT_SCHEDULE_ENABLED=true to enable")

    return scheduler


def start_scheduler(scheduler: AsyncIOScheduler) -> None:
    """Start the scheduler"""
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started successfully")

        # Log all scheduled jobs
        jobs = scheduler.get_jobs()
        if jobs:
            logger.info(f"Active scheduled jobs: {len(jobs)}")
            for job in jobs:
                logger.info(f"  - {job.name}: {job.trigger}")
        else:
            logger.info("No scheduled jobs configured")


def stop_scheduler(scheduler: AsyncIOScheduler) -> None:
    """Stop the scheduler gracefully"""
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped successfully")


def get_scheduler_status(scheduler: AsyncIOScheduler) -> Dict[str, Any]:
    """Get current scheduler status and job information"""
    if scheduler is None:
        return {"status": "not_initialized", "jobs": []}

    jobs_info = []
    for job in scheduler.get_jobs():
        next_run = getattr(job, "next_run_time", None)
        jobs_info.append({
            "id": job.id,
            "name": job.name,
            "next_run": next_run.isoformat() if next_run else None,
            "trigger": str(job.trigger)
        })

    return {
        "status": "running" if scheduler.running else "stopped",
        "jobs": jobs_info
    }

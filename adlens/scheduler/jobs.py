"""AdLens — Scheduler Jobs.

APScheduler daily job that re-syncs from upstream at the configured hour.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from adlens.config import settings
from adlens.sync.orchestrator import DataSyncService, SyncAlreadyRunningError
from adlens.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def daily_sync_job(sync_service: DataSyncService) -> bool:
    """Kick off a full sync unless one is already running."""
    logger.info("Scheduled sync starting...")
    try:
        sync_service.start_sync()
    except SyncAlreadyRunningError:
        logger.info("Scheduled sync skipped: a sync is already in progress")
        return False
    return True


def start_scheduler(sync_service: DataSyncService):
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        daily_sync_job,
        "cron",
        hour=settings.sync_hour,
        minute=0,
        args=[sync_service],
        id="daily_sync",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Daily sync at {settings.sync_hour}:00 UTC")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

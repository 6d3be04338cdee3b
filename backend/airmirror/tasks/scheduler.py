"""Background task scheduler for periodic Airtable syncs."""

import logging
from datetime import UTC, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from airmirror.config import get_settings
from airmirror.database import async_session_maker
from airmirror.services.airtable_client import AirtableClient
from airmirror.services.sync import SyncService

logger = logging.getLogger(__name__)
settings = get_settings()

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def sync_airtable_job() -> None:
    """
    Background job mirroring the whole Airtable base.

    Failed tables are not retried within a run; the next scheduled run is the retry.
    """
    logger.info("Starting scheduled Airtable sync")
    try:
        async with async_session_maker() as db:
            service = SyncService(db, AirtableClient())
            summary = await service.run()
            logger.info(
                f"Scheduled sync complete: {summary.completed_tables}/{summary.total_tables} tables, "
                f"{summary.total_records_added} added, {summary.total_records_updated} updated"
            )
            for table in summary.tables:
                if table.error:
                    logger.warning(f"Table {table.table_name} failed: {table.error}")
    except Exception as e:
        logger.error(f"Scheduled sync failed: {e}", exc_info=True)


def setup_scheduler() -> AsyncIOScheduler:
    """Set up and start the background task scheduler."""
    global scheduler

    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        sync_airtable_job,
        trigger=IntervalTrigger(minutes=settings.sync_interval_minutes),
        next_run_time=datetime.now(UTC) + timedelta(seconds=10),
        id="sync_airtable",
        name="Mirror Airtable base into Postgres",
        replace_existing=True,
        max_instances=1,
    )

    scheduler.start()
    logger.info(f"Scheduler started (sync every {settings.sync_interval_minutes} minutes)")

    return scheduler


def shutdown_scheduler() -> None:
    """Shut down the scheduler gracefully."""
    global scheduler

    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
        scheduler = None

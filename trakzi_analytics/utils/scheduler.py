"""
Scheduler Service
Regenerates the demo record corpus once a day using APScheduler, so dates
relative to "today" stay current.
"""
import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from trakzi_analytics.core.config import settings
from trakzi_analytics.db.fixture import generate_fixture
from trakzi_analytics.db.store import RecordStore, Snapshot, record_store
from trakzi_analytics.utils.cache import SCOPE_ALL, invalidate
from trakzi_analytics.utils.periods import reference_now

logger = logging.getLogger(__name__)

JOB_ID = "regenerate_demo_fixture"

# Scheduler instance (None while stopped)
scheduler: Optional[BackgroundScheduler] = None


def regenerate_fixture(store: Optional[RecordStore] = None) -> Snapshot:
    """Build a fresh corpus, swap it in and tell caches the old bundles are stale."""
    if store is None:
        store = record_store
    tz = settings.reference_tz
    now = reference_now(tz, settings.ALIGN_PERIODS_TO_DAYS)
    snapshot = generate_fixture(store, now, seed=settings.FIXTURE_SEED, days=settings.FIXTURE_DAYS, tz=tz)
    invalidate(SCOPE_ALL)
    return snapshot


def regenerate_fixture_job() -> None:
    """Job function; failures are logged and the previous snapshot keeps serving."""
    logger.info("Executing fixture regeneration job...")
    try:
        snapshot = regenerate_fixture()
        logger.info(f"Fixture regeneration completed (version {snapshot.version})")
    except Exception as e:
        logger.error(f"Error in fixture regeneration job: {str(e)}", exc_info=True)


def start_scheduler() -> None:
    """Start the background scheduler with the daily regeneration job"""
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler is already running")
        return

    scheduler = BackgroundScheduler(timezone=settings.REFERENCE_TIMEZONE)
    scheduler.add_job(
        regenerate_fixture_job,
        trigger=CronTrigger(hour=settings.REGENERATE_FIXTURE_HOUR, minute=0, timezone=settings.REFERENCE_TIMEZONE),
        id=JOB_ID,
        name="Regenerate demo fixture",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started: fixture regenerates daily at {settings.REGENERATE_FIXTURE_HOUR:02d}:00 "
        f"{settings.REFERENCE_TIMEZONE}"
    )


def stop_scheduler() -> None:
    """Stop the background scheduler"""
    global scheduler

    if scheduler is None:
        return

    scheduler.shutdown(wait=False)
    scheduler = None
    logger.info("Scheduler stopped")

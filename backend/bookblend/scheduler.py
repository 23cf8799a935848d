"""
Background scheduler for periodic maintenance.

Uses APScheduler. The only job prunes old blend history once a day when
BLEND_RETENTION_PER_PAIR is set.
"""
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session
from bookblend.core.config import settings
from bookblend.database import SessionLocal
from bookblend.services.blend_cache import prune_blend_history

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = None


def prune_blends_job():
    """
    Scheduled job to trim blend history per user pair.
    Runs every day at 4:00 AM UTC.
    """
    logger.info("Running blend retention job (keep_per_pair=%d)", settings.BLEND_RETENTION_PER_PAIR)

    db: Session = SessionLocal()
    try:
        deleted = prune_blend_history(db, settings.BLEND_RETENTION_PER_PAIR)
        logger.info(f"Blend retention job completed: deleted={deleted}")
    except Exception as e:
        db.rollback()
        logger.exception(f"Blend retention job failed: {e}")
    finally:
        db.close()


def start_scheduler():
    """
    Start the background scheduler if enabled.
    Call this from the FastAPI startup event.
    """
    global scheduler

    if not settings.ENABLE_SCHEDULER or settings.BLEND_RETENTION_PER_PAIR < 1:
        logger.info("Scheduler disabled (ENABLE_SCHEDULER=%s, BLEND_RETENTION_PER_PAIR=%d)",
                    settings.ENABLE_SCHEDULER, settings.BLEND_RETENTION_PER_PAIR)
        return

    if scheduler is not None:
        logger.warning("Scheduler already running")
        return

    logger.info("Starting background scheduler")
    scheduler = BackgroundScheduler()

    scheduler.add_job(
        prune_blends_job,
        trigger=CronTrigger(hour=4, minute=0),
        id='prune_blend_history',
        name='Trim blend history per user pair',
        replace_existing=True
    )

    scheduler.start()
    logger.info("Background scheduler started with blend retention job")


def stop_scheduler():
    """
    Stop the background scheduler.
    Call this from the FastAPI shutdown event.
    """
    global scheduler

    if scheduler is not None:
        logger.info("Stopping background scheduler")
        scheduler.shutdown()
        scheduler = None

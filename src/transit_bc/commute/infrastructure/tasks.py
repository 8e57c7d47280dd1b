import asyncio
import logging

from celery import shared_task

from core.containers import container
from core.database import SessionLocal

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=10)
def check_commute_routes(self):
    """Check today's commute routes and send delay alerts and reminders.

    Used when the API runs without its in-process commute monitor.
    Alert state lives in the worker's monitor instance.
    """
    db = SessionLocal()
    try:
        stats = asyncio.run(container.commute_monitor().check_commute_routes(db))
        logger.info(
            f"Commute check completed: {stats['checked']}/{stats['routes']} routes, "
            f"{stats['alerts']} alerts"
        )
        return stats
    except Exception as e:
        logger.error(f"Commute check failed: {e}")
        raise self.retry(exc=e)
    finally:
        db.close()

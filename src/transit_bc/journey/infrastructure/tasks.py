import asyncio
import logging

from celery import shared_task

from core.containers import container
from core.database import SessionLocal
from src.transit_bc.compensation.infrastructure.services.compensation_evaluator import CompensationEvaluator
from src.transit_bc.journey.infrastructure.services.journey_tracker import JourneyTracker
from src.transit_bc.notification.infrastructure.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

# Completed journeys older than this are not evaluated for compensation
COMPENSATION_LOOKBACK_DAYS = 7


@shared_task(bind=True, max_retries=3, default_retry_delay=10)
def refresh_active_journeys(self):
    """Refresh realtime timings of every planned or active journey.

    Journeys that complete during the refresh are evaluated for compensation.
    Notifications are stored for polling; live delivery belongs to the API process.
    """
    db = SessionLocal()
    try:
        notifications = NotificationService(db)
        tracker = JourneyTracker(
            db,
            container.transit_client(),
            notifications=notifications,
            evaluator=CompensationEvaluator(db, notifications, encryption=container.claim_encryption()),
        )
        refreshed = asyncio.run(tracker.refresh_open_journeys())
        logger.info(f"Journey refresh completed: {refreshed} journeys")
        return {"refreshed": refreshed}
    except Exception as e:
        logger.error(f"Journey refresh failed: {e}")
        raise self.retry(exc=e)
    finally:
        db.close()


@shared_task(bind=True, max_retries=2, default_retry_delay=60)
def detect_compensation_cases(self):
    """Create compensation cases for recent delayed journeys that have none."""
    db = SessionLocal()
    try:
        notifications = NotificationService(db)
        evaluator = CompensationEvaluator(db, notifications, encryption=container.claim_encryption())
        created = evaluator.detect_recent(days=COMPENSATION_LOOKBACK_DAYS)
        logger.info(f"Compensation detection completed: {len(created)} new cases")
        return {"created": len(created)}
    except Exception as e:
        logger.error(f"Compensation detection failed: {e}")
        raise self.retry(exc=e)
    finally:
        db.close()

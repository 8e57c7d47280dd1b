"""FastAPI dependencies that build services around the request session."""

from fastapi import Depends
from sqlalchemy.orm import Session

from core.containers import container
from core.database import get_db
from src.transit_bc.compensation.infrastructure.services.compensation_evaluator import CompensationEvaluator
from src.transit_bc.journey.infrastructure.services.journey_assembler import JourneyAssembler
from src.transit_bc.journey.infrastructure.services.journey_tracker import JourneyTracker
from src.transit_bc.journey.infrastructure.services.transit_client import TransitClient
from src.transit_bc.notification.infrastructure.services.notification_service import NotificationService
from src.transit_bc.stop.infrastructure.services.stop_service import StopService


def get_transit_client() -> TransitClient:
    return container.transit_client()


def get_assembler() -> JourneyAssembler:
    return container.journey_assembler()


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db, broker=container.notification_broker())


def get_evaluator(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
) -> CompensationEvaluator:
    return CompensationEvaluator(db, notifications, encryption=container.claim_encryption())


def get_tracker(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
    evaluator: CompensationEvaluator = Depends(get_evaluator),
) -> JourneyTracker:
    return JourneyTracker(db, container.transit_client(), notifications=notifications, evaluator=evaluator)


def get_stop_service(db: Session = Depends(get_db)) -> StopService:
    return StopService(db, container.transit_client())

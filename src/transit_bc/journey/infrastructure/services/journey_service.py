import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from src.transit_bc.commute.infrastructure.models import CommuteRouteModel
from src.transit_bc.compensation.infrastructure.services.compensation_evaluator import CompensationEvaluator
from src.transit_bc.journey.domain.entities import Itinerary, JourneyStatus
from src.transit_bc.journey.infrastructure.models import JourneyModel, SavedRouteModel
from src.transit_bc.shared.domain.errors import InvalidStatusTransition, NotFound
from src.transit_bc.shared.domain.time_utils import to_db, utcnow

logger = logging.getLogger(__name__)


class JourneyService:
    """Persistence of journeys and saved routes for a user."""

    def __init__(self, db: Session, evaluator: Optional[CompensationEvaluator] = None):
        self.db = db
        self.evaluator = evaluator

    def create_from_itinerary(
        self,
        user_id: str,
        itinerary: Itinerary,
        saved_route_id: Optional[str] = None,
        commute_route_id: Optional[str] = None,
    ) -> JourneyModel:
        """Promote a planned itinerary to a tracked journey."""
        if saved_route_id:
            self.get_saved_route(user_id, saved_route_id)
        if commute_route_id and self.db.query(CommuteRouteModel).filter(
            CommuteRouteModel.id == commute_route_id,
            CommuteRouteModel.user_id == user_id,
        ).first() is None:
            raise NotFound(f"Commute route {commute_route_id} not found")

        journey = JourneyModel(
            user_id=user_id,
            saved_route_id=saved_route_id,
            commute_route_id=commute_route_id,
            origin_area_id=itinerary.from_id,
            destination_area_id=itinerary.to_id,
            planned_departure=to_db(itinerary.planned_departure),
            planned_arrival=to_db(itinerary.planned_arrival),
            expected_departure=to_db(itinerary.expected_departure),
            expected_arrival=to_db(itinerary.expected_arrival),
            delay_minutes=itinerary.delay_minutes,
            status=JourneyStatus.PLANNED,
            legs=[leg.to_dict() for leg in itinerary.legs],
        )
        self.db.add(journey)
        self.db.commit()
        self.db.refresh(journey)
        logger.info(f"Journey {journey.id} created for user {user_id}: {journey.origin_area_id}->{journey.destination_area_id}")
        return journey

    def list_for_user(self, user_id: str, limit: int = 20) -> List[JourneyModel]:
        return self.db.query(JourneyModel).filter(
            JourneyModel.user_id == user_id
        ).order_by(JourneyModel.planned_departure.desc()).limit(limit).all()

    def active_for_user(self, user_id: str) -> List[JourneyModel]:
        return self.db.query(JourneyModel).filter(
            JourneyModel.user_id == user_id,
            JourneyModel.status.in_([JourneyStatus.PLANNED, JourneyStatus.ACTIVE]),
        ).order_by(JourneyModel.planned_departure).all()

    def get(self, user_id: str, journey_id: str) -> JourneyModel:
        journey = self.db.query(JourneyModel).filter(
            JourneyModel.id == journey_id,
            JourneyModel.user_id == user_id,
        ).first()
        if journey is None:
            raise NotFound(f"Journey {journey_id} not found")
        return journey

    def update_status(self, user_id: str, journey_id: str, target: JourneyStatus) -> JourneyModel:
        journey = self.get(user_id, journey_id)
        if not journey.status.can_transition_to(target):
            raise InvalidStatusTransition(
                f"Cannot move journey from {journey.status.value} to {target.value}"
            )
        journey.status = target
        now = utcnow()
        if target == JourneyStatus.ACTIVE and journey.actual_departure is None:
            journey.actual_departure = now
        if target == JourneyStatus.COMPLETED and journey.actual_arrival is None:
            journey.actual_arrival = now
        self.db.commit()
        self.db.refresh(journey)
        if target == JourneyStatus.COMPLETED and self.evaluator is not None:
            self.evaluator.evaluate(journey)
        return journey

    # Saved routes

    def list_saved_routes(self, user_id: str) -> List[SavedRouteModel]:
        return self.db.query(SavedRouteModel).filter(
            SavedRouteModel.user_id == user_id,
            SavedRouteModel.is_active.is_(True),
        ).order_by(SavedRouteModel.created_at.desc()).all()

    def get_saved_route(self, user_id: str, route_id: str) -> SavedRouteModel:
        route = self.db.query(SavedRouteModel).filter(
            SavedRouteModel.id == route_id,
            SavedRouteModel.user_id == user_id,
        ).first()
        if route is None:
            raise NotFound(f"Saved route {route_id} not found")
        return route

    def create_saved_route(self, user_id: str, **fields) -> SavedRouteModel:
        route = SavedRouteModel(user_id=user_id, **fields)
        self.db.add(route)
        self.db.commit()
        self.db.refresh(route)
        return route

    def delete_saved_route(self, user_id: str, route_id: str) -> None:
        route = self.get_saved_route(user_id, route_id)
        self.db.delete(route)
        self.db.commit()

"""Realtime tracking of committed journeys.

The first ride of a journey is matched against Trafiklab's departure board
at its origin. The journey delay is the largest delay of any leg, and the
expected arrival is never earlier than that delay allows.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from src.transit_bc.compensation.infrastructure.services.compensation_evaluator import CompensationEvaluator
from src.transit_bc.journey.domain.entities import Departure, Itinerary, JourneyStatus, TransitLeg
from src.transit_bc.journey.infrastructure.models import JourneyModel
from src.transit_bc.journey.infrastructure.services.transit_client import TransitClient
from src.transit_bc.notification.infrastructure.services.notification_service import NotificationService
from src.transit_bc.shared.domain.errors import TransitError
from src.transit_bc.shared.domain.time_utils import from_db, now_local, to_db

logger = logging.getLogger(__name__)

# Departure boards are only consulted this close to departure
LOOKAHEAD = timedelta(minutes=90)


def match_departure(leg: TransitLeg, departures: List[Departure]) -> Optional[Departure]:
    """The departure of the leg's line at its planned time, if listed."""
    for departure in departures:
        if departure.line.number != leg.line.number:
            continue
        if abs(departure.planned_time - leg.planned_departure) <= timedelta(minutes=1):
            return departure
    return None


class JourneyTracker:
    """Refreshes journey timings and status, notifying on changes."""

    def __init__(
        self,
        db: Session,
        client: TransitClient,
        notifications: Optional[NotificationService] = None,
        evaluator: Optional[CompensationEvaluator] = None,
    ):
        self.db = db
        self.client = client
        self.notifications = notifications
        self.evaluator = evaluator

    async def _observe(self, leg: TransitLeg) -> Optional[Departure]:
        query_time = leg.planned_departure - timedelta(minutes=1)
        try:
            departures = await self.client.get_departures(leg.from_id, query_time)
        except TransitError as e:
            logger.warning(f"Realtime lookup for {leg.from_id} failed: {e.code}")
            return None
        return match_departure(leg, departures)

    async def refresh(self, journey: JourneyModel, now: Optional[datetime] = None) -> JourneyModel:
        if journey.status in (JourneyStatus.COMPLETED, JourneyStatus.CANCELLED):
            return journey

        now = now or now_local()
        itinerary = Itinerary.from_dict({"id": journey.id, "legs": journey.legs})
        transit_legs = itinerary.transit_legs
        previous_delay = journey.delay_minutes or 0
        cancelled = False

        first = transit_legs[0] if transit_legs else None
        if first is not None and journey.status == JourneyStatus.PLANNED and now >= first.planned_departure - LOOKAHEAD:
            observed = await self._observe(first)
            if observed is not None:
                cancelled = observed.cancelled
                first.expected_departure = observed.expected_time
                first.expected_arrival = first.planned_arrival + timedelta(minutes=observed.delay_minutes)
                journey.legs = [leg.to_dict() for leg in itinerary.legs]

        # Journey delay is the worst leg delay; departure only moves with the first ride
        delay = itinerary.delay_minutes
        departure_delay = first.delay_minutes if first is not None else 0
        planned_departure = from_db(journey.planned_departure)
        planned_arrival = from_db(journey.planned_arrival)
        expected_departure = planned_departure + timedelta(minutes=departure_delay)
        expected_arrival = max(itinerary.expected_arrival, planned_arrival + timedelta(minutes=delay))
        journey.delay_minutes = delay
        journey.expected_departure = to_db(expected_departure)
        journey.expected_arrival = to_db(expected_arrival)

        if cancelled:
            journey.status = JourneyStatus.CANCELLED
        elif now >= expected_arrival:
            journey.status = JourneyStatus.COMPLETED
            journey.actual_departure = journey.actual_departure or to_db(expected_departure)
            journey.actual_arrival = to_db(expected_arrival)
        elif now >= expected_departure and journey.status == JourneyStatus.PLANNED:
            journey.status = JourneyStatus.ACTIVE
            journey.actual_departure = to_db(expected_departure)

        self.db.commit()
        self.db.refresh(journey)

        if self.notifications is not None:
            self.notifications.notify_delay_change(
                journey.user_id,
                label=f"{itinerary.legs[0].origin.name or journey.origin_area_id} to {itinerary.legs[-1].destination.name or journey.destination_area_id}",
                previous_delay=previous_delay,
                current_delay=delay,
                is_cancelled=cancelled,
                journey_id=journey.id,
                route_id=journey.commute_route_id,
            )

        if journey.status == JourneyStatus.COMPLETED and self.evaluator is not None:
            self.evaluator.evaluate(journey)

        return journey

    async def refresh_open_journeys(self, now: Optional[datetime] = None) -> int:
        """Refresh every planned or active journey; returns how many were refreshed."""
        journeys = self.db.query(JourneyModel).filter(
            JourneyModel.status.in_([JourneyStatus.PLANNED, JourneyStatus.ACTIVE])
        ).all()
        refreshed = 0
        for journey in journeys:
            try:
                await self.refresh(journey, now)
                refreshed += 1
            except Exception as e:
                self.db.rollback()
                logger.error(f"Refreshing journey {journey.id} failed: {e}")
        return refreshed

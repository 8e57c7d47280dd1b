"""Watches today's commute routes and alerts their owners.

For each route running today, inside the window
[departure - alert_minutes_before, departure]:
- the origin's departure board is checked and the largest delay among
  departures within 30 minutes of the preferred time is tracked,
- a delay alert goes out when that delay changes to a non-zero value,
  and a back-on-time notice when it returns to zero,
- cancelled departures produce a cancellation notice,
- a departure reminder is sent once, at alert time.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from src.transit_bc.commute.infrastructure.models import CommuteRouteModel
from src.transit_bc.commute.infrastructure.services.commute_service import CommuteService
from src.transit_bc.journey.domain.entities import Departure
from src.transit_bc.journey.infrastructure.services.transit_client import TransitClient
from src.transit_bc.notification.domain.entities import NotificationSeverity, NotificationType
from src.transit_bc.notification.infrastructure.services.notification_broker import NotificationBroker
from src.transit_bc.notification.infrastructure.services.notification_service import NotificationService
from src.transit_bc.shared.domain.errors import TransitError
from src.transit_bc.shared.domain.time_utils import STOCKHOLM_TZ, now_local, parse_hhmm

logger = logging.getLogger(__name__)

# Departures this close to the preferred time count for a route
RELEVANT_WINDOW = timedelta(minutes=30)
# The reminder fires on the first check at most this long after alert time
REMINDER_GRACE = timedelta(minutes=1)


@dataclass
class RouteWatch:
    """What has already been announced for one route today."""
    day: date
    departure: datetime
    last_delay: Optional[int] = None
    reminder_sent: bool = False
    cancelled_journeys: Set[str] = field(default_factory=set)


def relevant_departures(departures: List[Departure], preferred: datetime) -> List[Departure]:
    return [d for d in departures if abs(d.planned_time - preferred) <= RELEVANT_WINDOW]


def max_delay(departures: List[Departure]) -> int:
    return max((d.delay_minutes for d in departures if not d.cancelled), default=0)


class CommuteMonitor:
    """Stateful checker; one instance is kept per scheduler or worker."""

    def __init__(self, client: TransitClient, broker: Optional[NotificationBroker] = None):
        self.client = client
        self.broker = broker
        self._watches: Dict[Tuple[str, str], RouteWatch] = {}

    @property
    def watched_routes(self) -> int:
        return len(self._watches)

    def _watch_for(self, route: CommuteRouteModel, departure: datetime) -> RouteWatch:
        key = (route.user_id, route.id)
        watch = self._watches.get(key)
        if watch is None or watch.day != departure.date() or watch.departure != departure:
            watch = RouteWatch(day=departure.date(), departure=departure)
            self._watches[key] = watch
        return watch

    def cleanup(self, now: datetime) -> None:
        """Forget routes whose departure has passed."""
        for key in [k for k, w in self._watches.items() if now > w.departure]:
            del self._watches[key]

    async def check_commute_routes(self, db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
        now = now or now_local()
        notifications = NotificationService(db, broker=self.broker)
        routes = CommuteService(db).routes_for_day(now.date())

        stats = {"routes": len(routes), "checked": 0, "alerts": 0}
        for route in routes:
            try:
                stats["alerts"] += await self._check_route(route, now, notifications)
                stats["checked"] += 1
            except TransitError as e:
                logger.warning(f"Commute route {route.id}: departures unavailable ({e.code})")
            except Exception as e:
                logger.error(f"Commute route {route.id} check failed: {type(e).__name__}: {e}")

        self.cleanup(now)
        return stats

    async def _check_route(
        self,
        route: CommuteRouteModel,
        now: datetime,
        notifications: NotificationService,
    ) -> int:
        if not route.notifications_enabled:
            return 0

        departure = datetime.combine(now.date(), parse_hhmm(route.departure_time), tzinfo=STOCKHOLM_TZ)
        alert_time = departure - timedelta(minutes=route.alert_minutes_before or 15)
        if not (alert_time <= now <= departure):
            return 0

        watch = self._watch_for(route, departure)
        sent = 0

        if not watch.reminder_sent and now - alert_time <= REMINDER_GRACE:
            notifications.emit(
                route.user_id,
                title=f"{route.name} - Departure Alert",
                message=f"Your {route.name} commute departs at {route.departure_time}",
                type=NotificationType.DEPARTURE_REMINDER,
                severity=NotificationSeverity.MEDIUM,
                route_id=route.id,
            )
            sent += 1
        watch.reminder_sent = True

        departures = await self.client.get_departures(route.origin_area_id, now)
        relevant = relevant_departures(departures, departure)
        if not relevant:
            return sent

        for cancelled in (d for d in relevant if d.cancelled and d.journey_id not in watch.cancelled_journeys):
            watch.cancelled_journeys.add(cancelled.journey_id)
            notifications.emit(
                route.user_id,
                title=f"{route.name} - Cancellation",
                message=(
                    f"{cancelled.line.name} towards {cancelled.direction} at "
                    f"{cancelled.planned_time.strftime('%H:%M')} is cancelled."
                ),
                type=NotificationType.CANCELLATION,
                severity=NotificationSeverity.HIGH,
                route_id=route.id,
            )
            sent += 1

        delay = max_delay(relevant)
        if delay == watch.last_delay:
            return sent

        if delay > 0:
            lines = sorted({d.line.number or "Unknown" for d in relevant if d.delay_minutes > 0})
            notifications.emit(
                route.user_id,
                title=f"{route.name} - Delay Alert",
                message=f"{delay} minute delay on {', '.join(lines)}. Monitor for updates.",
                type=NotificationType.DELAY,
                severity=NotificationSeverity.for_delay(delay),
                route_id=route.id,
            )
            sent += 1
        elif watch.last_delay:
            notifications.emit(
                route.user_id,
                title=f"{route.name} - Back on Time",
                message="Your commute is now running on schedule",
                type=NotificationType.DELAY,
                severity=NotificationSeverity.LOW,
                route_id=route.id,
            )
            sent += 1

        watch.last_delay = delay
        return sent

"""Multi-leg journey assembly and per-leg validation.

A journey draft is a chain of user-chosen stops. Each adjacent pair is
validated against ResRobot independently; failures stay attached to their
leg instead of failing the whole request.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Sequence

from src.transit_bc.journey.domain.entities import (
    Itinerary,
    JourneyDraft,
    LegSlotStatus,
    LegValidation,
)
from src.transit_bc.journey.infrastructure.services.transit_client import TransitClient
from src.transit_bc.shared.domain.errors import (
    NoRouteFound,
    TransitError,
    UpstreamRateLimited,
    ValidationFailed,
)
from src.transit_bc.shared.domain.time_utils import STOCKHOLM_TZ, to_local
from src.transit_bc.stop.domain.entities import Stop, StopType

logger = logging.getLogger(__name__)


# Well-connected stops tried when no direct connection exists
HUB_STOPS = [
    Stop(id="740000001", name="Stockholm Central", lat=59.3303, lon=18.0591, type=StopType.RAILWSTN),
    Stop(id="740000003", name="Stockholm Södra", lat=59.3133, lon=18.0628, type=StopType.RAILWSTN),
    Stop(id="740000002", name="Uppsala Central", lat=59.8586, lon=17.6462, type=StopType.RAILWSTN),
]

# Probe hours for leg optimisation: 06:00 to 22:00 every two hours
OPTIMIZE_HOURS = range(6, 23, 2)


class CancellationToken:
    """Signals outstanding leg validations to stop."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass
class PlanResult:
    """Best itinerary and alternatives, or a hub suggestion when none exists."""
    best: Optional[Itinerary] = None
    alternatives: List[Itinerary] = field(default_factory=list)
    suggestion: Optional[JourneyDraft] = None


@dataclass
class LegOption:
    departure: datetime
    arrival: datetime
    duration_minutes: int
    line: Optional[str]
    itinerary: Itinerary


class JourneyAssembler:
    """Validates stop pairs, edits drafts and stitches them into itineraries."""

    def __init__(
        self,
        client: TransitClient,
        window_minutes: int = 120,
        hubs: Optional[Sequence[Stop]] = None,
    ):
        self.client = client
        self.window = timedelta(minutes=window_minutes)
        self.hubs = list(hubs) if hubs is not None else list(HUB_STOPS)

    async def suggest_hub(self, from_stop: Stop, to_stop: Stop, when: datetime) -> Optional[Stop]:
        """First hub reachable from ``from_stop``, probing hubs in order."""
        for hub in self.hubs:
            if hub.id in (from_stop.id, to_stop.id):
                continue
            try:
                await self.client.search_trips(from_stop.id, hub.id, when)
            except UpstreamRateLimited:
                return None
            except TransitError:
                continue
            return hub
        return None

    async def validate_leg(self, from_stop: Stop, to_stop: Stop, when: datetime) -> LegValidation:
        """Check that a trip departs from ``from_stop`` to ``to_stop`` soon after ``when``.

        Never raises for upstream problems: they come back as an invalid
        result carrying the error code.
        """
        when = to_local(when).replace(second=0, microsecond=0)
        try:
            itineraries = await self.client.search_trips(from_stop.id, to_stop.id, when, leave_at=True)
        except NoRouteFound as e:
            hub = await self.suggest_hub(from_stop, to_stop, when)
            reason = f"No connection found from {from_stop.name} to {to_stop.name}"
            if hub:
                reason += f". Try connecting via {hub.name}"
            return LegValidation(valid=False, reason=reason, error_code=e.code, suggested_stop=hub)
        except TransitError as e:
            return LegValidation(valid=False, reason=e.message, error_code=e.code)

        deadline = when + self.window
        for itinerary in itineraries:
            departure = itinerary.expected_departure
            if itinerary.cancelled or departure is None:
                continue
            if when <= departure <= deadline:
                return LegValidation(valid=True, itinerary=itinerary)

        window_minutes = int(self.window.total_seconds() // 60)
        return LegValidation(
            valid=False,
            reason=(
                f"No departure from {from_stop.name} to {to_stop.name} "
                f"within {window_minutes} minutes of {when.strftime('%H:%M')}"
            ),
            error_code="no_departure_in_window",
        )

    async def _validate_slot(self, from_stop: Stop, to_stop: Stop, when: datetime) -> LegValidation:
        try:
            return await self.validate_leg(from_stop, to_stop, when)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Leg validation {from_stop.id}->{to_stop.id} crashed: {type(e).__name__}: {e}")
            return LegValidation(valid=False, reason="Leg could not be validated", error_code="internal_error")

    async def validate_all(
        self,
        draft: JourneyDraft,
        when: datetime,
        token: Optional[CancellationToken] = None,
    ) -> JourneyDraft:
        """Validate every leg concurrently and merge results as they complete.

        Results are applied by leg id; a result whose leg was removed from
        the draft meanwhile is dropped. Cancelling ``token`` stops the
        outstanding validations and leaves their legs pending.
        """
        token = token or CancellationToken()
        pending: Dict[asyncio.Task, str] = {}
        for slot in draft.slots:
            slot.reset()
            task = asyncio.create_task(self._validate_slot(slot.from_stop, slot.to_stop, when))
            pending[task] = slot.id

        cancel_waiter = asyncio.create_task(token.wait())
        try:
            while pending and not token.cancelled:
                done, _ = await asyncio.wait(
                    set(pending) | {cancel_waiter},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                for task in done:
                    if task is cancel_waiter:
                        continue
                    leg_id = pending.pop(task)
                    if not draft.apply_result(leg_id, task.result()):
                        logger.info(f"Discarding validation result for removed leg {leg_id}")
        finally:
            cancel_waiter.cancel()
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                logger.info(f"Leg validation cancelled with {len(pending)} legs outstanding")

        return draft

    def assemble(self, draft: JourneyDraft) -> Itinerary:
        """Stitch the validated legs of a draft into a single itinerary."""
        unresolved = draft.unresolved_leg_ids
        if unresolved:
            raise ValidationFailed("Every leg must be valid before the journey can be assembled", leg_ids=unresolved)

        previous: Optional[Itinerary] = None
        for slot in draft.slots:
            current = slot.itinerary
            if previous is not None and current.expected_departure < previous.expected_arrival:
                slot.apply(LegValidation(
                    valid=False,
                    reason=f"Departs from {slot.from_stop.name} before the previous leg arrives",
                    error_code="missed_connection",
                ))
                raise ValidationFailed("Legs do not connect in time", leg_ids=[slot.id])
            previous = current

        return Itinerary.stitch([slot.itinerary for slot in draft.slots])

    async def plan(
        self,
        origin: Stop,
        destination: Stop,
        when: datetime,
        leave_at: bool = True,
    ) -> PlanResult:
        """Plan a journey; suggests a two-leg draft via a hub when there is no route.

        Raises NoRouteFound when neither a route nor a reachable hub exists.
        """
        try:
            itineraries = await self.client.search_trips(origin.id, destination.id, when, leave_at=leave_at)
        except NoRouteFound:
            hub = await self.suggest_hub(origin, destination, when)
            if hub is None:
                raise NoRouteFound(
                    "No route found. Try adding an intermediate stop such as "
                    + ", ".join(h.name for h in self.hubs)
                )
            logger.info(f"No route {origin.id}->{destination.id}, suggesting via {hub.name}")
            draft = JourneyDraft.from_stops([origin, hub, destination])
            draft.slots[0].apply(await self.validate_leg(origin, hub, when))
            draft.slots[1].reason = "Please validate this connection"
            return PlanResult(suggestion=draft)

        usable = [it for it in itineraries if not it.cancelled] or itineraries
        return PlanResult(best=usable[0], alternatives=usable[1:])

    async def optimize_leg(self, from_id: str, to_id: str, day: date) -> List[LegOption]:
        """Departure options for a leg across the day, queried concurrently."""
        search_times = [datetime.combine(day, time(hour, 0), tzinfo=STOCKHOLM_TZ) for hour in OPTIMIZE_HOURS]
        results = await asyncio.gather(
            *(self.client.search_trips(from_id, to_id, at) for at in search_times),
            return_exceptions=True,
        )

        options: Dict[datetime, LegOption] = {}
        for result in results:
            if isinstance(result, TransitError):
                continue
            if isinstance(result, BaseException):
                raise result
            itinerary = result[0]
            departure = itinerary.planned_departure
            if departure is None or departure in options:
                continue
            options[departure] = LegOption(
                departure=departure,
                arrival=itinerary.planned_arrival,
                duration_minutes=itinerary.duration_minutes,
                line=itinerary.first_line_name,
                itinerary=itinerary,
            )

        logger.info(f"Leg optimisation {from_id}->{to_id} on {day}: {len(options)} options")
        return [options[key] for key in sorted(options)]

    @staticmethod
    def slot_summary(draft: JourneyDraft) -> Dict[str, int]:
        counts = {status.value: 0 for status in LegSlotStatus}
        for slot in draft.slots:
            counts[slot.status.value] += 1
        return counts

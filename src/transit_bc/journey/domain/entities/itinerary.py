import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from src.transit_bc.shared.domain.time_utils import whole_minutes
from .leg import Leg, TransitLeg, WalkLeg, leg_from_dict, leg_from_resrobot_json


def bridge_gaps(legs: List[Leg]) -> List[Leg]:
    """Insert zero-minute transfer walks where consecutive legs do not share a stop id.

    Providers sometimes report a transfer as two rides whose stop ids
    differ (platform-level vs area-level ids).
    """
    bridged: List[Leg] = []
    for leg in legs:
        if bridged and bridged[-1].to_id != leg.from_id:
            bridged.append(WalkLeg.transfer(bridged[-1].destination, leg.origin))
        bridged.append(leg)
    return bridged


@dataclass
class Itinerary:
    """An ordered chain of legs from an origin to a destination.

    Consecutive legs always connect: ``legs[i].to_id == legs[i + 1].from_id``.
    Construction fails with ValueError otherwise. Walk legs without their
    own timestamps are timed from their neighbours.
    """
    legs: List[Leg]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if not self.legs:
            raise ValueError("An itinerary needs at least one leg")
        for i in range(len(self.legs) - 1):
            current, following = self.legs[i], self.legs[i + 1]
            if current.to_id != following.from_id:
                raise ValueError(
                    f"Leg {i} ends at {current.to_id} but leg {i + 1} starts at {following.from_id}"
                )
        self._schedule_walks()

    def _schedule_walks(self) -> None:
        # Forward pass times walks after a timed leg, backward pass handles leading walks
        for i, leg in enumerate(self.legs):
            if isinstance(leg, WalkLeg) and leg.departure is None and i > 0:
                previous = self.legs[i - 1]
                if previous.planned_arrival is not None:
                    leg.schedule_after(previous.planned_arrival)
        for i in range(len(self.legs) - 1, -1, -1):
            leg = self.legs[i]
            if isinstance(leg, WalkLeg) and leg.departure is None and i + 1 < len(self.legs):
                following = self.legs[i + 1]
                if following.planned_departure is not None:
                    leg.schedule_before(following.planned_departure)

    @classmethod
    def from_resrobot_json(cls, trip: dict) -> "Itinerary":
        """Create Itinerary from a ResRobot ``Trip`` element."""
        raw_legs = trip.get("LegList", {}).get("Leg", [])
        if isinstance(raw_legs, dict):
            raw_legs = [raw_legs]
        legs = bridge_gaps([leg_from_resrobot_json(leg) for leg in raw_legs])
        trip_id = trip.get("ctxRecon") or trip.get("idx")
        if trip_id is not None:
            return cls(legs=legs, id=str(trip_id))
        return cls(legs=legs)

    @classmethod
    def stitch(cls, itineraries: List["Itinerary"]) -> "Itinerary":
        """Concatenate per-leg itineraries into one end-to-end itinerary."""
        legs: List[Leg] = []
        for itinerary in itineraries:
            legs.extend(itinerary.legs)
        return cls(legs=bridge_gaps(legs))

    @property
    def from_id(self) -> str:
        return self.legs[0].from_id

    @property
    def to_id(self) -> str:
        return self.legs[-1].to_id

    @property
    def transit_legs(self) -> List[TransitLeg]:
        return [leg for leg in self.legs if isinstance(leg, TransitLeg)]

    @property
    def planned_departure(self) -> Optional[datetime]:
        return self.legs[0].planned_departure

    @property
    def planned_arrival(self) -> Optional[datetime]:
        return self.legs[-1].planned_arrival

    @property
    def expected_departure(self) -> Optional[datetime]:
        return self.legs[0].expected_departure or self.planned_departure

    @property
    def expected_arrival(self) -> Optional[datetime]:
        return self.legs[-1].expected_arrival or self.planned_arrival

    @property
    def delay_minutes(self) -> int:
        """Largest delay of any leg (not the sum)."""
        return max((leg.delay_minutes for leg in self.legs), default=0)

    @property
    def duration_minutes(self) -> int:
        if self.expected_departure is None or self.expected_arrival is None:
            return sum(leg.duration_minutes for leg in self.legs if isinstance(leg, WalkLeg))
        return whole_minutes(self.expected_arrival - self.expected_departure)

    @property
    def cancelled(self) -> bool:
        return any(leg.cancelled for leg in self.transit_legs)

    @property
    def first_line_name(self) -> Optional[str]:
        transit = self.transit_legs
        return transit[0].line.name if transit else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "legs": [leg.to_dict() for leg in self.legs],
            "planned_departure": self.planned_departure.isoformat() if self.planned_departure else None,
            "planned_arrival": self.planned_arrival.isoformat() if self.planned_arrival else None,
            "expected_departure": self.expected_departure.isoformat() if self.expected_departure else None,
            "expected_arrival": self.expected_arrival.isoformat() if self.expected_arrival else None,
            "delay_minutes": self.delay_minutes,
            "duration_minutes": self.duration_minutes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Itinerary":
        legs = [leg_from_dict(leg) for leg in data.get("legs", [])]
        if data.get("id"):
            return cls(legs=legs, id=data["id"])
        return cls(legs=legs)

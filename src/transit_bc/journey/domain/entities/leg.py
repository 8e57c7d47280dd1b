import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import ClassVar, Optional, Union

from src.transit_bc.shared.domain.time_utils import parse_local, parse_iso_local, whole_minutes
from src.transit_bc.stop.domain.entities import Line, TransportMode

_ISO_DURATION = re.compile(r"^P(?:\d+D)?T?(?:(?P<h>\d+)H)?(?:(?P<m>\d+)M)?(?:(?P<s>\d+)S)?$")


def parse_duration_minutes(value: Optional[str]) -> int:
    """Parse a provider ISO-8601 duration such as ``PT1H5M`` into minutes."""
    if not value:
        return 0
    match = _ISO_DURATION.match(value)
    if not match:
        return 0
    hours = int(match.group("h") or 0)
    minutes = int(match.group("m") or 0)
    seconds = int(match.group("s") or 0)
    return hours * 60 + minutes + (1 if seconds >= 30 else 0)


@dataclass
class LegEndpoint:
    """Where a leg starts or ends."""
    id: str
    name: str = ""
    platform: Optional[str] = None

    @classmethod
    def from_resrobot_json(cls, data: dict) -> "LegEndpoint":
        return cls(
            id=str(data.get("extId") or data.get("id") or ""),
            name=data.get("name", ""),
            platform=data.get("rtTrack") or data.get("track"),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "platform": self.platform}


@dataclass
class TransitLeg:
    """A ride on a single line between two stops."""
    kind: ClassVar[str] = "TRANSIT"

    line: Line
    origin: LegEndpoint
    destination: LegEndpoint
    planned_departure: datetime
    planned_arrival: datetime
    expected_departure: Optional[datetime] = None
    expected_arrival: Optional[datetime] = None
    journey_id: Optional[str] = None
    direction: Optional[str] = None
    cancelled: bool = False
    platform_change: bool = False

    @property
    def from_id(self) -> str:
        return self.origin.id

    @property
    def to_id(self) -> str:
        return self.destination.id

    @property
    def delay_minutes(self) -> int:
        """Expected minus planned departure, never negative."""
        if self.expected_departure is None:
            return 0
        return max(0, whole_minutes(self.expected_departure - self.planned_departure))

    @property
    def arrival_delay_minutes(self) -> int:
        if self.expected_arrival is None:
            return 0
        return max(0, whole_minutes(self.expected_arrival - self.planned_arrival))

    @classmethod
    def from_resrobot_json(cls, data: dict) -> "TransitLeg":
        origin = data.get("Origin", {})
        destination = data.get("Destination", {})
        product = data.get("Product") or {}
        if isinstance(product, list):
            product = product[0] if product else {}

        planned_departure = parse_local(origin.get("date"), origin.get("time"))
        planned_arrival = parse_local(destination.get("date"), destination.get("time"))
        if planned_departure is None or planned_arrival is None:
            raise ValueError("Transit leg without planned departure or arrival")

        track = origin.get("track")
        rt_track = origin.get("rtTrack")

        return cls(
            line=Line.from_resrobot_product(product),
            origin=LegEndpoint.from_resrobot_json(origin),
            destination=LegEndpoint.from_resrobot_json(destination),
            planned_departure=planned_departure,
            planned_arrival=planned_arrival,
            expected_departure=parse_local(origin.get("rtDate") or origin.get("date"), origin.get("rtTime")),
            expected_arrival=parse_local(destination.get("rtDate") or destination.get("date"), destination.get("rtTime")),
            journey_id=data.get("JourneyDetailRef", {}).get("ref") or data.get("id"),
            direction=data.get("direction"),
            cancelled=bool(data.get("cancelled", False)),
            platform_change=bool(track and rt_track and track != rt_track),
        )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "line": {
                "id": self.line.id,
                "number": self.line.number,
                "mode": self.line.mode.value,
                "name": self.line.name,
                "operator_id": self.line.operator_id,
                "color": self.line.color,
            },
            "from": self.origin.to_dict(),
            "to": self.destination.to_dict(),
            "planned_departure": self.planned_departure.isoformat(),
            "planned_arrival": self.planned_arrival.isoformat(),
            "expected_departure": self.expected_departure.isoformat() if self.expected_departure else None,
            "expected_arrival": self.expected_arrival.isoformat() if self.expected_arrival else None,
            "journey_id": self.journey_id,
            "direction": self.direction,
            "cancelled": self.cancelled,
            "platform_change": self.platform_change,
            "delay_minutes": self.delay_minutes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TransitLeg":
        line = data.get("line") or {}
        return cls(
            line=Line(
                id=line.get("id", ""),
                number=line.get("number", ""),
                mode=TransportMode(line.get("mode", "BUS")),
                name=line.get("name", ""),
                operator_id=line.get("operator_id"),
                color=line.get("color") or "#666666",
            ),
            origin=LegEndpoint(**data["from"]),
            destination=LegEndpoint(**data["to"]),
            planned_departure=parse_iso_local(data["planned_departure"]),
            planned_arrival=parse_iso_local(data["planned_arrival"]),
            expected_departure=parse_iso_local(data.get("expected_departure")),
            expected_arrival=parse_iso_local(data.get("expected_arrival")),
            journey_id=data.get("journey_id"),
            direction=data.get("direction"),
            cancelled=data.get("cancelled", False),
            platform_change=data.get("platform_change", False),
        )


@dataclass
class WalkLeg:
    """A walk or in-station transfer between two stops."""
    kind: ClassVar[str] = "WALK"

    origin: LegEndpoint
    destination: LegEndpoint
    duration_minutes: int
    meters: Optional[int] = None
    departure: Optional[datetime] = None
    arrival: Optional[datetime] = None

    @property
    def from_id(self) -> str:
        return self.origin.id

    @property
    def to_id(self) -> str:
        return self.destination.id

    @property
    def delay_minutes(self) -> int:
        return 0

    @property
    def planned_departure(self) -> Optional[datetime]:
        return self.departure

    @property
    def expected_departure(self) -> Optional[datetime]:
        return self.departure

    @property
    def planned_arrival(self) -> Optional[datetime]:
        return self.arrival

    @property
    def expected_arrival(self) -> Optional[datetime]:
        return self.arrival

    def schedule_after(self, start: datetime) -> None:
        self.departure = start
        self.arrival = start + timedelta(minutes=self.duration_minutes)

    def schedule_before(self, end: datetime) -> None:
        self.arrival = end
        self.departure = end - timedelta(minutes=self.duration_minutes)

    @classmethod
    def transfer(cls, origin: LegEndpoint, destination: LegEndpoint) -> "WalkLeg":
        """Zero-minute transfer bridging two stop ids at the same place."""
        return cls(origin=origin, destination=destination, duration_minutes=0, meters=0)

    @classmethod
    def from_resrobot_json(cls, data: dict) -> "WalkLeg":
        origin = data.get("Origin", {})
        destination = data.get("Destination", {})
        dist = data.get("dist")
        return cls(
            origin=LegEndpoint.from_resrobot_json(origin),
            destination=LegEndpoint.from_resrobot_json(destination),
            duration_minutes=parse_duration_minutes(data.get("duration")),
            meters=int(dist) if dist is not None else None,
            departure=parse_local(origin.get("date"), origin.get("time")),
            arrival=parse_local(destination.get("date"), destination.get("time")),
        )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "from": self.origin.to_dict(),
            "to": self.destination.to_dict(),
            "duration_minutes": self.duration_minutes,
            "meters": self.meters,
            "departure": self.departure.isoformat() if self.departure else None,
            "arrival": self.arrival.isoformat() if self.arrival else None,
            "delay_minutes": 0,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WalkLeg":
        return cls(
            origin=LegEndpoint(**data["from"]),
            destination=LegEndpoint(**data["to"]),
            duration_minutes=int(data.get("duration_minutes") or 0),
            meters=data.get("meters"),
            departure=parse_iso_local(data.get("departure")),
            arrival=parse_iso_local(data.get("arrival")),
        )


Leg = Union[TransitLeg, WalkLeg]


def leg_from_resrobot_json(data: dict) -> Leg:
    """``JNY`` legs are rides, everything else (WALK, TRSF, GIS) is walked."""
    if data.get("type") == "JNY":
        return TransitLeg.from_resrobot_json(data)
    return WalkLeg.from_resrobot_json(data)


def leg_from_dict(data: dict) -> Leg:
    if data.get("kind") == TransitLeg.kind:
        return TransitLeg.from_dict(data)
    return WalkLeg.from_dict(data)

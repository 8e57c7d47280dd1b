from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from src.transit_bc.shared.domain.time_utils import parse_iso_local, whole_minutes
from src.transit_bc.stop.domain.entities import Line


class DepartureState(Enum):
    EXPECTED = "EXPECTED"
    ATSTOP = "ATSTOP"
    CANCELLED = "CANCELLED"
    ASSIGNED = "ASSIGNED"
    NORMALPROGRESS = "NORMALPROGRESS"


@dataclass
class Departure:
    """A single upcoming departure from a stop."""
    stop_id: str
    line: Line
    journey_id: str
    direction: str
    planned_time: datetime
    expected_time: Optional[datetime]
    state: DepartureState
    platform: Optional[str] = None
    stop_name: Optional[str] = None

    @property
    def delay_minutes(self) -> int:
        if self.expected_time is None:
            return 0
        return max(0, whole_minutes(self.expected_time - self.planned_time))

    @property
    def cancelled(self) -> bool:
        return self.state == DepartureState.CANCELLED

    @classmethod
    def from_trafiklab_json(cls, data: dict, stop_id: str) -> "Departure":
        """Create Departure from a Trafiklab realtime ``departures[]`` element."""
        planned = parse_iso_local(data.get("scheduled"))
        if planned is None:
            raise ValueError("Departure without scheduled time")
        expected = parse_iso_local(data.get("realtime")) or planned

        if data.get("canceled"):
            state = DepartureState.CANCELLED
        elif expected > planned:
            state = DepartureState.EXPECTED
        else:
            state = DepartureState.NORMALPROGRESS

        route = data.get("route", {})
        platform = data.get("realtime_platform") or data.get("scheduled_platform") or {}
        stop = data.get("stop", {})

        return cls(
            stop_id=str(stop.get("id") or stop_id),
            line=Line.from_trafiklab_route(route, data.get("agency")),
            journey_id=str(data.get("trip", {}).get("trip_id", "")),
            direction=route.get("direction") or "",
            planned_time=planned,
            expected_time=expected,
            state=state,
            platform=platform.get("designation"),
            stop_name=stop.get("name"),
        )

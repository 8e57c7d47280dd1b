"""Stop, line and departure schemas."""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel

from src.transit_bc.journey.domain.entities import Departure
from src.transit_bc.stop.domain.entities import Line, Stop, StopType


class StopSchema(BaseModel):
    """A stop as sent by clients and returned by the API."""
    id: str
    name: str = ""
    lat: Optional[float] = None
    lon: Optional[float] = None
    type: str = StopType.OTHER.value

    @classmethod
    def from_entity(cls, stop: Stop) -> "StopSchema":
        return cls(id=stop.id, name=stop.name, lat=stop.lat, lon=stop.lon, type=stop.type.value)

    def to_entity(self) -> Stop:
        try:
            stop_type = StopType(self.type)
        except ValueError:
            stop_type = StopType.OTHER
        return Stop(id=self.id, name=self.name or self.id, lat=self.lat, lon=self.lon, type=stop_type)


class LineResponse(BaseModel):
    id: str
    number: str
    mode: str  # BUS, METRO, TRAIN, TRAM, FERRY
    name: str
    operator_id: Optional[str] = None
    color: str

    @classmethod
    def from_entity(cls, line: Line) -> "LineResponse":
        return cls(
            id=line.id,
            number=line.number,
            mode=line.mode.value,
            name=line.name,
            operator_id=line.operator_id,
            color=line.color,
        )


class DepartureResponse(BaseModel):
    stop_id: str
    stop_name: Optional[str] = None
    line: LineResponse
    journey_id: str
    direction: str
    planned_time: datetime
    expected_time: Optional[datetime]
    delay_minutes: int
    state: str  # EXPECTED, ATSTOP, CANCELLED, ASSIGNED, NORMALPROGRESS
    cancelled: bool
    platform: Optional[str] = None

    @classmethod
    def from_entity(cls, departure: Departure) -> "DepartureResponse":
        return cls(
            stop_id=departure.stop_id,
            stop_name=departure.stop_name,
            line=LineResponse.from_entity(departure.line),
            journey_id=departure.journey_id,
            direction=departure.direction,
            planned_time=departure.planned_time,
            expected_time=departure.expected_time,
            delay_minutes=departure.delay_minutes,
            state=departure.state.value,
            cancelled=departure.cancelled,
            platform=departure.platform,
        )

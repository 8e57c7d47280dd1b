"""Journey planning, leg validation and journey schemas.

Drafts are round-tripped through the client: each request carries the
current legs (with any itinerary already chosen) and gets the edited or
validated draft back.
"""

from typing import Any, Dict, List, Optional
from datetime import date, datetime
from pydantic import BaseModel

from src.transit_bc.journey.domain.entities import (
    Itinerary,
    JourneyDraft,
    JourneyStatus,
    LegSlot,
    LegSlotStatus,
)
from src.transit_bc.journey.infrastructure.models import JourneyModel, SavedRouteModel
from src.transit_bc.journey.infrastructure.services.journey_assembler import JourneyAssembler, LegOption
from src.transit_bc.shared.domain.errors import ValidationFailed
from src.transit_bc.shared.domain.time_utils import from_db
from .stop_schemas import StopSchema


class LegSlotSchema(BaseModel):
    id: Optional[str] = None
    from_stop: StopSchema
    to_stop: StopSchema
    status: str = LegSlotStatus.PENDING.value  # pending, valid, invalid
    reason: Optional[str] = None
    error_code: Optional[str] = None
    itinerary: Optional[Dict[str, Any]] = None
    suggested_stop: Optional[StopSchema] = None

    @classmethod
    def from_entity(cls, slot: LegSlot) -> "LegSlotSchema":
        return cls(
            id=slot.id,
            from_stop=StopSchema.from_entity(slot.from_stop),
            to_stop=StopSchema.from_entity(slot.to_stop),
            status=slot.status.value,
            reason=slot.reason,
            error_code=slot.error_code,
            itinerary=slot.itinerary.to_dict() if slot.itinerary else None,
            suggested_stop=StopSchema.from_entity(slot.suggested_stop) if slot.suggested_stop else None,
        )

    def to_entity(self) -> LegSlot:
        slot = LegSlot(from_stop=self.from_stop.to_entity(), to_stop=self.to_stop.to_entity())
        if self.id:
            slot.id = self.id
        try:
            slot.status = LegSlotStatus(self.status)
        except ValueError:
            slot.status = LegSlotStatus.PENDING
        slot.reason = self.reason
        slot.error_code = self.error_code
        slot.suggested_stop = self.suggested_stop.to_entity() if self.suggested_stop else None
        if self.itinerary:
            slot.itinerary = Itinerary.from_dict(self.itinerary)
        elif slot.status == LegSlotStatus.VALID:
            slot.status = LegSlotStatus.PENDING
        return slot


class DraftSchema(BaseModel):
    """Either the legs of an existing draft, or the stops of a new one."""
    legs: List[LegSlotSchema] = []
    stops: Optional[List[StopSchema]] = None

    def to_entity(self) -> JourneyDraft:
        try:
            if self.legs:
                return JourneyDraft(slots=[leg.to_entity() for leg in self.legs])
            return JourneyDraft.from_stops([stop.to_entity() for stop in self.stops or []])
        except (ValueError, KeyError) as e:
            raise ValidationFailed(f"Invalid journey draft: {e}")


class DraftResponse(BaseModel):
    legs: List[LegSlotSchema]
    stops: List[StopSchema]
    is_valid: bool
    summary: Dict[str, int]
    itinerary: Optional[Dict[str, Any]] = None

    @classmethod
    def from_entity(cls, draft: JourneyDraft, itinerary: Optional[Itinerary] = None) -> "DraftResponse":
        return cls(
            legs=[LegSlotSchema.from_entity(slot) for slot in draft.slots],
            stops=[StopSchema.from_entity(stop) for stop in draft.stops],
            is_valid=draft.is_valid,
            summary=JourneyAssembler.slot_summary(draft),
            itinerary=itinerary.to_dict() if itinerary else None,
        )


class PlanRequest(BaseModel):
    origin: StopSchema
    destination: StopSchema
    day: Optional[str] = None  # weekday name, e.g. "monday"; today when omitted
    time: Optional[str] = None  # HH:MM; now when omitted
    arrive_by: bool = False


class PlanResponse(BaseModel):
    best: Optional[Dict[str, Any]] = None
    alternatives: List[Dict[str, Any]] = []
    suggestion: Optional[DraftResponse] = None


class ValidateLegRequest(BaseModel):
    from_stop: StopSchema
    to_stop: StopSchema
    when: Optional[datetime] = None


class ValidateLegResponse(BaseModel):
    valid: bool
    reason: Optional[str] = None
    error_code: Optional[str] = None
    itinerary: Optional[Dict[str, Any]] = None
    suggested_stop: Optional[StopSchema] = None


class ValidateLegsRequest(BaseModel):
    draft: DraftSchema
    when: Optional[datetime] = None


class InsertStopRequest(BaseModel):
    draft: DraftSchema
    leg_id: str
    stop: StopSchema


class RemoveLegRequest(BaseModel):
    draft: DraftSchema
    leg_id: str


class OptimizeLegRequest(BaseModel):
    from_id: str
    to_id: str
    day: date


class LegOptionResponse(BaseModel):
    departure: datetime
    arrival: Optional[datetime]
    duration_minutes: int
    line: Optional[str]
    itinerary: Dict[str, Any]

    @classmethod
    def from_entity(cls, option: LegOption) -> "LegOptionResponse":
        return cls(
            departure=option.departure,
            arrival=option.arrival,
            duration_minutes=option.duration_minutes,
            line=option.line,
            itinerary=option.itinerary.to_dict(),
        )


class CreateJourneyRequest(BaseModel):
    itinerary: Dict[str, Any]
    saved_route_id: Optional[str] = None
    commute_route_id: Optional[str] = None

    def to_itinerary(self) -> Itinerary:
        try:
            return Itinerary.from_dict(self.itinerary)
        except (ValueError, KeyError, TypeError) as e:
            raise ValidationFailed(f"Invalid itinerary: {e}")


class UpdateJourneyStatusRequest(BaseModel):
    status: JourneyStatus


class JourneyResponse(BaseModel):
    id: str
    saved_route_id: Optional[str]
    commute_route_id: Optional[str]
    origin_area_id: str
    destination_area_id: str
    planned_departure: datetime
    planned_arrival: datetime
    expected_departure: Optional[datetime]
    expected_arrival: Optional[datetime]
    actual_departure: Optional[datetime]
    actual_arrival: Optional[datetime]
    delay_minutes: int
    status: str
    legs: List[Dict[str, Any]]

    @classmethod
    def from_model(cls, journey: JourneyModel) -> "JourneyResponse":
        return cls(
            id=journey.id,
            saved_route_id=journey.saved_route_id,
            commute_route_id=journey.commute_route_id,
            origin_area_id=journey.origin_area_id,
            destination_area_id=journey.destination_area_id,
            planned_departure=from_db(journey.planned_departure),
            planned_arrival=from_db(journey.planned_arrival),
            expected_departure=from_db(journey.expected_departure),
            expected_arrival=from_db(journey.expected_arrival),
            actual_departure=from_db(journey.actual_departure),
            actual_arrival=from_db(journey.actual_arrival),
            delay_minutes=journey.delay_minutes or 0,
            status=journey.status.value,
            legs=journey.legs or [],
        )


class SavedRouteCreate(BaseModel):
    name: str
    origin_area_id: str
    destination_area_id: str
    via_area_id: Optional[str] = None
    preferred_departure_time: Optional[str] = None  # HH:MM


class SavedRouteResponse(BaseModel):
    id: str
    name: str
    origin_area_id: str
    destination_area_id: str
    via_area_id: Optional[str]
    preferred_departure_time: Optional[str]
    is_active: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, route: SavedRouteModel) -> "SavedRouteResponse":
        return cls.model_validate(route)

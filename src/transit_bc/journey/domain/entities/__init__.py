from .leg import LegEndpoint, TransitLeg, WalkLeg, Leg, leg_from_dict, leg_from_resrobot_json, parse_duration_minutes
from .itinerary import Itinerary, bridge_gaps
from .departure import Departure, DepartureState
from .journey import JourneyStatus
from .draft import JourneyDraft, LegSlot, LegSlotStatus, LegValidation

__all__ = [
    "LegEndpoint", "TransitLeg", "WalkLeg", "Leg", "leg_from_dict", "leg_from_resrobot_json",
    "parse_duration_minutes",
    "Itinerary", "bridge_gaps",
    "Departure", "DepartureState",
    "JourneyStatus",
    "JourneyDraft", "LegSlot", "LegSlotStatus", "LegValidation",
]

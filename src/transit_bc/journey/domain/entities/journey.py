from enum import Enum


class JourneyStatus(Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def can_transition_to(self, target: "JourneyStatus") -> bool:
        return target in _JOURNEY_TRANSITIONS[self]


_JOURNEY_TRANSITIONS = {
    JourneyStatus.PLANNED: {JourneyStatus.ACTIVE, JourneyStatus.CANCELLED, JourneyStatus.COMPLETED},
    JourneyStatus.ACTIVE: {JourneyStatus.COMPLETED, JourneyStatus.CANCELLED},
    JourneyStatus.COMPLETED: set(),
    JourneyStatus.CANCELLED: set(),
}

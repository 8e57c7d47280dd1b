import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from src.transit_bc.shared.domain.errors import NotFound
from src.transit_bc.stop.domain.entities import Stop
from .itinerary import Itinerary


class LegSlotStatus(Enum):
    PENDING = "pending"
    VALID = "valid"
    INVALID = "invalid"


def _new_leg_id() -> str:
    return f"leg-{uuid.uuid4().hex[:8]}"


@dataclass
class LegValidation:
    """Outcome of validating one stop pair."""
    valid: bool
    itinerary: Optional[Itinerary] = None
    reason: Optional[str] = None
    error_code: Optional[str] = None
    suggested_stop: Optional[Stop] = None


@dataclass
class LegSlot:
    """One stop pair of a journey draft and its validation state."""
    from_stop: Stop
    to_stop: Stop
    id: str = field(default_factory=_new_leg_id)
    status: LegSlotStatus = LegSlotStatus.PENDING
    reason: Optional[str] = None
    error_code: Optional[str] = None
    itinerary: Optional[Itinerary] = None
    suggested_stop: Optional[Stop] = None

    def apply(self, result: LegValidation) -> None:
        self.status = LegSlotStatus.VALID if result.valid else LegSlotStatus.INVALID
        self.itinerary = result.itinerary if result.valid else None
        self.reason = result.reason
        self.error_code = result.error_code
        self.suggested_stop = result.suggested_stop

    def reset(self) -> None:
        self.status = LegSlotStatus.PENDING
        self.reason = None
        self.error_code = None
        self.itinerary = None
        self.suggested_stop = None


@dataclass
class JourneyDraft:
    """A user-edited chain of stops, one leg slot per adjacent pair.

    Editing keeps the chain connected: each slot ends where the next starts,
    and the first origin and last destination never change through
    ``insert_stop`` or ``remove_leg``.
    """
    slots: List[LegSlot]

    def __post_init__(self):
        if not self.slots:
            raise ValueError("A journey draft needs at least one leg")
        for before, after in zip(self.slots, self.slots[1:]):
            if before.to_stop.id != after.from_stop.id:
                raise ValueError(
                    f"Leg {after.id} starts at {after.from_stop.id} "
                    f"but the previous leg ends at {before.to_stop.id}"
                )

    @classmethod
    def from_stops(cls, stops: List[Stop]) -> "JourneyDraft":
        if len(stops) < 2:
            raise ValueError("A journey draft needs an origin and a destination")
        return cls(slots=[LegSlot(from_stop=a, to_stop=b) for a, b in zip(stops, stops[1:])])

    @property
    def stops(self) -> List[Stop]:
        return [self.slots[0].from_stop] + [slot.to_stop for slot in self.slots]

    @property
    def origin(self) -> Stop:
        return self.slots[0].from_stop

    @property
    def destination(self) -> Stop:
        return self.slots[-1].to_stop

    @property
    def is_valid(self) -> bool:
        return all(slot.status == LegSlotStatus.VALID for slot in self.slots)

    @property
    def unresolved_leg_ids(self) -> List[str]:
        return [slot.id for slot in self.slots if slot.status != LegSlotStatus.VALID]

    def find(self, leg_id: str) -> Optional[LegSlot]:
        for slot in self.slots:
            if slot.id == leg_id:
                return slot
        return None

    def _index(self, leg_id: str) -> int:
        for i, slot in enumerate(self.slots):
            if slot.id == leg_id:
                return i
        raise NotFound(f"Leg {leg_id} is not part of this journey")

    def insert_stop(self, leg_id: str, stop: Stop) -> Tuple[LegSlot, LegSlot]:
        """Split leg X->Y into X->stop and stop->Y. Both new legs are pending."""
        index = self._index(leg_id)
        old = self.slots[index]
        left = LegSlot(from_stop=old.from_stop, to_stop=stop)
        right = LegSlot(from_stop=stop, to_stop=old.to_stop)
        self.slots[index:index + 1] = [left, right]
        return left, right

    def remove_leg(self, leg_id: str) -> LegSlot:
        """Drop the intermediate stop this leg touches and merge its neighbours.

        The stop removed is the leg's end stop, or its start stop for the
        final leg, so the journey's origin and destination survive.
        """
        if len(self.slots) == 1:
            raise ValueError("Cannot remove the only leg of a journey")
        index = self._index(leg_id)
        if index == len(self.slots) - 1:
            index -= 1
        first, second = self.slots[index], self.slots[index + 1]
        merged = LegSlot(from_stop=first.from_stop, to_stop=second.to_stop)
        self.slots[index:index + 2] = [merged]
        return merged

    def apply_result(self, leg_id: str, result: LegValidation) -> bool:
        """Record a validation result; returns False if the leg no longer exists."""
        slot = self.find(leg_id)
        if slot is None:
            return False
        slot.apply(result)
        return True

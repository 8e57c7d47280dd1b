"""Unit tests for journey draft editing."""

import pytest

from src.transit_bc.journey.domain.entities import JourneyDraft, LegSlot, LegSlotStatus, LegValidation
from src.transit_bc.shared.domain.errors import NotFound
from src.transit_bc.stop.domain.entities import Stop

SODERTALJE = Stop(id="740000055", name="Södertälje C")
TUMBA = Stop(id="740000811", name="Tumba")
FLEMINGSBERG = Stop(id="740000031", name="Flemingsberg")
CITY = Stop(id="740001617", name="Stockholm City")


def ids(stops):
    return [stop.id for stop in stops]


class TestDraftConstruction:

    def test_from_stops_creates_one_pending_leg_per_pair(self):
        draft = JourneyDraft.from_stops([SODERTALJE, TUMBA, CITY])

        assert len(draft.slots) == 2
        assert all(slot.status == LegSlotStatus.PENDING for slot in draft.slots)
        assert ids(draft.stops) == ids([SODERTALJE, TUMBA, CITY])

    def test_needs_origin_and_destination(self):
        with pytest.raises(ValueError):
            JourneyDraft.from_stops([SODERTALJE])

    def test_leg_ids_are_unique(self):
        draft = JourneyDraft.from_stops([SODERTALJE, TUMBA, FLEMINGSBERG, CITY])

        assert len({slot.id for slot in draft.slots}) == 3

    def test_disconnected_legs_are_rejected(self):
        with pytest.raises(ValueError) as exc:
            JourneyDraft(slots=[
                LegSlot(from_stop=TUMBA, to_stop=SODERTALJE),
                LegSlot(from_stop=FLEMINGSBERG, to_stop=CITY),
            ])

        assert FLEMINGSBERG.id in str(exc.value)

    def test_connected_legs_are_accepted(self):
        draft = JourneyDraft(slots=[
            LegSlot(from_stop=TUMBA, to_stop=FLEMINGSBERG),
            LegSlot(from_stop=FLEMINGSBERG, to_stop=CITY),
        ])

        assert ids(draft.stops) == ids([TUMBA, FLEMINGSBERG, CITY])


class TestInsertStop:

    def test_splits_leg_and_keeps_endpoints(self):
        draft = JourneyDraft.from_stops([SODERTALJE, CITY])
        leg_id = draft.slots[0].id

        left, right = draft.insert_stop(leg_id, TUMBA)

        assert ids(draft.stops) == ids([SODERTALJE, TUMBA, CITY])
        assert draft.origin.id == SODERTALJE.id
        assert draft.destination.id == CITY.id
        assert left.status == LegSlotStatus.PENDING
        assert right.status == LegSlotStatus.PENDING
        assert draft.find(leg_id) is None

    def test_other_legs_keep_their_state(self):
        draft = JourneyDraft.from_stops([SODERTALJE, TUMBA, CITY])
        first, second = draft.slots
        first.status = LegSlotStatus.VALID

        draft.insert_stop(second.id, FLEMINGSBERG)

        assert draft.slots[0] is first
        assert first.status == LegSlotStatus.VALID

    def test_unknown_leg(self):
        draft = JourneyDraft.from_stops([SODERTALJE, CITY])

        with pytest.raises(NotFound):
            draft.insert_stop("leg-missing", TUMBA)


class TestRemoveLeg:

    def test_removes_end_stop_of_leg(self):
        draft = JourneyDraft.from_stops([SODERTALJE, TUMBA, FLEMINGSBERG, CITY])

        merged = draft.remove_leg(draft.slots[0].id)

        assert ids(draft.stops) == ids([SODERTALJE, FLEMINGSBERG, CITY])
        assert merged.from_stop.id == SODERTALJE.id
        assert merged.to_stop.id == FLEMINGSBERG.id
        assert merged.status == LegSlotStatus.PENDING

    def test_last_leg_removes_its_start_stop(self):
        draft = JourneyDraft.from_stops([SODERTALJE, TUMBA, CITY])

        draft.remove_leg(draft.slots[-1].id)

        assert ids(draft.stops) == ids([SODERTALJE, CITY])

    def test_cannot_remove_only_leg(self):
        draft = JourneyDraft.from_stops([SODERTALJE, CITY])

        with pytest.raises(ValueError):
            draft.remove_leg(draft.slots[0].id)

    def test_chain_stays_connected(self):
        draft = JourneyDraft.from_stops([SODERTALJE, TUMBA, FLEMINGSBERG, CITY])

        draft.remove_leg(draft.slots[1].id)

        for current, following in zip(draft.slots, draft.slots[1:]):
            assert current.to_stop.id == following.from_stop.id


class TestApplyResult:

    def test_result_for_removed_leg_is_dropped(self):
        draft = JourneyDraft.from_stops([SODERTALJE, TUMBA, CITY])
        removed_id = draft.slots[0].id
        draft.remove_leg(removed_id)

        applied = draft.apply_result(removed_id, LegValidation(valid=True))

        assert applied is False
        assert all(slot.status == LegSlotStatus.PENDING for slot in draft.slots)

    def test_invalid_result_keeps_reason_and_code(self):
        draft = JourneyDraft.from_stops([SODERTALJE, CITY])
        leg_id = draft.slots[0].id

        draft.apply_result(leg_id, LegValidation(valid=False, reason="No trains", error_code="no_route_found"))

        slot = draft.find(leg_id)
        assert slot.status == LegSlotStatus.INVALID
        assert slot.error_code == "no_route_found"
        assert draft.is_valid is False
        assert draft.unresolved_leg_ids == [leg_id]

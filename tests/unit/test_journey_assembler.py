"""Unit tests for leg validation and multi-leg journey assembly."""

import asyncio
from datetime import date, datetime

import httpx
import pytest

from src.transit_bc.journey.domain.entities import JourneyDraft, LegSlotStatus
from src.transit_bc.journey.infrastructure.services.journey_assembler import CancellationToken, JourneyAssembler
from src.transit_bc.shared.domain.errors import NoRouteFound, ValidationFailed
from src.transit_bc.shared.domain.time_utils import STOCKHOLM_TZ
from src.transit_bc.stop.domain.entities import Stop

SODERTALJE = ("740000055", "Södertälje C")
TUMBA = ("740000811", "Tumba")
CENTRAL = ("740000001", "Stockholm Central")
UPPSALA = ("740000005", "Uppsala C")


def stop(pair):
    return Stop(id=pair[0], name=pair[1])


def at(hour, minute=0):
    return datetime(2026, 10, 19, hour, minute, tzinfo=STOCKHOLM_TZ)


@pytest.fixture
def assembler(fake_transit):
    return JourneyAssembler(fake_transit.client, window_minutes=120, hubs=[stop(CENTRAL)])


class TestValidateLeg:

    def test_departure_within_window_is_valid(self, assembler, fake_transit, resrobot):
        fake_transit.add_trips(TUMBA[0], CENTRAL[0], resrobot.trip(resrobot.leg(TUMBA, CENTRAL, at(8, 12), at(8, 35), line="40")))

        result = asyncio.run(assembler.validate_leg(stop(TUMBA), stop(CENTRAL), at(8, 0)))

        assert result.valid is True
        assert result.itinerary.planned_departure == at(8, 12)

    def test_naive_time_is_stockholm_local(self, assembler, fake_transit, resrobot):
        fake_transit.add_trips(TUMBA[0], CENTRAL[0], resrobot.trip(resrobot.leg(TUMBA, CENTRAL, at(8, 12), at(8, 35), line="40")))

        result = asyncio.run(assembler.validate_leg(stop(TUMBA), stop(CENTRAL), datetime(2026, 10, 19, 8, 0)))

        assert result.valid is True
        assert fake_transit.requests_to("/trip")[0].url.params["time"] == "08:00"

    def test_departure_after_window_is_invalid(self, assembler, fake_transit, resrobot):
        fake_transit.add_trips(TUMBA[0], CENTRAL[0], resrobot.trip(resrobot.leg(TUMBA, CENTRAL, at(11, 0), at(11, 23))))

        result = asyncio.run(assembler.validate_leg(stop(TUMBA), stop(CENTRAL), at(8, 0)))

        assert result.valid is False
        assert result.error_code == "no_departure_in_window"
        assert "120 minutes" in result.reason

    def test_cancelled_trip_does_not_count(self, assembler, fake_transit, resrobot):
        fake_transit.add_trips(
            TUMBA[0], CENTRAL[0],
            resrobot.trip(resrobot.leg(TUMBA, CENTRAL, at(8, 12), at(8, 35), cancelled=True)),
        )

        result = asyncio.run(assembler.validate_leg(stop(TUMBA), stop(CENTRAL), at(8, 0)))

        assert result.valid is False

    def test_no_route_suggests_reachable_hub(self, assembler, fake_transit, resrobot):
        fake_transit.add_trips(SODERTALJE[0], CENTRAL[0], resrobot.trip(resrobot.leg(SODERTALJE, CENTRAL, at(8, 5), at(8, 45))))

        result = asyncio.run(assembler.validate_leg(stop(SODERTALJE), stop(UPPSALA), at(8, 0)))

        assert result.valid is False
        assert result.error_code == "no_route_found"
        assert result.suggested_stop.id == CENTRAL[0]
        assert "Stockholm Central" in result.reason

    def test_rate_limit_is_reported_not_raised(self, assembler, fake_transit):
        fake_transit.fail_with = httpx.Response(429, json={})

        result = asyncio.run(assembler.validate_leg(stop(TUMBA), stop(CENTRAL), at(8, 0)))

        assert result.valid is False
        assert result.error_code == "upstream_rate_limited"
        assert result.suggested_stop is None


class TestValidateAll:

    def test_each_leg_gets_its_own_status(self, assembler, fake_transit, resrobot):
        fake_transit.add_trips(SODERTALJE[0], TUMBA[0], resrobot.trip(resrobot.leg(SODERTALJE, TUMBA, at(8, 5), at(8, 20), line="40")))
        draft = JourneyDraft.from_stops([stop(SODERTALJE), stop(TUMBA), stop(UPPSALA)])

        asyncio.run(assembler.validate_all(draft, at(8, 0)))

        assert draft.slots[0].status == LegSlotStatus.VALID
        assert draft.slots[1].status == LegSlotStatus.INVALID
        assert draft.slots[1].error_code == "no_route_found"
        assert draft.is_valid is False

    def test_cancellation_leaves_outstanding_legs_pending(self, fake_transit):
        async def slow(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={"Trip": []})

        fake_transit.client._transport = httpx.MockTransport(slow)
        assembler = JourneyAssembler(fake_transit.client, hubs=[])
        draft = JourneyDraft.from_stops([stop(SODERTALJE), stop(TUMBA), stop(CENTRAL)])
        token = CancellationToken()

        async def run():
            asyncio.get_running_loop().call_later(0.05, token.cancel)
            await assembler.validate_all(draft, at(8, 0), token)

        asyncio.run(asyncio.wait_for(run(), timeout=2))

        assert all(slot.status == LegSlotStatus.PENDING for slot in draft.slots)


class TestAssemble:

    def _validated_draft(self, assembler, fake_transit, resrobot, second_departure):
        fake_transit.add_trips(SODERTALJE[0], TUMBA[0], resrobot.trip(resrobot.leg(SODERTALJE, TUMBA, at(8, 5), at(8, 20), line="40")))
        fake_transit.add_trips(TUMBA[0], CENTRAL[0], resrobot.trip(
            resrobot.leg(TUMBA, CENTRAL, second_departure, second_departure.replace(minute=second_departure.minute + 20), line="41")
        ))
        draft = JourneyDraft.from_stops([stop(SODERTALJE), stop(TUMBA), stop(CENTRAL)])
        asyncio.run(assembler.validate_all(draft, at(8, 0)))
        return draft

    def test_stitches_valid_legs(self, assembler, fake_transit, resrobot):
        draft = self._validated_draft(assembler, fake_transit, resrobot, at(8, 25))

        itinerary = assembler.assemble(draft)

        assert itinerary.from_id == SODERTALJE[0]
        assert itinerary.to_id == CENTRAL[0]
        assert itinerary.planned_departure == at(8, 5)
        assert itinerary.planned_arrival == at(8, 45)

    def test_missed_connection_invalidates_leg(self, assembler, fake_transit, resrobot):
        draft = self._validated_draft(assembler, fake_transit, resrobot, at(8, 10))

        with pytest.raises(ValidationFailed) as exc:
            assembler.assemble(draft)

        assert exc.value.leg_ids == [draft.slots[1].id]
        assert draft.slots[1].error_code == "missed_connection"

    def test_pending_legs_block_assembly(self, assembler):
        draft = JourneyDraft.from_stops([stop(SODERTALJE), stop(CENTRAL)])

        with pytest.raises(ValidationFailed) as exc:
            assembler.assemble(draft)

        assert exc.value.leg_ids == [draft.slots[0].id]


class TestPlan:

    def test_direct_route_returns_best_and_alternatives(self, assembler, fake_transit, resrobot):
        fake_transit.add_trips(
            TUMBA[0], CENTRAL[0],
            resrobot.trip(resrobot.leg(TUMBA, CENTRAL, at(8, 12), at(8, 35))),
            resrobot.trip(resrobot.leg(TUMBA, CENTRAL, at(8, 27), at(8, 50))),
        )

        result = asyncio.run(assembler.plan(stop(TUMBA), stop(CENTRAL), at(8, 0)))

        assert result.best.planned_departure == at(8, 12)
        assert len(result.alternatives) == 1
        assert result.suggestion is None

    def test_no_route_suggests_draft_via_hub(self, assembler, fake_transit, resrobot):
        fake_transit.add_trips(SODERTALJE[0], CENTRAL[0], resrobot.trip(resrobot.leg(SODERTALJE, CENTRAL, at(8, 5), at(8, 45))))

        result = asyncio.run(assembler.plan(stop(SODERTALJE), stop(UPPSALA), at(8, 0)))

        draft = result.suggestion
        assert [s.id for s in draft.stops] == [SODERTALJE[0], CENTRAL[0], UPPSALA[0]]
        assert draft.slots[0].status == LegSlotStatus.VALID
        assert draft.slots[1].status == LegSlotStatus.PENDING

    def test_no_route_and_no_hub(self, assembler):
        with pytest.raises(NoRouteFound):
            asyncio.run(assembler.plan(stop(SODERTALJE), stop(UPPSALA), at(8, 0)))


class TestOptimizeLeg:

    def test_options_are_unique_and_sorted(self, assembler, fake_transit, resrobot):
        fake_transit.add_trips(
            TUMBA[0], CENTRAL[0],
            resrobot.trip(resrobot.leg(TUMBA, CENTRAL, at(7, 12), at(7, 35), line="40")),
            resrobot.trip(resrobot.leg(TUMBA, CENTRAL, at(12, 12), at(12, 35), line="40")),
        )

        options = asyncio.run(assembler.optimize_leg(TUMBA[0], CENTRAL[0], date(2026, 10, 19)))

        assert [o.departure for o in options] == [at(7, 12), at(12, 12)]
        assert options[0].duration_minutes == 23
        assert options[0].line == "Länstrafik - Tunnelbana 40"

"""Unit tests for legs and itineraries parsed from ResRobot trips."""

from datetime import datetime, timedelta

import pytest

from src.transit_bc.journey.domain.entities import (
    Itinerary,
    LegEndpoint,
    TransitLeg,
    WalkLeg,
    bridge_gaps,
    parse_duration_minutes,
)
from src.transit_bc.shared.domain.time_utils import STOCKHOLM_TZ
from src.transit_bc.stop.domain.entities import Line, TransportMode

T_CENTRALEN = ("740020749", "T-Centralen")
ODENPLAN = ("740021667", "Odenplan")
ODENPLAN_PENDEL = ("740098000", "Odenplan (pendeltåg)")
UPPSALA = ("740000005", "Uppsala C")


def at(hour, minute=0):
    return datetime(2026, 10, 19, hour, minute, tzinfo=STOCKHOLM_TZ)


def transit_leg(origin, destination, dep, arr, expected_dep=None, line="11"):
    return TransitLeg(
        line=Line(id=line, number=line, mode=TransportMode.METRO, name=f"Tunnelbana {line}"),
        origin=LegEndpoint(*origin),
        destination=LegEndpoint(*destination),
        planned_departure=dep,
        planned_arrival=arr,
        expected_departure=expected_dep,
    )


class TestParseDuration:
    """Tests for ISO-8601 leg durations."""

    def test_hours_and_minutes(self):
        assert parse_duration_minutes("PT1H5M") == 65

    def test_seconds_round_to_nearest_minute(self):
        assert parse_duration_minutes("PT4M30S") == 5
        assert parse_duration_minutes("PT4M10S") == 4

    def test_missing_or_malformed(self):
        assert parse_duration_minutes(None) == 0
        assert parse_duration_minutes("soon") == 0


class TestItineraryFromResRobot:
    """Tests for parsing ResRobot ``Trip`` elements."""

    def test_parses_transit_and_walk_legs(self, resrobot):
        trip = resrobot.trip(
            resrobot.leg(T_CENTRALEN, ODENPLAN, at(8, 0), at(8, 4), rt_departure=at(8, 3)),
            resrobot.walk(ODENPLAN, ODENPLAN_PENDEL, 4),
            resrobot.leg(ODENPLAN_PENDEL, UPPSALA, at(8, 15), at(8, 50), line="40", cat_code="4"),
            trip_id="trip-abc",
        )

        itinerary = Itinerary.from_resrobot_json(trip)

        assert itinerary.id == "trip-abc"
        assert [leg.kind for leg in itinerary.legs] == ["TRANSIT", "WALK", "TRANSIT"]
        first = itinerary.legs[0]
        assert first.line.number == "11"
        assert first.line.mode == TransportMode.METRO
        assert first.delay_minutes == 3
        assert itinerary.legs[2].line.mode == TransportMode.TRAIN
        assert itinerary.from_id == T_CENTRALEN[0]
        assert itinerary.to_id == UPPSALA[0]

    def test_walk_without_times_is_timed_from_previous_leg(self, resrobot):
        trip = resrobot.trip(
            resrobot.leg(T_CENTRALEN, ODENPLAN, at(8, 0), at(8, 4)),
            resrobot.walk(ODENPLAN, ODENPLAN_PENDEL, 4),
            resrobot.leg(ODENPLAN_PENDEL, UPPSALA, at(8, 15), at(8, 50), line="40", cat_code="4"),
        )

        walk = Itinerary.from_resrobot_json(trip).legs[1]

        assert walk.departure == at(8, 4)
        assert walk.arrival == at(8, 8)

    def test_leading_walk_is_timed_before_first_ride(self, resrobot):
        trip = resrobot.trip(
            resrobot.walk(ODENPLAN_PENDEL, ODENPLAN, 3),
            resrobot.leg(ODENPLAN, T_CENTRALEN, at(9, 0), at(9, 4)),
        )

        walk = Itinerary.from_resrobot_json(trip).legs[0]

        assert walk.arrival == at(9, 0)
        assert walk.departure == at(8, 57)

    def test_single_leg_dict_is_accepted(self, resrobot):
        trip = {"LegList": {"Leg": resrobot.leg(T_CENTRALEN, ODENPLAN, at(8, 0), at(8, 4))}}

        itinerary = Itinerary.from_resrobot_json(trip)

        assert len(itinerary.legs) == 1

    def test_platform_change_is_flagged(self, resrobot):
        leg = resrobot.leg(T_CENTRALEN, ODENPLAN, at(8, 0), at(8, 4))
        leg["Origin"]["track"] = "1"
        leg["Origin"]["rtTrack"] = "3"

        parsed = Itinerary.from_resrobot_json(resrobot.trip(leg)).legs[0]

        assert parsed.platform_change is True
        assert parsed.origin.platform == "3"


class TestItineraryInvariants:
    """Consecutive legs must share a stop."""

    def test_disconnected_legs_are_rejected(self):
        with pytest.raises(ValueError):
            Itinerary(legs=[
                transit_leg(T_CENTRALEN, ODENPLAN, at(8, 0), at(8, 4)),
                transit_leg(ODENPLAN_PENDEL, UPPSALA, at(8, 15), at(8, 50)),
            ])

    def test_empty_itinerary_is_rejected(self):
        with pytest.raises(ValueError):
            Itinerary(legs=[])

    def test_bridge_gaps_inserts_zero_minute_transfer(self):
        legs = bridge_gaps([
            transit_leg(T_CENTRALEN, ODENPLAN, at(8, 0), at(8, 4)),
            transit_leg(ODENPLAN_PENDEL, UPPSALA, at(8, 15), at(8, 50), line="40"),
        ])

        assert len(legs) == 3
        transfer = legs[1]
        assert isinstance(transfer, WalkLeg)
        assert transfer.duration_minutes == 0
        assert transfer.from_id == ODENPLAN[0]
        assert transfer.to_id == ODENPLAN_PENDEL[0]
        Itinerary(legs=legs)

    def test_stitch_connects_per_leg_itineraries(self):
        first = Itinerary(legs=[transit_leg(T_CENTRALEN, ODENPLAN, at(8, 0), at(8, 4))])
        second = Itinerary(legs=[transit_leg(ODENPLAN_PENDEL, UPPSALA, at(8, 15), at(8, 50), line="40")])

        stitched = Itinerary.stitch([first, second])

        assert stitched.from_id == T_CENTRALEN[0]
        assert stitched.to_id == UPPSALA[0]
        assert stitched.planned_departure == at(8, 0)
        assert stitched.planned_arrival == at(8, 50)


class TestItineraryTimings:

    def test_delay_is_largest_leg_delay_not_sum(self):
        itinerary = Itinerary(legs=[
            transit_leg(T_CENTRALEN, ODENPLAN, at(8, 0), at(8, 4), expected_dep=at(8, 5)),
            transit_leg(ODENPLAN, UPPSALA, at(8, 15), at(8, 50), expected_dep=at(8, 22), line="40"),
        ])

        assert itinerary.delay_minutes == 7

    def test_early_departure_is_not_negative_delay(self):
        leg = transit_leg(T_CENTRALEN, ODENPLAN, at(8, 0), at(8, 4), expected_dep=at(7, 58))

        assert leg.delay_minutes == 0

    def test_duration_uses_expected_times(self):
        itinerary = Itinerary(legs=[
            transit_leg(T_CENTRALEN, UPPSALA, at(8, 0), at(8, 50), expected_dep=at(8, 0)),
        ])
        itinerary.legs[0].expected_arrival = at(8, 50) + timedelta(minutes=10)

        assert itinerary.duration_minutes == 60

    def test_dict_form_keeps_legs_and_times(self):
        itinerary = Itinerary(legs=[
            transit_leg(T_CENTRALEN, ODENPLAN, at(8, 0), at(8, 4), expected_dep=at(8, 2)),
            WalkLeg(LegEndpoint(*ODENPLAN), LegEndpoint(*ODENPLAN_PENDEL), duration_minutes=4),
        ])

        restored = Itinerary.from_dict(itinerary.to_dict())

        assert restored.id == itinerary.id
        assert [leg.kind for leg in restored.legs] == ["TRANSIT", "WALK"]
        assert restored.legs[0].expected_departure == at(8, 2)
        assert restored.legs[1].departure == at(8, 4)
        assert restored.delay_minutes == 2

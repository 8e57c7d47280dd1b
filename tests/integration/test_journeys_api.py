"""Integration tests for the /journeys endpoints.

Run against the in-memory database with the canned transit provider.
"""

from datetime import datetime, timedelta

import httpx
import pytest

from src.transit_bc.journey.domain.entities import Itinerary
from src.transit_bc.shared.domain.time_utils import STOCKHOLM_TZ, now_local
from src.transit_bc.stop.domain.entities import StopType
from src.transit_bc.stop.infrastructure.models import StopAreaModel

from tests.factories import ResRobot, trafiklab_departure

SODERTALJE = ("740000055", "Södertälje C")
TUMBA = ("740000811", "Tumba")
CENTRAL = ("740000001", "Stockholm Central")
UPPSALA = ("740000005", "Uppsala C")


def stop_json(pair):
    return {"id": pair[0], "name": pair[1]}


def at(hour, minute=0):
    return datetime(2026, 10, 19, hour, minute, tzinfo=STOCKHOLM_TZ)


def itinerary_json(departure, arrival, origin=SODERTALJE, destination=CENTRAL, line="40"):
    trip = ResRobot.trip(ResRobot.leg(origin, destination, departure, arrival, line=line, cat_code="4"))
    return Itinerary.from_resrobot_json(trip).to_dict()


class TestAuthentication:

    def test_requires_bearer_token(self, client, api_base_url):
        """Should return 401 with the error envelope when no token is sent."""
        response = client.get(f"{api_base_url}/journeys")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    def test_rejects_garbage_token(self, client, api_base_url):
        response = client.get(f"{api_base_url}/journeys", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    def test_first_request_registers_user(self, client, api_base_url, make_auth_headers):
        response = client.get(f"{api_base_url}/users/me/settings", headers=make_auth_headers("new-user"))

        assert response.status_code == 200
        assert response.json()["notifications_enabled"] is True


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["commute_monitor"]["running"] is False
        assert "hits" in data["transit_cache"]


class TestPlan:

    def test_direct_route(self, client, api_base_url, auth_headers, fake_transit):
        soon = now_local().replace(second=0, microsecond=0) + timedelta(hours=1)
        fake_transit.add_trips(TUMBA[0], CENTRAL[0], ResRobot.trip(ResRobot.leg(TUMBA, CENTRAL, soon, soon + timedelta(minutes=23))))

        response = client.post(
            f"{api_base_url}/journeys/plan",
            json={"origin": stop_json(TUMBA), "destination": stop_json(CENTRAL)},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["best"]["legs"][0]["from"]["id"] == TUMBA[0]
        assert data["suggestion"] is None

    def test_no_route_suggests_hub(self, client, api_base_url, auth_headers, fake_transit):
        soon = now_local().replace(second=0, microsecond=0) + timedelta(hours=1)
        fake_transit.add_trips(SODERTALJE[0], CENTRAL[0], ResRobot.trip(ResRobot.leg(SODERTALJE, CENTRAL, soon, soon + timedelta(minutes=40))))

        response = client.post(
            f"{api_base_url}/journeys/plan",
            json={"origin": stop_json(SODERTALJE), "destination": stop_json(UPPSALA)},
            headers=auth_headers,
        )

        assert response.status_code == 200
        suggestion = response.json()["suggestion"]
        assert [s["id"] for s in suggestion["stops"]] == [SODERTALJE[0], CENTRAL[0], UPPSALA[0]]
        assert [leg["status"] for leg in suggestion["legs"]] == ["valid", "pending"]

    def test_no_route_at_all(self, client, api_base_url, auth_headers):
        response = client.post(
            f"{api_base_url}/journeys/plan",
            json={"origin": stop_json(SODERTALJE), "destination": stop_json(UPPSALA)},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "no_route_found"

    def test_bad_time(self, client, api_base_url, auth_headers):
        response = client.post(
            f"{api_base_url}/journeys/plan",
            json={"origin": stop_json(TUMBA), "destination": stop_json(CENTRAL), "time": "25:00"},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_failed"

    def test_upstream_quota_is_429(self, client, api_base_url, auth_headers, fake_transit):
        fake_transit.fail_with = httpx.Response(429, json={})

        response = client.post(
            f"{api_base_url}/journeys/plan",
            json={"origin": stop_json(TUMBA), "destination": stop_json(CENTRAL)},
            headers=auth_headers,
        )

        assert response.status_code == 429
        assert response.json()["error"] == "upstream_rate_limited"


class TestDraftValidation:

    def test_validate_legs_assembles_connected_draft(self, client, api_base_url, auth_headers, fake_transit):
        fake_transit.add_trips(SODERTALJE[0], TUMBA[0], ResRobot.trip(ResRobot.leg(SODERTALJE, TUMBA, at(8, 5), at(8, 20))))
        fake_transit.add_trips(TUMBA[0], CENTRAL[0], ResRobot.trip(ResRobot.leg(TUMBA, CENTRAL, at(8, 25), at(8, 45), line="41")))

        response = client.post(
            f"{api_base_url}/journeys/validate-legs",
            json={
                "draft": {"stops": [stop_json(SODERTALJE), stop_json(TUMBA), stop_json(CENTRAL)]},
                "when": at(8, 0).isoformat(),
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_valid"] is True
        assert data["summary"] == {"pending": 0, "valid": 2, "invalid": 0}
        assert data["itinerary"]["legs"][0]["from"]["id"] == SODERTALJE[0]
        assert data["itinerary"]["legs"][-1]["to"]["id"] == CENTRAL[0]

    def test_invalid_leg_keeps_its_reason(self, client, api_base_url, auth_headers, fake_transit):
        fake_transit.add_trips(SODERTALJE[0], TUMBA[0], ResRobot.trip(ResRobot.leg(SODERTALJE, TUMBA, at(8, 5), at(8, 20))))

        response = client.post(
            f"{api_base_url}/journeys/validate-legs",
            json={
                "draft": {"stops": [stop_json(SODERTALJE), stop_json(TUMBA), stop_json(UPPSALA)]},
                "when": at(8, 0).isoformat(),
            },
            headers=auth_headers,
        )

        data = response.json()
        assert data["is_valid"] is False
        assert data["itinerary"] is None
        assert data["legs"][1]["status"] == "invalid"
        assert data["legs"][1]["error_code"] == "no_route_found"

    def test_disconnected_legs_are_rejected(self, client, api_base_url, auth_headers, fake_transit):
        legs = [
            {"from_stop": stop_json(TUMBA), "to_stop": stop_json(SODERTALJE)},
            {"from_stop": stop_json(CENTRAL), "to_stop": stop_json(UPPSALA)},
        ]

        response = client.post(
            f"{api_base_url}/journeys/validate-legs",
            json={"draft": {"legs": legs}, "when": at(8, 0).isoformat()},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_failed"
        assert fake_transit.requests_to("/trip") == []

    def test_validate_single_leg(self, client, api_base_url, auth_headers, fake_transit):
        fake_transit.add_trips(TUMBA[0], CENTRAL[0], ResRobot.trip(ResRobot.leg(TUMBA, CENTRAL, at(8, 25), at(8, 45))))

        response = client.post(
            f"{api_base_url}/journeys/validate-leg",
            json={"from_stop": stop_json(TUMBA), "to_stop": stop_json(CENTRAL), "when": at(8, 0).isoformat()},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["valid"] is True

    def test_insert_stop_splits_leg(self, client, api_base_url, auth_headers):
        draft = {"legs": [{"id": "leg-1", "from_stop": stop_json(SODERTALJE), "to_stop": stop_json(CENTRAL)}]}

        response = client.post(
            f"{api_base_url}/journeys/draft/insert-stop",
            json={"draft": draft, "leg_id": "leg-1", "stop": stop_json(TUMBA)},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert [s["id"] for s in data["stops"]] == [SODERTALJE[0], TUMBA[0], CENTRAL[0]]
        assert all(leg["status"] == "pending" for leg in data["legs"])

    def test_cannot_remove_only_leg(self, client, api_base_url, auth_headers):
        draft = {"legs": [{"id": "leg-1", "from_stop": stop_json(SODERTALJE), "to_stop": stop_json(CENTRAL)}]}

        response = client.post(
            f"{api_base_url}/journeys/draft/remove-leg",
            json={"draft": draft, "leg_id": "leg-1"},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert response.json()["leg_ids"] == ["leg-1"]

    def test_optimize_leg(self, client, api_base_url, auth_headers, fake_transit):
        fake_transit.add_trips(
            TUMBA[0], CENTRAL[0],
            ResRobot.trip(ResRobot.leg(TUMBA, CENTRAL, at(7, 12), at(7, 35))),
            ResRobot.trip(ResRobot.leg(TUMBA, CENTRAL, at(16, 12), at(16, 35))),
        )

        response = client.post(
            f"{api_base_url}/journeys/optimize-leg",
            json={"from_id": TUMBA[0], "to_id": CENTRAL[0], "day": "2026-10-19"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert [o["duration_minutes"] for o in response.json()] == [23, 23]


class TestTrackedJourneys:

    def _create(self, client, api_base_url, auth_headers, departure, arrival):
        response = client.post(
            f"{api_base_url}/journeys",
            json={"itinerary": itinerary_json(departure, arrival)},
            headers=auth_headers,
        )
        assert response.status_code == 201
        return response.json()

    def test_create_and_list(self, client, api_base_url, auth_headers):
        journey = self._create(client, api_base_url, auth_headers, at(8, 5), at(8, 45))

        assert journey["status"] == "planned"
        assert journey["origin_area_id"] == SODERTALJE[0]
        listed = client.get(f"{api_base_url}/journeys", headers=auth_headers).json()
        assert [j["id"] for j in listed] == [journey["id"]]
        active = client.get(f"{api_base_url}/journeys/active", headers=auth_headers).json()
        assert len(active) == 1

    def test_other_users_journey_is_not_found(self, client, api_base_url, auth_headers, make_auth_headers):
        journey = self._create(client, api_base_url, auth_headers, at(8, 5), at(8, 45))

        response = client.get(f"{api_base_url}/journeys/{journey['id']}", headers=make_auth_headers("user-2"))

        assert response.status_code == 404

    def test_invalid_itinerary(self, client, api_base_url, auth_headers):
        response = client.post(f"{api_base_url}/journeys", json={"itinerary": {"legs": []}}, headers=auth_headers)

        assert response.status_code == 422

    def test_status_transitions(self, client, api_base_url, auth_headers):
        journey = self._create(client, api_base_url, auth_headers, at(8, 5), at(8, 45))
        url = f"{api_base_url}/journeys/{journey['id']}/status"

        assert client.patch(url, json={"status": "cancelled"}, headers=auth_headers).status_code == 200
        response = client.patch(url, json={"status": "active"}, headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_status_transition"

    def test_completing_delayed_journey_opens_case(self, client, api_base_url, auth_headers):
        trip = ResRobot.trip(ResRobot.leg(
            SODERTALJE, CENTRAL, at(8, 5), at(8, 45), line="40", cat_code="4",
            rt_departure=at(8, 40), rt_arrival=at(9, 20),
        ))
        journey = client.post(
            f"{api_base_url}/journeys",
            json={"itinerary": Itinerary.from_resrobot_json(trip).to_dict()},
            headers=auth_headers,
        ).json()

        response = client.patch(
            f"{api_base_url}/journeys/{journey['id']}/status",
            json={"status": "completed"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        cases = client.get(f"{api_base_url}/compensation/cases", headers=auth_headers).json()
        assert [c["journey_id"] for c in cases] == [journey["id"]]
        assert cases[0]["delay_minutes"] == 35

    def test_refresh_of_delayed_past_journey_completes_it(self, client, api_base_url, auth_headers, fake_transit):
        """A 35 minute delay on a finished journey should complete it and open a case."""
        departure = now_local().replace(second=0, microsecond=0) - timedelta(hours=3)
        arrival = departure + timedelta(minutes=40)
        journey = self._create(client, api_base_url, auth_headers, departure, arrival)
        fake_transit.departures[SODERTALJE[0]] = [
            trafiklab_departure(SODERTALJE[0], "40", departure, realtime=departure + timedelta(minutes=35), mode="TRAIN"),
        ]

        response = client.post(f"{api_base_url}/journeys/{journey['id']}/refresh", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["delay_minutes"] == 35
        cases = client.get(f"{api_base_url}/compensation/cases", headers=auth_headers).json()
        assert len(cases) == 1
        assert cases[0]["journey_id"] == journey["id"]
        notifications = client.get(f"{api_base_url}/notifications", headers=auth_headers).json()
        assert {n["type"] for n in notifications} == {"delay", "compensation"}

    def test_refresh_without_realtime_match_keeps_schedule(self, client, api_base_url, auth_headers):
        departure = now_local().replace(second=0, microsecond=0) + timedelta(hours=1)
        journey = self._create(client, api_base_url, auth_headers, departure, departure + timedelta(minutes=40))

        data = client.post(f"{api_base_url}/journeys/{journey['id']}/refresh", headers=auth_headers).json()

        assert data["status"] == "planned"
        assert data["delay_minutes"] == 0


class TestStops:

    @pytest.fixture
    def stations(self, db):
        db.add_all([
            StopAreaModel(id=TUMBA[0], name="Tumba", lat=59.1998, lon=17.8363, type=StopType.RAILWSTN),
            StopAreaModel(id="740000812", name="Tullinge", lat=59.2050, lon=17.9030, type=StopType.RAILWSTN),
        ])
        db.commit()

    def test_search_uses_local_stops(self, client, api_base_url, auth_headers, stations, fake_transit):
        response = client.get(f"{api_base_url}/stops/search?q=tum", headers=auth_headers)

        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [TUMBA[0]]
        assert fake_transit.requests_to("/location.name") == []

    def test_search_falls_back_to_provider(self, client, api_base_url, auth_headers, stations, fake_transit):
        fake_transit.locations = [{"extId": UPPSALA[0], "name": "Uppsala C", "lat": 59.858, "lon": 17.646}]

        response = client.get(f"{api_base_url}/stops/search?q=Upps", headers=auth_headers)

        assert [s["name"] for s in response.json()] == ["Uppsala C"]

    def test_search_wildcards_match_literally(self, client, api_base_url, auth_headers, stations, fake_transit):
        fake_transit.locations = [{"extId": UPPSALA[0], "name": "Uppsala C", "lat": 59.858, "lon": 17.646}]

        response = client.get(f"{api_base_url}/stops/search", params={"q": "Tu_"}, headers=auth_headers)

        assert [s["name"] for s in response.json()] == ["Uppsala C"]
        assert len(fake_transit.requests_to("/location.name")) == 1

    def test_search_needs_two_characters(self, client, api_base_url, auth_headers):
        assert client.get(f"{api_base_url}/stops/search?q=T", headers=auth_headers).status_code == 422

    def test_departures(self, client, api_base_url, auth_headers, fake_transit):
        fake_transit.departures[TUMBA[0]] = [
            trafiklab_departure(TUMBA[0], "40", at(7, 42), realtime=at(7, 46), mode="TRAIN"),
        ]

        response = client.get(f"{api_base_url}/stops/{TUMBA[0]}/departures", headers=auth_headers)

        assert response.status_code == 200
        departure = response.json()[0]
        assert departure["delay_minutes"] == 4
        assert departure["line"]["mode"] == "TRAIN"

    def test_departures_time_without_offset_is_local(self, client, api_base_url, auth_headers, fake_transit):
        client.get(f"{api_base_url}/stops/{TUMBA[0]}/departures?when=2026-10-19T08:00", headers=auth_headers)

        request = [r for r in fake_transit.requests if "/departures/" in r.url.path][0]
        assert request.url.path.endswith(f"/departures/{TUMBA[0]}/2026-10-19T08:00")

    def test_departures_provider_down(self, client, api_base_url, auth_headers, fake_transit):
        fake_transit.fail_with = httpx.Response(500, json={})

        response = client.get(f"{api_base_url}/stops/{TUMBA[0]}/departures", headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["error"] == "upstream_unavailable"

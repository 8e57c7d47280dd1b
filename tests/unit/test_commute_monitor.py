"""Unit tests for commute route scheduling and the commute monitor."""

import asyncio
from datetime import date, datetime

import httpx
import pytest

from src.transit_bc.commute.domain.entities import Weekday
from src.transit_bc.commute.infrastructure.services.commute_monitor import CommuteMonitor
from src.transit_bc.commute.infrastructure.services.commute_scheduler import CommuteMonitorScheduler
from src.transit_bc.commute.infrastructure.services.commute_service import CommuteService
from src.transit_bc.notification.domain.entities import NotificationType
from src.transit_bc.notification.infrastructure.models import NotificationModel
from src.transit_bc.shared.domain.time_utils import STOCKHOLM_TZ

from tests.factories import trafiklab_departure

SODERTALJE = "740000055"
MONDAY = date(2026, 10, 19)
SATURDAY = date(2026, 10, 24)


def at(hour, minute=0, day=MONDAY):
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=STOCKHOLM_TZ)


@pytest.fixture
def route(db, user):
    return CommuteService(db).create(
        user.id,
        Weekday.weekdays(),
        name="Work",
        origin_area_id=SODERTALJE,
        origin_name="Södertälje C",
        destination_area_id="740000001",
        destination_name="Stockholm Central",
        departure_time="07:30",
        alert_minutes_before=15,
    )


@pytest.fixture
def monitor(fake_transit):
    return CommuteMonitor(fake_transit.client)


def check(monitor, db, now):
    return asyncio.run(monitor.check_commute_routes(db, now=now))


def notifications(db, type=None):
    query = db.query(NotificationModel)
    if type is not None:
        query = query.filter(NotificationModel.type == type)
    return query.order_by(NotificationModel.created_at).all()


class TestWeekday:

    def test_for_date(self):
        assert Weekday.for_date(MONDAY) == Weekday.MONDAY
        assert Weekday.for_date(SATURDAY) == Weekday.SATURDAY

    def test_names_round_trip(self):
        days = Weekday.from_names(["monday", "Friday"])

        assert int(days) == 17
        assert days.names() == ["monday", "friday"]

    def test_weekdays_bitset(self):
        assert int(Weekday.weekdays()) == 31

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            Weekday.from_names(["funday"])


class TestRoutesForDay:

    def test_weekday_route_runs_monday_not_saturday(self, db, route):
        service = CommuteService(db)

        assert [r.id for r in service.routes_for_day(MONDAY)] == [route.id]
        assert service.routes_for_day(SATURDAY) == []

    def test_inactive_routes_are_skipped(self, db, route):
        CommuteService(db).update(route.user_id, route.id, is_active=False)

        assert CommuteService(db).routes_for_day(MONDAY) == []

    def test_bad_departure_time(self, db, user):
        with pytest.raises(ValueError):
            CommuteService(db).create(
                user.id, Weekday.MONDAY,
                name="Bad", origin_area_id="1", origin_name="A",
                destination_area_id="2", destination_name="B", departure_time="7.30",
            )


class TestCommuteMonitor:

    def test_outside_alert_window_does_nothing(self, monitor, db, route, fake_transit):
        stats = check(monitor, db, at(7, 0))

        assert stats["routes"] == 1
        assert notifications(db) == []
        assert fake_transit.requests_to("/departures") == []

    def test_reminder_sent_once_at_alert_time(self, monitor, db, route, fake_transit):
        fake_transit.departures[SODERTALJE] = [trafiklab_departure(SODERTALJE, "40", at(7, 30))]

        check(monitor, db, at(7, 15))
        check(monitor, db, at(7, 16))

        reminders = notifications(db, NotificationType.DEPARTURE_REMINDER)
        assert len(reminders) == 1
        assert reminders[0].title == "Work - Departure Alert"
        assert reminders[0].related_route_id == route.id

    def test_late_start_skips_reminder(self, monitor, db, route):
        check(monitor, db, at(7, 25))

        assert notifications(db, NotificationType.DEPARTURE_REMINDER) == []

    def test_delay_alerted_once_per_change(self, monitor, db, route, fake_transit):
        fake_transit.departures[SODERTALJE] = [trafiklab_departure(SODERTALJE, "40", at(7, 30))]
        check(monitor, db, at(7, 15))

        fake_transit.departures[SODERTALJE] = [trafiklab_departure(SODERTALJE, "40", at(7, 30), realtime=at(7, 42))]
        check(monitor, db, at(7, 20))
        check(monitor, db, at(7, 21))

        delays = notifications(db, NotificationType.DELAY)
        assert len(delays) == 1
        assert delays[0].title == "Work - Delay Alert"
        assert delays[0].message.startswith("12 minute delay on 40")

        fake_transit.departures[SODERTALJE] = [trafiklab_departure(SODERTALJE, "40", at(7, 30))]
        check(monitor, db, at(7, 22))

        titles = [n.title for n in notifications(db, NotificationType.DELAY)]
        assert titles == ["Work - Delay Alert", "Work - Back on Time"]

    def test_departures_far_from_preferred_time_are_ignored(self, monitor, db, route, fake_transit):
        fake_transit.departures[SODERTALJE] = [
            trafiklab_departure(SODERTALJE, "40", at(8, 30), realtime=at(8, 50)),
        ]

        check(monitor, db, at(7, 20))

        assert notifications(db, NotificationType.DELAY) == []

    def test_cancellation_announced_once(self, monitor, db, route, fake_transit):
        fake_transit.departures[SODERTALJE] = [
            trafiklab_departure(SODERTALJE, "40", at(7, 32), canceled=True, trip_id="t-1"),
        ]

        check(monitor, db, at(7, 20))
        check(monitor, db, at(7, 21))

        cancellations = notifications(db, NotificationType.CANCELLATION)
        assert len(cancellations) == 1
        assert "07:32 is cancelled" in cancellations[0].message

    def test_muted_route_is_skipped(self, monitor, db, route, fake_transit):
        CommuteService(db).update(route.user_id, route.id, notifications_enabled=False)

        stats = check(monitor, db, at(7, 15))

        assert stats["alerts"] == 0
        assert notifications(db) == []

    def test_provider_failure_is_counted_not_raised(self, monitor, db, route, fake_transit):
        fake_transit.fail_with = httpx.Response(503, json={})

        stats = check(monitor, db, at(7, 20))

        assert stats == {"routes": 1, "checked": 0, "alerts": 0}

    def test_passed_routes_are_forgotten(self, monitor, db, route, fake_transit):
        check(monitor, db, at(7, 20))
        assert monitor.watched_routes == 1

        check(monitor, db, at(7, 45))

        assert monitor.watched_routes == 0


class TestScheduler:

    def test_status_before_start(self):
        scheduler = CommuteMonitorScheduler(monitor_factory=lambda: None)

        status = scheduler.status

        assert status["running"] is False
        assert status["check_count"] == 0
        assert status["interval_seconds"] == CommuteMonitorScheduler.CHECK_INTERVAL

    def test_run_once_records_stats(self, monitor):
        scheduler = CommuteMonitorScheduler(monitor_factory=lambda: monitor)

        stats = asyncio.run(scheduler.run_once())

        assert stats["routes"] >= 0
        assert scheduler.status["check_count"] == 1
        assert scheduler.status["last_check"] is not None

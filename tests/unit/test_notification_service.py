"""Unit tests for notification storage, de-duplication and live fan-out."""

import asyncio

import pytest

from src.transit_bc.notification.domain.entities import NotificationSeverity, NotificationType
from src.transit_bc.notification.infrastructure.models import NotificationModel
from src.transit_bc.notification.infrastructure.services.notification_broker import NotificationBroker
from src.transit_bc.notification.infrastructure.services.notification_service import NotificationService
from src.transit_bc.shared.domain.errors import NotFound


@pytest.fixture
def service(db, user):
    return NotificationService(db, dedup_seconds=300)


def emit_delay(service, message="Line 40 is delayed by 8 minutes", **kwargs):
    return service.emit("user-1", "Delay", message, NotificationType.DELAY, **kwargs)


class TestEmit:

    def test_stores_notification(self, service, db):
        row = emit_delay(service, severity=NotificationSeverity.HIGH, route_id="route-1")

        assert row.id is not None
        assert row.is_read is False
        assert db.query(NotificationModel).count() == 1

    def test_identical_notification_is_suppressed(self, service, db):
        emit_delay(service)

        assert emit_delay(service) is None
        assert db.query(NotificationModel).count() == 1

    def test_different_message_is_not_suppressed(self, service, db):
        emit_delay(service)
        emit_delay(service, message="Line 40 is delayed by 12 minutes")

        assert db.query(NotificationModel).count() == 2

    def test_different_route_is_not_suppressed(self, service, db):
        emit_delay(service, route_id="route-1")
        emit_delay(service, route_id="route-2")

        assert db.query(NotificationModel).count() == 2

    def test_force_bypasses_dedup(self, service, db):
        emit_delay(service)

        assert emit_delay(service, force=True) is not None

    def test_zero_window_disables_dedup(self, db, user):
        service = NotificationService(db, dedup_seconds=0)
        emit_delay(service)
        emit_delay(service)

        assert db.query(NotificationModel).count() == 2

    def test_user_opt_out(self, service, db, user):
        user.notifications_enabled = False
        db.commit()

        assert emit_delay(service) is None

    def test_delay_alerts_disabled_still_allows_other_types(self, service, db, user):
        user.delay_alerts_enabled = False
        db.commit()

        assert emit_delay(service) is None
        assert service.emit("user-1", "Cancelled", "Line 40 cancelled", NotificationType.CANCELLATION) is not None


class TestDelayChange:

    def test_cancellation_wins(self, service):
        row = service.notify_delay_change("user-1", "Tumba → City", 0, 5, was_cancelled=False, is_cancelled=True)

        assert row.type == NotificationType.CANCELLATION
        assert row.severity == NotificationSeverity.HIGH

    def test_increase_is_notified_with_severity(self, service):
        row = service.notify_delay_change("user-1", "Tumba → City", 3, 12)

        assert row.type == NotificationType.DELAY
        assert row.title == "Delay: 12 min"
        assert row.severity == NotificationSeverity.HIGH

    def test_decrease_is_silent(self, service):
        assert service.notify_delay_change("user-1", "Tumba → City", 12, 4) is None

    def test_repeated_cancellation_is_silent(self, service):
        assert service.notify_delay_change("user-1", "x", 0, 0, was_cancelled=True, is_cancelled=True) is None


class TestReadState:

    def test_mark_read(self, service):
        row = emit_delay(service)

        service.mark_read("user-1", row.id)

        assert service.list_for_user("user-1", unread_only=True) == []

    def test_mark_read_of_other_user(self, service):
        row = emit_delay(service)

        with pytest.raises(NotFound):
            service.mark_read("user-2", row.id)

    def test_mark_all_read_counts(self, service):
        emit_delay(service)
        emit_delay(service, message="Another")

        assert service.mark_all_read("user-1") == 2
        assert service.mark_all_read("user-1") == 0


class TestBroker:

    def test_emit_publishes_to_subscribers(self, db, user):
        broker = NotificationBroker()
        service = NotificationService(db, broker=broker, dedup_seconds=0)

        async def run():
            queue = broker.subscribe("user-1")
            emit_delay(service)
            return queue.get_nowait()

        event = asyncio.run(run())

        assert event["event"] == "notification"
        assert event["type"] == "delay"
        assert event["title"] == "Delay"

    def test_unsubscribe(self):
        broker = NotificationBroker()

        async def run():
            queue = broker.subscribe("user-1")
            broker.unsubscribe("user-1", queue)
            return broker.publish("user-1", {"event": "notification"})

        assert asyncio.run(run()) == 0
        assert broker.subscriber_count("user-1") == 0

    def test_full_queue_drops_events(self):
        broker = NotificationBroker()

        async def run():
            queue = broker.subscribe("user-1")
            for i in range(NotificationBroker.QUEUE_SIZE + 5):
                broker.publish("user-1", {"n": i})
            return queue.qsize()

        assert asyncio.run(run()) == NotificationBroker.QUEUE_SIZE

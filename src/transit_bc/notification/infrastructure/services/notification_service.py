import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from core.config import settings
from src.transit_bc.notification.domain.entities import NotificationSeverity, NotificationType
from src.transit_bc.notification.infrastructure.models import NotificationModel
from src.transit_bc.notification.infrastructure.services.notification_broker import NotificationBroker
from src.transit_bc.shared.domain.errors import NotFound
from src.transit_bc.shared.domain.time_utils import utcnow
from src.transit_bc.user.infrastructure.models import UserModel

logger = logging.getLogger(__name__)


def notification_event(row: NotificationModel) -> dict:
    """Transient event payload pushed to websocket subscribers."""
    return {
        "event": "notification",
        "id": row.id,
        "title": row.title,
        "message": row.message,
        "type": row.type.value,
        "severity": row.severity.value,
        "related_route_id": row.related_route_id,
        "related_journey_id": row.related_journey_id,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


class NotificationService:
    """Persists user notifications and publishes them to live connections."""

    def __init__(
        self,
        db: Session,
        broker: Optional[NotificationBroker] = None,
        dedup_seconds: Optional[int] = None,
    ):
        self.db = db
        self.broker = broker
        self.dedup_seconds = settings.NOTIFICATION_DEDUP_SECONDS if dedup_seconds is None else dedup_seconds

    def _wants(self, user_id: str, type: NotificationType) -> bool:
        user = self.db.get(UserModel, user_id)
        if user is None:
            return True
        if not user.notifications_enabled:
            return False
        if type == NotificationType.DELAY and not user.delay_alerts_enabled:
            return False
        return True

    def _is_duplicate(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        route_id: Optional[str],
        journey_id: Optional[str],
    ) -> bool:
        if self.dedup_seconds <= 0:
            return False
        since = utcnow() - timedelta(seconds=self.dedup_seconds)
        query = self.db.query(NotificationModel.id).filter(
            NotificationModel.user_id == user_id,
            NotificationModel.type == type,
            NotificationModel.title == title,
            NotificationModel.message == message,
            NotificationModel.related_route_id == route_id if route_id else NotificationModel.related_route_id.is_(None),
            NotificationModel.related_journey_id == journey_id if journey_id else NotificationModel.related_journey_id.is_(None),
            NotificationModel.created_at >= since,
        )
        return query.first() is not None

    def emit(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        severity: NotificationSeverity = NotificationSeverity.MEDIUM,
        route_id: Optional[str] = None,
        journey_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        force: bool = False,
    ) -> Optional[NotificationModel]:
        """Store a notification and push it to live connections.

        Returns None when the user opted out or an identical notification
        was sent within the de-duplication window.
        """
        if not force:
            if not self._wants(user_id, type):
                return None
            if self._is_duplicate(user_id, title, message, type, route_id, journey_id):
                logger.info(f"Suppressed duplicate {type.value} notification for user {user_id}")
                return None

        row = NotificationModel(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            severity=severity,
            related_route_id=route_id,
            related_journey_id=journey_id,
            expires_at=expires_at,
            created_at=utcnow(),
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"Notification {row.id} ({type.value}/{severity.value}) for user {user_id}: {title}")

        self._publish(user_id, row)
        return row

    def _publish(self, user_id: str, row: NotificationModel) -> None:
        if self.broker is None:
            return
        try:
            self.broker.publish(user_id, notification_event(row))
        except Exception as e:
            logger.warning(f"Failed to publish notification {row.id}: {e}")

    def notify_delay_change(
        self,
        user_id: str,
        label: str,
        previous_delay: int,
        current_delay: int,
        was_cancelled: bool = False,
        is_cancelled: bool = False,
        journey_id: Optional[str] = None,
        route_id: Optional[str] = None,
    ) -> Optional[NotificationModel]:
        """Emit a cancellation or delay-increase notification, if warranted."""
        if is_cancelled and not was_cancelled:
            return self.emit(
                user_id,
                title="Journey Cancelled",
                message=f"Your journey {label} has been cancelled. Plan an alternative route.",
                type=NotificationType.CANCELLATION,
                severity=NotificationSeverity.HIGH,
                journey_id=journey_id,
                route_id=route_id,
            )
        if current_delay > previous_delay:
            return self.emit(
                user_id,
                title=f"Delay: {current_delay} min",
                message=f"Your journey {label} is delayed by {current_delay} minutes.",
                type=NotificationType.DELAY,
                severity=NotificationSeverity.for_delay(current_delay),
                journey_id=journey_id,
                route_id=route_id,
            )
        return None

    def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[NotificationModel]:
        query = self.db.query(NotificationModel).filter(NotificationModel.user_id == user_id)
        if unread_only:
            query = query.filter(NotificationModel.is_read.is_(False))
        now = utcnow()
        query = query.filter(
            (NotificationModel.expires_at.is_(None)) | (NotificationModel.expires_at > now)
        )
        return query.order_by(NotificationModel.created_at.desc()).limit(limit).all()

    def mark_read(self, user_id: str, notification_id: str) -> NotificationModel:
        row = self.db.query(NotificationModel).filter(
            NotificationModel.id == notification_id,
            NotificationModel.user_id == user_id,
        ).first()
        if row is None:
            raise NotFound(f"Notification {notification_id} not found")
        row.is_read = True
        self.db.commit()
        return row

    def mark_all_read(self, user_id: str) -> int:
        count = self.db.query(NotificationModel).filter(
            NotificationModel.user_id == user_id,
            NotificationModel.is_read.is_(False),
        ).update({NotificationModel.is_read: True}, synchronize_session=False)
        self.db.commit()
        return count

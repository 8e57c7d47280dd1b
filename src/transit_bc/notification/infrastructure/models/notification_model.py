import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, Enum as SQLEnum
from core.base import Base
from src.transit_bc.notification.domain.entities import NotificationSeverity, NotificationType
from src.transit_bc.shared.domain.time_utils import utcnow


class NotificationModel(Base):
    """A notification shown to a user in the app."""
    __tablename__ = "user_notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False)
    severity = Column(SQLEnum(NotificationSeverity), nullable=False, default=NotificationSeverity.MEDIUM)
    is_read = Column(Boolean, nullable=False, default=False)
    related_route_id = Column(String(36), nullable=True)
    related_journey_id = Column(String(36), nullable=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_user_notifications_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<Notification {self.id}: {self.type} {self.title[:40]}>"

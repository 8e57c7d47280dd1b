import uuid
from sqlalchemy import Boolean, Column, DateTime, JSON, String, Text, Enum as SQLEnum
from core.base import Base
from src.transit_bc.notification.domain.entities import AlertSeverity
from src.transit_bc.shared.domain.time_utils import utcnow


class ServiceAlertModel(Base):
    """Operator service alert (disruption, maintenance) shown to all users."""
    __tablename__ = "service_alerts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(SQLEnum(AlertSeverity), nullable=False, default=AlertSeverity.INFO)
    affected_lines = Column(JSON, nullable=False, default=list)
    affected_stops = Column(JSON, nullable=False, default=list)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    source = Column(String(20), nullable=False, default="SL")
    external_id = Column(String(100), nullable=True, unique=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<ServiceAlert {self.id}: {self.title[:50]}>"

    @property
    def is_current(self) -> bool:
        """Active flag set and now within the alert's time window."""
        if not self.is_active:
            return False
        now = utcnow()
        if self.start_time and now < self.start_time:
            return False
        if self.end_time and now > self.end_time:
            return False
        return True

import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from core.base import Base
from src.transit_bc.commute.domain.entities import Weekday
from src.transit_bc.shared.domain.time_utils import utcnow


class CommuteRouteModel(Base):
    """A recurring weekday commute watched by the commute monitor."""
    __tablename__ = "commute_routes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    origin_area_id = Column(String(50), nullable=False)
    origin_name = Column(String(255), nullable=False)
    destination_area_id = Column(String(50), nullable=False)
    destination_name = Column(String(255), nullable=False)
    active_days = Column(Integer, nullable=False, default=int(Weekday.weekdays()))
    departure_time = Column(String(5), nullable=False)  # HH:MM
    notifications_enabled = Column(Boolean, nullable=False, default=True)
    alert_minutes_before = Column(Integer, nullable=False, default=15)
    delay_threshold_minutes = Column(Integer, nullable=False, default=20)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<CommuteRoute {self.id}: {self.name} {self.departure_time}>"

    @property
    def weekdays(self) -> Weekday:
        return Weekday(self.active_days or 0)

    def runs_on(self, day: Weekday) -> bool:
        return bool(self.weekdays & day)

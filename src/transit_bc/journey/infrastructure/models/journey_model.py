import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, JSON, String, Enum as SQLEnum
from core.base import Base
from src.transit_bc.journey.domain.entities import JourneyStatus
from src.transit_bc.shared.domain.time_utils import utcnow


class JourneyModel(Base):
    """A journey a user has committed to, with planned and realtime timings.

    Timestamps are naive UTC. ``legs`` holds the serialized itinerary legs.
    """
    __tablename__ = "journeys"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    saved_route_id = Column(String(36), ForeignKey("saved_routes.id", ondelete="SET NULL"), nullable=True)
    commute_route_id = Column(String(36), ForeignKey("commute_routes.id", ondelete="SET NULL"), nullable=True)
    origin_area_id = Column(String(50), nullable=False)
    destination_area_id = Column(String(50), nullable=False)
    planned_departure = Column(DateTime, nullable=False)
    planned_arrival = Column(DateTime, nullable=False)
    expected_departure = Column(DateTime, nullable=True)
    expected_arrival = Column(DateTime, nullable=True)
    actual_departure = Column(DateTime, nullable=True)
    actual_arrival = Column(DateTime, nullable=True)
    delay_minutes = Column(Integer, nullable=False, default=0)
    status = Column(SQLEnum(JourneyStatus), nullable=False, default=JourneyStatus.PLANNED)
    legs = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_journeys_user_status", "user_id", "status"),
    )

    def __repr__(self):
        return f"<Journey {self.id}: {self.origin_area_id}->{self.destination_area_id} {self.status}>"

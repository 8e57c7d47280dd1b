import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from core.base import Base
from src.transit_bc.shared.domain.time_utils import utcnow


class SavedRouteModel(Base):
    """A named origin/destination pair a user plans often."""
    __tablename__ = "saved_routes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    origin_area_id = Column(String(50), nullable=False)
    destination_area_id = Column(String(50), nullable=False)
    via_area_id = Column(String(50), nullable=True)
    preferred_departure_time = Column(String(5), nullable=True)  # HH:MM
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<SavedRoute {self.id}: {self.name}>"

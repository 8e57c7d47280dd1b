from sqlalchemy import Boolean, Column, DateTime, Integer, String
from core.base import Base
from src.transit_bc.shared.domain.time_utils import utcnow


class UserModel(Base):
    """SQLAlchemy model for users and their notification preferences.

    Identity is owned by the external identity provider; rows are created
    on first authenticated request using the token subject as id.
    """
    __tablename__ = "users"

    id = Column(String(100), primary_key=True)
    email = Column(String(255), unique=True, nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    profile_image_url = Column(String(500), nullable=True)

    # Notification preferences
    notifications_enabled = Column(Boolean, nullable=False, default=True)
    delay_alerts_enabled = Column(Boolean, nullable=False, default=True)
    alert_timing_minutes = Column(Integer, nullable=False, default=15)
    push_notifications = Column(Boolean, nullable=False, default=True)
    email_notifications = Column(Boolean, nullable=False, default=False)
    sms_notifications = Column(Boolean, nullable=False, default=False)

    # Display
    preferred_language = Column(String(5), nullable=False, default="sv")
    theme = Column(String(10), nullable=False, default="system")

    # Contact
    phone = Column(String(30), nullable=True)
    address = Column(String(255), nullable=True)
    emergency_contact = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"

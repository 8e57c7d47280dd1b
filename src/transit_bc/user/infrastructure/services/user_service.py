from sqlalchemy.orm import Session

from src.transit_bc.user.infrastructure.models import UserModel

# Preferences a user may change through the settings endpoint
SETTINGS_FIELDS = (
    "notifications_enabled",
    "delay_alerts_enabled",
    "alert_timing_minutes",
    "push_notifications",
    "email_notifications",
    "sms_notifications",
    "preferred_language",
    "theme",
    "phone",
    "address",
    "emergency_contact",
)

# Settings that may be cleared with null
CLEARABLE_FIELDS = ("phone", "address", "emergency_contact")


class UserService:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def settings_of(user: UserModel) -> dict:
        return {field: getattr(user, field) for field in SETTINGS_FIELDS}

    def update_settings(self, user: UserModel, changes: dict) -> UserModel:
        """Apply the allowed preference fields present in ``changes``."""
        for field, value in changes.items():
            if field not in SETTINGS_FIELDS:
                continue
            if value is not None or field in CLEARABLE_FIELDS:
                setattr(user, field, value)
        self.db.commit()
        self.db.refresh(user)
        return user

from enum import Enum


class NotificationType(Enum):
    DELAY = "delay"
    CANCELLATION = "cancellation"
    COMPENSATION = "compensation"
    ROUTE_CHANGE = "route_change"
    MAINTENANCE = "maintenance"
    DEPARTURE_REMINDER = "departure_reminder"


class NotificationSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def for_delay(cls, delay_minutes: int) -> "NotificationSeverity":
        return cls.HIGH if delay_minutes > 10 else cls.MEDIUM


_SEVERITY_RANK = {
    NotificationSeverity.LOW: 0,
    NotificationSeverity.MEDIUM: 1,
    NotificationSeverity.HIGH: 2,
    NotificationSeverity.CRITICAL: 3,
}


class AlertSeverity(Enum):
    """Severity of an operator service alert."""
    INFO = "info"
    WARNING = "warning"
    DISRUPTION = "disruption"
    MAINTENANCE = "maintenance"

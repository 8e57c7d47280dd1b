from .notification import NotificationType, NotificationSeverity, AlertSeverity

__all__ = ["NotificationType", "NotificationSeverity", "AlertSeverity"]

from .notification_model import NotificationModel
from .push_subscription_model import PushSubscriptionModel
from .service_alert_model import ServiceAlertModel

__all__ = ["NotificationModel", "PushSubscriptionModel", "ServiceAlertModel"]

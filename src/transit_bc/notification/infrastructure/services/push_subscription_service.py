import logging

from sqlalchemy.orm import Session

from src.transit_bc.notification.infrastructure.models import PushSubscriptionModel

logger = logging.getLogger(__name__)


class PushSubscriptionService:
    """Stores browser push subscriptions; delivery happens elsewhere."""

    def __init__(self, db: Session):
        self.db = db

    def subscribe(self, user_id: str, endpoint: str, p256dh: str, auth: str) -> PushSubscriptionModel:
        """Register or re-activate a subscription for ``endpoint``."""
        subscription = self.db.query(PushSubscriptionModel).filter(
            PushSubscriptionModel.user_id == user_id,
            PushSubscriptionModel.endpoint == endpoint,
        ).first()
        if subscription is None:
            subscription = PushSubscriptionModel(user_id=user_id, endpoint=endpoint)
            self.db.add(subscription)
        subscription.p256dh = p256dh
        subscription.auth = auth
        subscription.is_active = True
        self.db.commit()
        self.db.refresh(subscription)
        logger.info(f"Push subscription {subscription.id} registered for user {user_id}")
        return subscription

    def unsubscribe(self, user_id: str, endpoint: str) -> bool:
        """Deactivate a subscription; returns False when none matched."""
        updated = self.db.query(PushSubscriptionModel).filter(
            PushSubscriptionModel.user_id == user_id,
            PushSubscriptionModel.endpoint == endpoint,
            PushSubscriptionModel.is_active.is_(True),
        ).update({PushSubscriptionModel.is_active: False}, synchronize_session=False)
        self.db.commit()
        return updated > 0


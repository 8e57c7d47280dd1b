# Models registry for Alembic autogenerate
# Import all SQLAlchemy models here so Alembic can detect them

from src.transit_bc.user.infrastructure.models import UserModel
from src.transit_bc.stop.infrastructure.models import StopAreaModel, StopPointModel, LineModel
from src.transit_bc.journey.infrastructure.models import SavedRouteModel, JourneyModel
from src.transit_bc.commute.infrastructure.models import CommuteRouteModel
from src.transit_bc.compensation.infrastructure.models import CompensationCaseModel
from src.transit_bc.notification.infrastructure.models import (
    NotificationModel,
    PushSubscriptionModel,
    ServiceAlertModel,
)

__all__ = [
    "UserModel",
    "StopAreaModel", "StopPointModel", "LineModel",
    "SavedRouteModel", "JourneyModel",
    "CommuteRouteModel",
    "CompensationCaseModel",
    "NotificationModel", "PushSubscriptionModel", "ServiceAlertModel",
]

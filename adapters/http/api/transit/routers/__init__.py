from .stops_router import router as stops_router
from .journeys_router import router as journeys_router
from .compensation_router import router as compensation_router
from .notifications_router import router as notifications_router
from .notifications_router import push_router, ws_router
from .commute_router import router as commute_router
from .routes_router import router as routes_router
from .users_router import router as users_router
from .alerts_router import router as alerts_router

__all__ = [
    "stops_router", "journeys_router", "compensation_router", "notifications_router",
    "push_router", "ws_router", "commute_router", "routes_router", "users_router", "alerts_router",
]

from dependency_injector import containers, providers

from core.config import settings
from src.transit_bc.commute.infrastructure.services.commute_monitor import CommuteMonitor
from src.transit_bc.compensation.infrastructure.services.claim_encryption import ClaimEncryption
from src.transit_bc.journey.infrastructure.services.journey_assembler import JourneyAssembler
from src.transit_bc.journey.infrastructure.services.transit_client import TransitClient
from src.transit_bc.notification.infrastructure.services.notification_broker import NotificationBroker


class TransitContainer(containers.DeclarativeContainer):
    """Dependency injection container for the transit services.

    Process-wide objects (HTTP client with its cache, live notification
    broker, commute monitor state) are singletons; per-request services
    that need a database session are built by the routers.
    """

    # ===== Upstream =====
    transit_client = providers.Singleton(
        TransitClient.from_settings,
        settings.transit,
    )

    journey_assembler = providers.Factory(
        JourneyAssembler,
        client=transit_client,
        window_minutes=settings.transit.LEG_VALIDATION_WINDOW_MINUTES,
    )

    # ===== Notifications =====
    notification_broker = providers.Singleton(NotificationBroker)

    commute_monitor = providers.Singleton(
        CommuteMonitor,
        client=transit_client,
        broker=notification_broker,
    )

    # ===== Compensation =====
    claim_encryption = providers.Singleton(
        ClaimEncryption,
        secret=settings.ENCRYPTION_KEY,
    )


container = TransitContainer()

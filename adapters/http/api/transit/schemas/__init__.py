"""Centralized API schemas for the transit endpoints."""

from .stop_schemas import (
    StopSchema,
    LineResponse,
    DepartureResponse,
)

from .journey_schemas import (
    LegSlotSchema,
    DraftSchema,
    DraftResponse,
    PlanRequest,
    PlanResponse,
    ValidateLegRequest,
    ValidateLegResponse,
    ValidateLegsRequest,
    InsertStopRequest,
    RemoveLegRequest,
    OptimizeLegRequest,
    LegOptionResponse,
    CreateJourneyRequest,
    UpdateJourneyStatusRequest,
    JourneyResponse,
    SavedRouteCreate,
    SavedRouteResponse,
)

from .compensation_schemas import (
    CompensationCaseResponse,
    DetectRequest,
    EvaluationResponse,
    DetectResponse,
    ClaimantData,
    SubmitClaimRequest,
    UpdateCaseStatusRequest,
)

from .notification_schemas import (
    NotificationResponse,
    MarkAllReadResponse,
    TestNotificationRequest,
    PushKeys,
    PushSubscribeRequest,
    PushUnsubscribeRequest,
    PushSubscriptionResponse,
    ServiceAlertCreate,
    ServiceAlertResponse,
)

from .commute_schemas import (
    CommuteRouteCreate,
    CommuteRouteUpdate,
    CommuteRouteResponse,
    UserSettingsResponse,
    UserSettingsUpdate,
)

__all__ = [
    # Stop schemas
    "StopSchema",
    "LineResponse",
    "DepartureResponse",
    # Journey schemas
    "LegSlotSchema",
    "DraftSchema",
    "DraftResponse",
    "PlanRequest",
    "PlanResponse",
    "ValidateLegRequest",
    "ValidateLegResponse",
    "ValidateLegsRequest",
    "InsertStopRequest",
    "RemoveLegRequest",
    "OptimizeLegRequest",
    "LegOptionResponse",
    "CreateJourneyRequest",
    "UpdateJourneyStatusRequest",
    "JourneyResponse",
    "SavedRouteCreate",
    "SavedRouteResponse",
    # Compensation schemas
    "CompensationCaseResponse",
    "DetectRequest",
    "EvaluationResponse",
    "DetectResponse",
    "ClaimantData",
    "SubmitClaimRequest",
    "UpdateCaseStatusRequest",
    # Notification schemas
    "NotificationResponse",
    "MarkAllReadResponse",
    "TestNotificationRequest",
    "PushKeys",
    "PushSubscribeRequest",
    "PushUnsubscribeRequest",
    "PushSubscriptionResponse",
    "ServiceAlertCreate",
    "ServiceAlertResponse",
    # Commute and user schemas
    "CommuteRouteCreate",
    "CommuteRouteUpdate",
    "CommuteRouteResponse",
    "UserSettingsResponse",
    "UserSettingsUpdate",
]

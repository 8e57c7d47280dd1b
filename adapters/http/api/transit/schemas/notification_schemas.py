"""Notification, push subscription and service alert schemas."""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from src.transit_bc.notification.domain.entities import AlertSeverity, NotificationSeverity
from src.transit_bc.notification.infrastructure.models import NotificationModel, ServiceAlertModel
from src.transit_bc.shared.domain.time_utils import from_db


class NotificationResponse(BaseModel):
    id: str
    title: str
    message: str
    type: str
    severity: str  # low, medium, high, critical
    is_read: bool
    related_route_id: Optional[str] = None
    related_journey_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, row: NotificationModel) -> "NotificationResponse":
        return cls(
            id=row.id,
            title=row.title,
            message=row.message,
            type=row.type.value,
            severity=row.severity.value,
            is_read=row.is_read,
            related_route_id=row.related_route_id,
            related_journey_id=row.related_journey_id,
            expires_at=from_db(row.expires_at),
            created_at=from_db(row.created_at),
        )


class MarkAllReadResponse(BaseModel):
    updated: int


class TestNotificationRequest(BaseModel):
    title: str = "Test notification"
    message: str = "Notifications are working."
    severity: NotificationSeverity = NotificationSeverity.LOW


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscribeRequest(BaseModel):
    """Browser PushSubscription.toJSON() shape."""
    endpoint: str
    keys: PushKeys


class PushUnsubscribeRequest(BaseModel):
    endpoint: str


class PushSubscriptionResponse(BaseModel):
    id: str
    endpoint: str
    is_active: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ServiceAlertCreate(BaseModel):
    title: str
    description: str
    severity: AlertSeverity = AlertSeverity.INFO
    affected_lines: List[str] = []
    affected_stops: List[str] = []
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_active: bool = True
    source: str = "SL"
    external_id: Optional[str] = None


class ServiceAlertResponse(BaseModel):
    id: str
    title: str
    description: str
    severity: str  # info, warning, disruption, maintenance
    affected_lines: List[str]
    affected_stops: List[str]
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    is_active: bool
    source: str
    external_id: Optional[str]

    @classmethod
    def from_model(cls, alert: ServiceAlertModel) -> "ServiceAlertResponse":
        return cls(
            id=alert.id,
            title=alert.title,
            description=alert.description,
            severity=alert.severity.value,
            affected_lines=alert.affected_lines or [],
            affected_stops=alert.affected_stops or [],
            start_time=from_db(alert.start_time),
            end_time=from_db(alert.end_time),
            is_active=alert.is_active,
            source=alert.source,
            external_id=alert.external_id,
        )

"""Commute route and user settings schemas."""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, field_validator

from src.transit_bc.commute.domain.entities import Weekday
from src.transit_bc.commute.infrastructure.models import CommuteRouteModel
from src.transit_bc.shared.domain.time_utils import WEEKDAY_NAMES, from_db, parse_hhmm


def _check_days(days: Optional[List[str]]) -> Optional[List[str]]:
    if days is None:
        return None
    normalized = [d.strip().lower() for d in days]
    unknown = [d for d in normalized if d not in WEEKDAY_NAMES]
    if unknown:
        raise ValueError(f"Unknown weekdays: {', '.join(unknown)}")
    return normalized


def _check_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    parse_hhmm(value)
    return value


class CommuteRouteCreate(BaseModel):
    name: str
    origin_area_id: str
    origin_name: str
    destination_area_id: str
    destination_name: str
    active_days: List[str] = Weekday.weekdays().names()
    departure_time: str  # HH:MM
    notifications_enabled: bool = True
    alert_minutes_before: int = 15
    delay_threshold_minutes: int = 20

    @field_validator("active_days")
    @classmethod
    def validate_days(cls, v):
        return _check_days(v)

    @field_validator("departure_time")
    @classmethod
    def validate_time(cls, v):
        return _check_time(v)


class CommuteRouteUpdate(BaseModel):
    name: Optional[str] = None
    active_days: Optional[List[str]] = None
    departure_time: Optional[str] = None
    notifications_enabled: Optional[bool] = None
    alert_minutes_before: Optional[int] = None
    delay_threshold_minutes: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("active_days")
    @classmethod
    def validate_days(cls, v):
        return _check_days(v)

    @field_validator("departure_time")
    @classmethod
    def validate_time(cls, v):
        return _check_time(v)


class CommuteRouteResponse(BaseModel):
    id: str
    name: str
    origin_area_id: str
    origin_name: str
    destination_area_id: str
    destination_name: str
    active_days: List[str]
    departure_time: str
    notifications_enabled: bool
    alert_minutes_before: int
    delay_threshold_minutes: int
    is_active: bool
    created_at: Optional[datetime]

    @classmethod
    def from_model(cls, route: CommuteRouteModel) -> "CommuteRouteResponse":
        return cls(
            id=route.id,
            name=route.name,
            origin_area_id=route.origin_area_id,
            origin_name=route.origin_name,
            destination_area_id=route.destination_area_id,
            destination_name=route.destination_name,
            active_days=route.weekdays.names(),
            departure_time=route.departure_time,
            notifications_enabled=route.notifications_enabled,
            alert_minutes_before=route.alert_minutes_before,
            delay_threshold_minutes=route.delay_threshold_minutes,
            is_active=route.is_active,
            created_at=from_db(route.created_at),
        )


class UserSettingsResponse(BaseModel):
    notifications_enabled: bool
    delay_alerts_enabled: bool
    alert_timing_minutes: int
    push_notifications: bool
    email_notifications: bool
    sms_notifications: bool
    preferred_language: str
    theme: str
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None


class UserSettingsUpdate(BaseModel):
    notifications_enabled: Optional[bool] = None
    delay_alerts_enabled: Optional[bool] = None
    alert_timing_minutes: Optional[int] = None
    push_notifications: Optional[bool] = None
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    preferred_language: Optional[str] = None
    theme: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None

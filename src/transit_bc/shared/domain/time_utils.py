"""Time helpers shared by the transit services.

Provider timestamps are local Stockholm wall-clock time. Database columns
store naive UTC, matching the rest of the schema.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

STOCKHOLM_TZ = ZoneInfo("Europe/Stockholm")

WEEKDAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def utcnow() -> datetime:
    """Current time as naive UTC (database convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_local() -> datetime:
    return datetime.now(STOCKHOLM_TZ)


def to_local(dt: datetime) -> datetime:
    """Attach or convert to Stockholm time. Naive values are local wall-clock time."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=STOCKHOLM_TZ)
    return dt.astimezone(STOCKHOLM_TZ)


def to_db(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC for storage."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def from_db(dt: Optional[datetime]) -> Optional[datetime]:
    """Read a stored naive UTC value back as Stockholm time."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(STOCKHOLM_TZ)


def parse_local(date_str: Optional[str], time_str: Optional[str]) -> Optional[datetime]:
    """Parse provider ``YYYY-MM-DD`` + ``HH:MM[:SS]`` into an aware datetime."""
    if not date_str or not time_str:
        return None
    parts = time_str.split(":")
    try:
        d = date.fromisoformat(date_str)
        t = time(int(parts[0]), int(parts[1]), int(parts[2]) if len(parts) > 2 else 0)
    except (ValueError, IndexError):
        return None
    return datetime.combine(d, t, tzinfo=STOCKHOLM_TZ)


def parse_iso_local(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp; offset-less values are Stockholm local time."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=STOCKHOLM_TZ)
    return dt.astimezone(STOCKHOLM_TZ)


def parse_hhmm(value: str) -> time:
    """Parse ``HH:MM``. Raises ValueError on malformed input."""
    parts = value.split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return time(hour, minute)


def next_weekday_date(day_name: str, today: Optional[date] = None) -> date:
    """Resolve a weekday name to its next occurrence (today counts)."""
    name = day_name.strip().lower()
    if name not in WEEKDAY_NAMES:
        raise ValueError(f"Unknown weekday '{day_name}'")
    today = today or now_local().date()
    days_ahead = (WEEKDAY_NAMES.index(name) - today.weekday()) % 7
    return today + timedelta(days=days_ahead)


def resolve_departure(
    day_name: Optional[str],
    time_str: Optional[str],
    now: Optional[datetime] = None,
) -> datetime:
    """Build the search datetime from an optional weekday name and ``HH:MM``."""
    now = now or now_local()
    day = next_weekday_date(day_name, now.date()) if day_name else now.date()
    if time_str:
        t = parse_hhmm(time_str)
    else:
        t = now.time().replace(second=0, microsecond=0)
    return datetime.combine(day, t, tzinfo=STOCKHOLM_TZ)


def whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)

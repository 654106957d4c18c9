"""Timezone helpers shared by the dashboard resolver and session scheduling."""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Normalise a datetime to aware UTC; naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def resolve_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone '{name}'.", field="timezone")


def local_day_bounds(now: datetime, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC ``[start, end)`` of the calendar day containing ``now`` in ``zone``."""
    local_day = to_utc(now).astimezone(zone).date()
    return day_bounds(local_day, zone)


def day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def schedule_for(target: date | None, now: datetime) -> datetime:
    """Scheduled timestamp for a template date, or ``now`` when it has none."""
    if target is None:
        return to_utc(now)
    # noon UTC keeps the calendar date stable from UTC-11 to UTC+11
    return datetime.combine(target, time(12, 0), tzinfo=timezone.utc)

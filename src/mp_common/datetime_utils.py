"""UTC datetime utilities."""

from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def get_timezone(name: str) -> tzinfo:
    """Resolve a tz name; UTC never needs the system tz database."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def local_day(moment: datetime, tz_name: str) -> date:
    """Calendar day of an aware datetime in the given timezone."""
    return moment.astimezone(get_timezone(tz_name)).date()


def as_utc(moment: datetime) -> datetime:
    """Aware UTC datetime; a naive value is taken to be UTC already."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)

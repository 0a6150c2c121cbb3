from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from ..config import get_settings


def venue_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().venue_timezone)


def venue_today(now: datetime | None = None) -> date:
    """Calendar day at the venue; `now` must be timezone-aware when given."""
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return current.astimezone(venue_zone()).date()

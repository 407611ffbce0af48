# slotbook/services/scheduling/config.py
"""
Scheduling configuration and time helpers.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import ConfigurationError, ValidationError

_HHMM = re.compile(r"^(?:([01]\d|2[0-3]):([0-5]\d)|(24):(00))$")


@dataclass(frozen=True)
class SchedulingConfig:
    """
    Configuration for slot calculation.

    Attributes:
        horizon_days: How far ahead bookings and date listings are allowed
        max_duration_minutes: Upper bound for an event type duration
        max_buffer_minutes: Upper bound for each buffer
    """
    horizon_days: int = 60
    max_duration_minutes: int = 24 * 60
    max_buffer_minutes: int = 12 * 60

    def __post_init__(self):
        if self.horizon_days < 1:
            raise ValueError(f"horizon_days must be >= 1, got {self.horizon_days}")


@lru_cache
def get_scheduling_config() -> SchedulingConfig:
    """Scheduling configuration (singleton), seeded from settings."""
    from ...config import settings
    return SchedulingConfig(horizon_days=settings.booking_horizon_days)


def time_str_to_minutes(time_str: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    match = _HHMM.match(time_str or "")
    if not match:
        raise ConfigurationError(f"Malformed time {time_str!r}, expected HH:MM")
    if match.group(3):
        return 24 * 60
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_valid_time_str(time_str: str) -> bool:
    return bool(_HHMM.match(time_str or ""))


def get_zone(tz_name: str) -> ZoneInfo:
    """Resolve an IANA zone id, rejecting unknown ones."""
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise ValidationError(f"Unknown timezone {tz_name!r}") from None


def local_to_utc(target_date: date, minutes: int, tz: ZoneInfo) -> datetime:
    """Wall-clock minutes on target_date in tz -> aware UTC instant."""
    # wall-clock arithmetic, so "24:00" lands on local midnight of the next day
    local = datetime.combine(target_date, time(0), tzinfo=tz) + timedelta(minutes=minutes)
    return local.astimezone(timezone.utc)


def day_of_week(target_date: date) -> int:
    """Day index with 0 = Sunday ... 6 = Saturday."""
    return (target_date.weekday() + 1) % 7


def parse_date(value: str) -> date:
    """Parse "YYYY-MM-DD"."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Malformed date {value!r}, expected YYYY-MM-DD") from None

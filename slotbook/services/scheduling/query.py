# slotbook/services/scheduling/query.py
"""
Public slot queries: generator + conflict filter over committed bookings.

Takes into account:
- Event type duration and buffers
- Schedule weekly rules and date overrides
- CONFIRMED bookings of the event type (read fresh, never cached)
- Current time (past slots are not bookable)
"""

import calendar
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..repository import (
    BookingRepository,
    EventTypeConfig,
    get_event_type_config,
    get_schedule,
)
from .availability import Schedule
from .config import SchedulingConfig, get_scheduling_config, get_zone, parse_date
from .conflicts import filter_available
from .generator import SlotCandidate, generate_slots_for_schedule


def bookable_slots(
    db: Session,
    event_type: EventTypeConfig,
    schedule: Schedule,
    target_date: date,
    now: datetime | None = None,
    exclude_booking_id: int | None = None,
) -> list[SlotCandidate]:
    """Full pipeline for one date: raw slots minus conflicts, buffers and the past."""
    now = now or datetime.now(timezone.utc)

    candidates = generate_slots_for_schedule(schedule, target_date, event_type.duration)
    if not candidates:
        return []

    # Bookings that can touch any candidate, including through a buffer
    range_start = min(c.start for c in candidates) - timedelta(minutes=event_type.buffer_before)
    range_end = max(c.end for c in candidates) + timedelta(minutes=event_type.buffer_after)

    bookings = BookingRepository(db).find_confirmed_bookings(
        event_type.id, range_start, range_end, exclude_id=exclude_booking_id
    )

    return filter_available(
        candidates,
        bookings,
        buffer_before=event_type.buffer_before,
        buffer_after=event_type.buffer_after,
        now=now,
    )


def load_event_type_with_schedule(db: Session, slug: str) -> tuple[EventTypeConfig, Schedule]:
    event_type = get_event_type_config(db, slug=slug, active_only=True)
    if event_type.schedule_id is None:
        raise ValidationError("No availability schedule configured")
    return event_type, get_schedule(db, event_type.schedule_id)


def get_available_slots(
    db: Session,
    slug: str,
    date_str: str,
    timezone_name: str | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Available slots of an event type on a date.

    Returns:
        Dict with date, schedule timezone and [{"time": "HH:MM", "available": True}].
        Times are local to the schedule timezone; display conversion is up to the caller.
    """
    target_date = parse_date(date_str)
    if timezone_name:
        get_zone(timezone_name)

    event_type, schedule = load_event_type_with_schedule(db, slug)
    slots = bookable_slots(db, event_type, schedule, target_date, now=now)

    return {
        "date": target_date.isoformat(),
        "timezone": schedule.timezone,
        "slots": [{"time": s.label, "available": True} for s in slots],
    }


def get_available_dates(
    db: Session,
    slug: str,
    month: int,
    year: int,
    now: datetime | None = None,
    config: SchedulingConfig | None = None,
) -> dict:
    """Dates of the month with at least one bookable slot (past, blocked and out-of-horizon days excluded)."""
    if not 1 <= month <= 12:
        raise ValidationError(f"month must be in 1..12, got {month}")
    if not 1 <= year <= 9999:
        raise ValidationError(f"Invalid year {year}")

    config = config or get_scheduling_config()
    now = now or datetime.now(timezone.utc)

    event_type, schedule = load_event_type_with_schedule(db, slug)
    today = now.astimezone(get_zone(schedule.timezone)).date()
    last_day = min(
        date(year, month, calendar.monthrange(year, month)[1]),
        today + timedelta(days=config.horizon_days),
    )

    available_dates = []
    current = max(date(year, month, 1), today)
    while current <= last_day:
        if bookable_slots(db, event_type, schedule, current, now=now):
            available_dates.append(current.isoformat())
        current += timedelta(days=1)

    return {"month": month, "year": year, "available_dates": available_dates}

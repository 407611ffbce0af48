# slotbook/services/scheduling/generator.py
"""
Raw slot generation.

Produces SlotCandidate(start, end, label) for one calendar date:
  start/end - aware UTC instants
  label - local "HH:MM" in the schedule timezone

Contains:
✓ weekly rules / date override resolution (via availability.py)
✓ packing by event duration inside each working period

Does NOT contain:
✗ Bookings and buffers (conflicts.py)
✗ Past-time filtering (conflicts.py)
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from ..errors import ConfigurationError
from .availability import Schedule, WorkingPeriod, resolve_working_periods
from .config import get_zone, local_to_utc


@dataclass(frozen=True)
class SlotCandidate:
    start: datetime
    end: datetime
    label: str


def generate_raw_slots(
    target_date: date,
    duration_minutes: int,
    periods: list[WorkingPeriod],
    timezone: str,
) -> list[SlotCandidate]:
    """
    Pack back-to-back slots of duration_minutes into each working period.

    A slot is emitted only if start + duration <= period end; no slot
    spans a period boundary. Periods are processed in the given order.
    """
    if not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise ConfigurationError(f"duration must be a positive number of minutes, got {duration_minutes!r}")

    tz = get_zone(timezone)
    step = timedelta(minutes=duration_minutes)
    slots: list[SlotCandidate] = []

    for period in periods:
        current = local_to_utc(target_date, period.start_minutes, tz)
        period_end = local_to_utc(target_date, period.end_minutes, tz)

        while current + step <= period_end:
            slots.append(SlotCandidate(
                start=current,
                end=current + step,
                label=current.astimezone(tz).strftime("%H:%M"),
            ))
            current += step

    return slots


def generate_slots_for_schedule(
    schedule: Schedule,
    target_date: date,
    duration_minutes: int,
) -> list[SlotCandidate]:
    """Resolve the working periods for target_date, then pack them."""
    periods = resolve_working_periods(schedule, target_date)
    if not periods:
        return []
    return generate_raw_slots(target_date, duration_minutes, periods, schedule.timezone)

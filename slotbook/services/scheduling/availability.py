# slotbook/services/scheduling/availability.py
"""
Availability model: weekly rules + date overrides forming one schedule.

Plain frozen dataclasses built from ORM rows (or by hand in tests).
Only invariants and working-period resolution live here; slot packing
is in generator.py.
"""

from dataclasses import dataclass
from datetime import date

from ..errors import ConfigurationError
from .config import day_of_week, get_zone, time_str_to_minutes


@dataclass(frozen=True)
class AvailabilityRule:
    """Weekly window: day_of_week 0 = Sunday ... 6 = Saturday, local HH:MM."""
    day_of_week: int
    start_time: str
    end_time: str

    def __post_init__(self):
        if not 0 <= self.day_of_week <= 6:
            raise ConfigurationError(
                f"day_of_week must be in 0..6, got {self.day_of_week}"
            )
        _check_window(self.start_time, self.end_time)


@dataclass(frozen=True)
class DateOverride:
    """Per-date exception. Blocked, or a single window replacing the weekly rules."""
    date: date
    is_blocked: bool
    start_time: str | None = None
    end_time: str | None = None

    def __post_init__(self):
        if self.is_blocked:
            return
        if not self.start_time or not self.end_time:
            raise ConfigurationError(
                f"Override for {self.date.isoformat()} needs start_time and end_time"
            )
        _check_window(self.start_time, self.end_time)


@dataclass(frozen=True)
class WorkingPeriod:
    """Resolved local window for one date, in minutes since midnight."""
    start_minutes: int
    end_minutes: int


@dataclass(frozen=True)
class Schedule:
    timezone: str
    rules: tuple[AvailabilityRule, ...] = ()
    overrides: tuple[DateOverride, ...] = ()
    id: int | None = None

    def __post_init__(self):
        get_zone(self.timezone)
        seen: set[date] = set()
        for ovr in self.overrides:
            if ovr.date in seen:
                raise ConfigurationError(
                    f"Duplicate override for {ovr.date.isoformat()}"
                )
            seen.add(ovr.date)

    def override_for(self, target_date: date) -> DateOverride | None:
        for ovr in self.overrides:
            if ovr.date == target_date:
                return ovr
        return None

    def rules_for(self, target_date: date) -> list[AvailabilityRule]:
        dow = day_of_week(target_date)
        return [rule for rule in self.rules if rule.day_of_week == dow]


def resolve_working_periods(schedule: Schedule, target_date: date) -> list[WorkingPeriod]:
    """
    Working periods for target_date (a calendar date in the schedule's timezone).

    1. Override found and blocked → [] (short-circuit)
    2. Override found, not blocked → its window is the only period
    3. Otherwise every weekly rule for that weekday, earliest first
    """
    override = schedule.override_for(target_date)
    if override is not None:
        if override.is_blocked:
            return []
        return [
            WorkingPeriod(
                time_str_to_minutes(override.start_time),
                time_str_to_minutes(override.end_time),
            )
        ]

    periods = [
        WorkingPeriod(
            time_str_to_minutes(rule.start_time),
            time_str_to_minutes(rule.end_time),
        )
        for rule in schedule.rules_for(target_date)
    ]
    return sorted(periods, key=lambda p: p.start_minutes)


def _check_window(start_time: str, end_time: str) -> None:
    if time_str_to_minutes(start_time) >= time_str_to_minutes(end_time):
        raise ConfigurationError(
            f"start_time must be before end_time, got {start_time}-{end_time}"
        )


# ── ORM adapters ─────────────────────────────────────────────────────────


def schedule_from_row(row) -> Schedule:
    """Build a Schedule from an AvailabilitySchedules ORM row."""
    return Schedule(
        id=row.id,
        timezone=row.timezone,
        rules=tuple(
            AvailabilityRule(r.day_of_week, r.start_time, r.end_time)
            for r in row.rules
        ),
        overrides=tuple(
            DateOverride(o.date, bool(o.is_blocked), o.start_time, o.end_time)
            for o in row.overrides
        ),
    )

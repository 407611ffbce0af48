# slotbook/services/scheduling/__init__.py
"""
Slot calculation.

availability - schedule model and working-period resolution
generator - raw slots for a date (no bookings)
conflicts - overlap / buffer / past filtering
query - full pipeline over committed bookings
"""

from .config import SchedulingConfig, get_scheduling_config
from .availability import (
    AvailabilityRule,
    DateOverride,
    Schedule,
    WorkingPeriod,
    resolve_working_periods,
)
from .generator import SlotCandidate, generate_raw_slots, generate_slots_for_schedule
from .conflicts import filter_available

__all__ = [
    "SchedulingConfig",
    "get_scheduling_config",
    "AvailabilityRule",
    "DateOverride",
    "Schedule",
    "WorkingPeriod",
    "resolve_working_periods",
    "SlotCandidate",
    "generate_raw_slots",
    "generate_slots_for_schedule",
    "filter_available",
]

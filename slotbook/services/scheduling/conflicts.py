# slotbook/services/scheduling/conflicts.py
"""
Conflict filtering of raw slots against confirmed bookings.

All intervals are half-open [start, end). For a candidate C and a
confirmed booking B:

  overlap        C.start < B.end and C.end > B.start
  buffer after   C.end <= B.start and C.end + after > B.start
  buffer before  B.end <= C.start and B.end + before > C.start

A gap exactly equal to the buffer is allowed on both sides, so mirrored
inputs give mirrored results. Taken together the three rules drop C iff
[C.start - before, C.end + after) intersects [B.start, B.end).
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Protocol

from .generator import SlotCandidate


class BookedInterval(Protocol):
    start_time: datetime
    end_time: datetime


def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """Half-open interval intersection test."""
    return start < other_end and end > other_start


def violates_buffer(
    candidate: SlotCandidate,
    booking: BookedInterval,
    buffer_before: timedelta,
    buffer_after: timedelta,
) -> bool:
    if candidate.end <= booking.start_time and candidate.end + buffer_after > booking.start_time:
        return True
    if booking.end_time <= candidate.start and booking.end_time + buffer_before > candidate.start:
        return True
    return False


def filter_available(
    candidates: Iterable[SlotCandidate],
    bookings: Iterable[BookedInterval],
    buffer_before: int = 0,
    buffer_after: int = 0,
    now: datetime | None = None,
) -> list[SlotCandidate]:
    """
    Drop candidates that overlap a confirmed booking, break a buffer, or
    do not start strictly after now. Order of candidates is preserved.

    bookings must already be restricted to CONFIRMED rows of one event type.
    """
    now = now or datetime.now(timezone.utc)
    before = timedelta(minutes=buffer_before)
    after = timedelta(minutes=buffer_after)
    bookings = list(bookings)

    # Stage 1: direct overlap
    free = [
        c for c in candidates
        if not any(overlaps(c.start, c.end, b.start_time, b.end_time) for b in bookings)
    ]

    # Stage 2: buffer zones around neighbouring bookings
    buffered = [
        c for c in free
        if not any(violates_buffer(c, b, before, after) for b in bookings)
    ]

    # Stage 3: past / already started
    return [c for c in buffered if c.start > now]

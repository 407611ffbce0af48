# slotbook/services/repository.py
"""
Persistence boundary used by the scheduling core.

Lookups return plain domain objects (EventTypeConfig, Schedule);
BookingRepository wraps the booking table for the ledger. None of these
commit: the caller owns the transaction.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..models import AvailabilitySchedules, BookingAnswers, Bookings, EventTypes
from .errors import ConfigurationError, NotFound
from .scheduling.availability import Schedule, schedule_from_row

CONFIRMED = "CONFIRMED"
CANCELLED = "CANCELLED"
RESCHEDULED = "RESCHEDULED"


@dataclass(frozen=True)
class EventTypeConfig:
    id: int
    slug: str
    title: str
    host_id: int
    duration: int
    buffer_before: int
    buffer_after: int
    schedule_id: int | None
    is_active: bool

    @classmethod
    def from_row(cls, row: EventTypes) -> "EventTypeConfig":
        if row.duration is None or row.duration <= 0:
            raise ConfigurationError(f"Event type {row.slug!r} has invalid duration {row.duration!r}")
        if (row.buffer_time_before or 0) < 0 or (row.buffer_time_after or 0) < 0:
            raise ConfigurationError(f"Event type {row.slug!r} has a negative buffer")
        return cls(
            id=row.id,
            slug=row.slug,
            title=row.title,
            host_id=row.host_id,
            duration=row.duration,
            buffer_before=row.buffer_time_before or 0,
            buffer_after=row.buffer_time_after or 0,
            schedule_id=row.availability_schedule_id,
            is_active=bool(row.is_active),
        )


def get_event_type_row(
    db: Session,
    slug: str | None = None,
    event_type_id: int | None = None,
    active_only: bool = False,
) -> EventTypes:
    stmt = select(EventTypes)
    if slug is not None:
        stmt = stmt.where(EventTypes.slug == slug)
    elif event_type_id is not None:
        stmt = stmt.where(EventTypes.id == event_type_id)
    else:
        raise ValueError("slug or event_type_id required")

    row = db.scalars(stmt).first()
    if row is None or (active_only and not row.is_active):
        raise NotFound("Event type not found")
    return row


def get_event_type_config(
    db: Session,
    slug: str | None = None,
    event_type_id: int | None = None,
    active_only: bool = False,
) -> EventTypeConfig:
    return EventTypeConfig.from_row(
        get_event_type_row(db, slug=slug, event_type_id=event_type_id, active_only=active_only)
    )


def get_schedule(db: Session, schedule_id: int) -> Schedule:
    row = db.scalars(
        select(AvailabilitySchedules)
        .where(AvailabilitySchedules.id == schedule_id)
        .options(
            selectinload(AvailabilitySchedules.rules),
            selectinload(AvailabilitySchedules.overrides),
        )
    ).first()
    if row is None:
        raise NotFound("Schedule not found")
    return schedule_from_row(row)


class BookingRepository:
    """Booking reads and writes inside the caller's transaction."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, booking_id: int) -> Bookings:
        booking = self.db.get(Bookings, booking_id)
        if booking is None:
            raise NotFound("Booking not found")
        return booking

    def find_confirmed_bookings(
        self,
        event_type_id: int,
        range_start: datetime,
        range_end: datetime,
        exclude_id: int | None = None,
    ) -> list[Bookings]:
        """CONFIRMED bookings of the event type intersecting [range_start, range_end)."""
        stmt = (
            select(Bookings)
            .where(
                Bookings.event_type_id == event_type_id,
                Bookings.status == CONFIRMED,
                Bookings.start_time < range_end,
                Bookings.end_time > range_start,
            )
            .order_by(Bookings.start_time)
        )
        if exclude_id is not None:
            stmt = stmt.where(Bookings.id != exclude_id)
        return list(self.db.scalars(stmt))

    def insert_booking(self, data: dict, answers: list[tuple[int, str]] | None = None) -> Bookings:
        booking = Bookings(status=CONFIRMED, **data)
        for question_id, answer in answers or []:
            booking.answers.append(BookingAnswers(question_id=question_id, answer=answer))
        self.db.add(booking)
        self.db.flush()
        return booking

    def update_booking_status(
        self,
        booking: Bookings,
        status: str,
        reason: str | None = None,
    ) -> Bookings:
        booking.status = status
        if reason is not None:
            booking.cancellation_reason = reason
        self.db.flush()
        return booking

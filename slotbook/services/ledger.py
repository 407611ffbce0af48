# slotbook/services/ledger.py
"""
Booking ledger: the only place bookings are created or change status.

reserve      atomic "check then insert" for a new CONFIRMED booking
cancel       CONFIRMED → CANCELLED (releases the slot)
reschedule   CONFIRMED → RESCHEDULED + new CONFIRMED booking, one transaction

Every write runs under the per-event-type Redis lock (locks.py) and a
single DB transaction opened on a fresh session, so conflict checks see
the latest committed bookings. Notifications are published only after
commit and lock release, and their failure never reaches the caller.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from redis import Redis
from sqlalchemy.orm import Session, sessionmaker

from ..models import Bookings, BookingQuestions
from .errors import InvalidTransition, NotFound, SlotUnavailable, ValidationError
from .events import notify_cancelled, notify_confirmed, notify_rescheduled
from .locks import ReservationLock
from .repository import (
    CANCELLED,
    CONFIRMED,
    RESCHEDULED,
    BookingRepository,
    EventTypeConfig,
    get_event_type_config,
    get_schedule,
)
from .scheduling.config import get_zone
from .scheduling.query import bookable_slots

logger = logging.getLogger(__name__)

# Allowed status transitions; CANCELLED and RESCHEDULED are terminal
TRANSITIONS: dict[str, frozenset[str]] = {
    CONFIRMED: frozenset({CANCELLED, RESCHEDULED}),
    CANCELLED: frozenset(),
    RESCHEDULED: frozenset(),
}


@dataclass(frozen=True)
class BookerIdentity:
    name: str
    email: str
    timezone: str | None = None


@dataclass(frozen=True)
class AnswerInput:
    question_id: int
    answer: str


@dataclass
class BookingLedger:
    session_factory: sessionmaker
    redis: Redis
    lock_ttl_seconds: float = 10.0
    lock_wait_seconds: float = 5.0
    clock: Callable[[], datetime] | None = None

    # ── Public operations ────────────────────────────────────────────────

    def reserve(
        self,
        event_type_id: int,
        start: datetime,
        end: datetime,
        booker: BookerIdentity,
        answers: list[AnswerInput] | None = None,
        require_open_slot: bool = True,
    ) -> Bookings:
        """
        Reserve [start, end) for the event type if it is still free.

        With require_open_slot the start must also be one of the slots the
        public pipeline derives right now (rules, overrides, buffers, past).

        Raises:
            ValidationError: bad booker data / answers / interval
            NotFound: unknown event type
            SlotUnavailable: interval taken or not bookable at write time
            LockTimeout: lock not acquired within the bounded wait
        """
        _check_interval(start, end)
        _check_booker(booker)

        with self.session_factory() as db:
            event_type = get_event_type_config(db, event_type_id=event_type_id)
            validated_answers = _validate_answers(db, event_type.id, answers or [])
            display_tz = booker.timezone or self._default_timezone(db, event_type)
            get_zone(display_tz)
            db.rollback()

            with self._lock(event_type.id):
                with db.begin():
                    repo = BookingRepository(db)

                    if require_open_slot:
                        self._require_open_slot(db, event_type, start, end)

                    conflicts = repo.find_confirmed_bookings(event_type.id, start, end)
                    if conflicts:
                        logger.info(
                            f"Reservation rejected: event_type={event_type.id} "
                            f"{start.isoformat()} overlaps booking={conflicts[0].id}"
                        )
                        raise SlotUnavailable()

                    booking = repo.insert_booking(
                        {
                            "event_type_id": event_type.id,
                            "host_id": event_type.host_id,
                            "booker_name": booker.name.strip(),
                            "booker_email": booker.email.strip(),
                            "start_time": start,
                            "end_time": end,
                            "timezone": display_tz,
                        },
                        answers=[(a.question_id, a.answer) for a in validated_answers],
                    )

            logger.info(
                f"Booking confirmed: id={booking.id} event_type={event_type.id} "
                f"{start.isoformat()}-{end.isoformat()}"
            )
            notify_confirmed(booking, self.redis)
            return _loaded(booking)

    def cancel(self, booking_id: int, reason: str | None = None) -> Bookings:
        """CONFIRMED → CANCELLED. Raises NotFound / InvalidTransition."""
        with self.session_factory() as db:
            event_type_id = BookingRepository(db).get(booking_id).event_type_id
            db.rollback()

            with self._lock(event_type_id):
                with db.begin():
                    repo = BookingRepository(db)
                    booking = repo.get(booking_id)
                    db.refresh(booking)
                    _check_transition(booking, CANCELLED)
                    repo.update_booking_status(booking, CANCELLED, reason=reason or None)

            logger.info(f"Booking cancelled: id={booking.id}")
            notify_cancelled(booking, self.redis)
            return _loaded(booking)

    def reschedule(
        self,
        booking_id: int,
        new_start: datetime,
        timezone_name: str | None = None,
    ) -> Bookings:
        """
        Move a CONFIRMED booking to new_start (same duration as the event type).

        The original becomes RESCHEDULED and a new CONFIRMED booking with
        rescheduled_from_id is created, both in one transaction. If the
        new interval overlaps another CONFIRMED booking nothing changes.
        """
        if new_start.tzinfo is None:
            raise ValidationError("new start time must include a UTC offset")
        if new_start <= self._now():
            raise ValidationError("Cannot reschedule into the past")
        if timezone_name:
            get_zone(timezone_name)

        with self.session_factory() as db:
            original = BookingRepository(db).get(booking_id)
            event_type = get_event_type_config(db, event_type_id=original.event_type_id)
            db.rollback()

            new_end = new_start + timedelta(minutes=event_type.duration)

            with self._lock(event_type.id):
                with db.begin():
                    repo = BookingRepository(db)
                    original = repo.get(booking_id)
                    db.refresh(original)
                    _check_transition(original, RESCHEDULED)

                    conflicts = repo.find_confirmed_bookings(
                        event_type.id, new_start, new_end, exclude_id=original.id
                    )
                    if conflicts:
                        logger.info(
                            f"Reschedule rejected: booking={original.id} → "
                            f"{new_start.isoformat()} overlaps booking={conflicts[0].id}"
                        )
                        raise SlotUnavailable()

                    repo.update_booking_status(original, RESCHEDULED)
                    new_booking = repo.insert_booking(
                        {
                            "event_type_id": original.event_type_id,
                            "host_id": original.host_id,
                            "booker_name": original.booker_name,
                            "booker_email": original.booker_email,
                            "start_time": new_start,
                            "end_time": new_end,
                            "timezone": timezone_name or original.timezone,
                            "rescheduled_from_id": original.id,
                        },
                        answers=[(a.question_id, a.answer) for a in original.answers],
                    )

            logger.info(f"Booking rescheduled: id={original.id} → id={new_booking.id}")
            notify_rescheduled(new_booking, original, self.redis)
            _loaded(original)
            return _loaded(new_booking)

    # ── Internals ────────────────────────────────────────────────────────

    def _lock(self, event_type_id: int) -> ReservationLock:
        return ReservationLock(
            self.redis,
            event_type_id,
            ttl_seconds=self.lock_ttl_seconds,
            wait_seconds=self.lock_wait_seconds,
        )

    def _now(self) -> datetime:
        if self.clock is not None:
            return self.clock()
        return datetime.now(timezone.utc)

    def _default_timezone(self, db: Session, event_type: EventTypeConfig) -> str:
        from ..config import settings

        if event_type.schedule_id is None:
            return settings.default_timezone
        return get_schedule(db, event_type.schedule_id).timezone

    def _require_open_slot(
        self,
        db: Session,
        event_type: EventTypeConfig,
        start: datetime,
        end: datetime,
    ) -> None:
        if not event_type.is_active:
            raise NotFound("Event type not found")
        if event_type.schedule_id is None:
            raise ValidationError("No availability schedule configured")
        if end - start != timedelta(minutes=event_type.duration):
            raise ValidationError(
                f"Booking length must be {event_type.duration} minutes"
            )

        schedule = get_schedule(db, event_type.schedule_id)
        local_date = start.astimezone(get_zone(schedule.timezone)).date()
        slots = bookable_slots(db, event_type, schedule, local_date, now=self._now())
        if not any(s.start == start and s.end == end for s in slots):
            raise SlotUnavailable()


def _check_interval(start: datetime, end: datetime) -> None:
    if start.tzinfo is None or end.tzinfo is None:
        raise ValidationError("start and end must include a UTC offset")
    if end <= start:
        raise ValidationError("end must be after start")


def _check_booker(booker: BookerIdentity) -> None:
    missing = [
        field_name
        for field_name, value in [("name", booker.name), ("email", booker.email)]
        if not value or not value.strip()
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    if "@" not in booker.email:
        raise ValidationError(f"Invalid email {booker.email!r}")


def _check_transition(booking: Bookings, target: str) -> None:
    if target not in TRANSITIONS.get(booking.status, frozenset()):
        raise InvalidTransition(
            f"Cannot change booking {booking.id} from {booking.status} to {target}"
        )


def _validate_answers(db: Session, event_type_id: int, answers: list[AnswerInput]) -> list[AnswerInput]:
    """Answers must reference this event type's questions; required ones must be present."""
    questions = {
        q.id: q
        for q in db.query(BookingQuestions)
        .filter(BookingQuestions.event_type_id == event_type_id)
        .all()
    }

    seen: set[int] = set()
    cleaned: list[AnswerInput] = []
    for a in answers:
        question = questions.get(a.question_id)
        if question is None:
            raise ValidationError(f"Unknown question {a.question_id}")
        if a.question_id in seen:
            raise ValidationError(f"Duplicate answer for question {a.question_id}")
        seen.add(a.question_id)

        value = (a.answer or "").strip()
        if not value:
            continue
        if question.options and question.type in ("SELECT", "RADIO") and value not in question.options:
            raise ValidationError(f"Answer for question {a.question_id} must be one of {question.options}")
        cleaned.append(AnswerInput(a.question_id, value))

    answered = {a.question_id for a in cleaned}
    missing = [q.question for q in questions.values() if q.is_required and q.id not in answered]
    if missing:
        raise ValidationError(f"Required questions not answered: {', '.join(missing)}")

    return cleaned


def _loaded(booking: Bookings) -> Bookings:
    """Touch relationships the API layer reads, so the object survives session close."""
    _ = booking.event_type
    for answer in booking.answers:
        _ = answer.question
    return booking

"""Tests for moving a confirmed booking to a new time."""

import json

import pytest

from slotbook.models import BookingAnswers, Bookings
from slotbook.services.errors import InvalidTransition, NotFound, SlotUnavailable, ValidationError
from slotbook.services.events import NOTIFICATIONS_QUEUE
from tests.conftest import MONDAY, NOW, make_booking, make_event_type, utc


class TestReschedule:
    def test_move_to_free_time(self, db, ledger, session_factory):
        event_type = make_event_type(db)
        original = make_booking(db, event_type, utc(MONDAY, 14))

        moved = ledger.reschedule(original.id, utc(MONDAY, 15), timezone_name="Asia/Tokyo")

        assert moved.id != original.id
        assert moved.status == "CONFIRMED"
        assert moved.rescheduled_from_id == original.id
        assert moved.start_time == utc(MONDAY, 15)
        assert moved.end_time == utc(MONDAY, 15, 30)
        assert moved.timezone == "Asia/Tokyo"
        assert moved.booker_email == original.booker_email

        with session_factory() as s:
            assert s.get(Bookings, original.id).status == "RESCHEDULED"

    def test_keeps_timezone_by_default(self, db, ledger):
        event_type = make_event_type(db)
        original = make_booking(db, event_type, utc(MONDAY, 14))
        assert ledger.reschedule(original.id, utc(MONDAY, 15)).timezone == "UTC"

    def test_conflict_leaves_original_untouched(self, db, ledger, session_factory):
        event_type = make_event_type(db)
        original = make_booking(db, event_type, utc(MONDAY, 14))
        make_booking(db, event_type, utc(MONDAY, 15))

        with pytest.raises(SlotUnavailable):
            ledger.reschedule(original.id, utc(MONDAY, 15, 15))

        with session_factory() as s:
            assert s.get(Bookings, original.id).status == "CONFIRMED"
            assert s.query(Bookings).count() == 2

    def test_overlap_with_itself_allowed(self, db, ledger):
        event_type = make_event_type(db)
        original = make_booking(db, event_type, utc(MONDAY, 14))
        moved = ledger.reschedule(original.id, utc(MONDAY, 14, 15))
        assert moved.start_time == utc(MONDAY, 14, 15)

    def test_answers_carried_over(self, db, ledger):
        event_type = make_event_type(db, questions=[{"question": "Topic", "type": "TEXT"}])
        original = make_booking(db, event_type, utc(MONDAY, 14))
        db.add(BookingAnswers(booking_id=original.id, question_id=event_type.questions[0].id, answer="Roadmap"))
        db.commit()

        moved = ledger.reschedule(original.id, utc(MONDAY, 16))
        assert [a.answer for a in moved.answers] == ["Roadmap"]

    def test_publishes_both_views(self, db, ledger, redis):
        event_type = make_event_type(db)
        original = make_booking(db, event_type, utc(MONDAY, 14))
        ledger.reschedule(original.id, utc(MONDAY, 15))

        event = json.loads(redis.lindex(NOTIFICATIONS_QUEUE, -1))
        assert event["type"] == "booking_rescheduled"
        assert event["previous"]["booking_id"] == original.id
        assert event["previous"]["status"] == "RESCHEDULED"
        assert event["booking"]["rescheduled_from_id"] == original.id

    def test_cannot_reschedule_twice(self, db, ledger):
        event_type = make_event_type(db)
        original = make_booking(db, event_type, utc(MONDAY, 14))
        ledger.reschedule(original.id, utc(MONDAY, 15))
        with pytest.raises(InvalidTransition):
            ledger.reschedule(original.id, utc(MONDAY, 16))

    def test_cancelled_cannot_be_rescheduled(self, db, ledger):
        event_type = make_event_type(db)
        original = make_booking(db, event_type, utc(MONDAY, 14), status="CANCELLED")
        with pytest.raises(InvalidTransition):
            ledger.reschedule(original.id, utc(MONDAY, 15))

    def test_past_time_rejected(self, db, ledger):
        event_type = make_event_type(db)
        original = make_booking(db, event_type, utc(MONDAY, 14))
        with pytest.raises(ValidationError):
            ledger.reschedule(original.id, NOW)

    def test_naive_time_rejected(self, db, ledger):
        event_type = make_event_type(db)
        original = make_booking(db, event_type, utc(MONDAY, 14))
        with pytest.raises(ValidationError):
            ledger.reschedule(original.id, utc(MONDAY, 15).replace(tzinfo=None))

    def test_unknown_booking(self, ledger):
        with pytest.raises(NotFound):
            ledger.reschedule(777, utc(MONDAY, 15))

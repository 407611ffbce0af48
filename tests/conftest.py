"""Shared test fixtures and helpers."""

import os

# Settings are read at import time; keep tests off real services
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["RESEND_API_KEY"] = ""

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Optional  # noqa: E402

import fakeredis  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from slotbook.database import build_engine  # noqa: E402
from slotbook.models import (  # noqa: E402
    AvailabilityRules,
    AvailabilitySchedules,
    Base,
    BookingQuestions,
    Bookings,
    DateOverrides,
    EventTypes,
    Hosts,
)
from slotbook.services.ledger import BookingLedger  # noqa: E402

HOST_ID = 1

# 2030-06-03 is a Monday
MONDAY = datetime(2030, 6, 3, tzinfo=timezone.utc).date()
NOW = datetime(2030, 6, 1, 8, 0, tzinfo=timezone.utc)

WEEKDAYS_9_TO_5 = [(day, "09:00", "17:00") for day in range(1, 6)]


def utc(day, hh: int, mm: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hh, mm, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def ledger(session_factory, redis):
    return BookingLedger(
        session_factory=session_factory,
        redis=redis,
        lock_ttl_seconds=5.0,
        lock_wait_seconds=5.0,
        clock=lambda: NOW,
    )


def make_host(db) -> Hosts:
    host = db.get(Hosts, HOST_ID)
    if host is None:
        host = Hosts(id=HOST_ID, name="Ada Host", email="host@example.com", timezone="UTC")
        db.add(host)
        db.flush()
    return host


def make_schedule(
    db,
    rules: Optional[list[tuple[int, str, str]]] = None,
    tz: str = "UTC",
    overrides: Optional[list[dict]] = None,
    is_default: bool = False,
) -> AvailabilitySchedules:
    make_host(db)
    schedule = AvailabilitySchedules(
        host_id=HOST_ID,
        name="Working Hours",
        timezone=tz,
        is_default=is_default,
        rules=[
            AvailabilityRules(day_of_week=d, start_time=s, end_time=e)
            for d, s, e in (WEEKDAYS_9_TO_5 if rules is None else rules)
        ],
        overrides=[DateOverrides(**o) for o in overrides or []],
    )
    db.add(schedule)
    db.commit()
    return schedule


def make_event_type(
    db,
    slug: str = "intro",
    duration: int = 30,
    buffer_before: int = 0,
    buffer_after: int = 0,
    rules: Optional[list[tuple[int, str, str]]] = None,
    tz: str = "UTC",
    overrides: Optional[list[dict]] = None,
    questions: Optional[list[dict]] = None,
    is_active: bool = True,
) -> EventTypes:
    schedule = make_schedule(db, rules=rules, tz=tz, overrides=overrides)
    event_type = EventTypes(
        host_id=HOST_ID,
        title=slug.title(),
        slug=slug,
        duration=duration,
        buffer_time_before=buffer_before,
        buffer_time_after=buffer_after,
        is_active=is_active,
        availability_schedule_id=schedule.id,
        questions=[
            BookingQuestions(order=i, **q) for i, q in enumerate(questions or [])
        ],
    )
    db.add(event_type)
    db.commit()
    return event_type


def make_booking(
    db,
    event_type: EventTypes,
    start: datetime,
    end: Optional[datetime] = None,
    status: str = "CONFIRMED",
) -> Bookings:
    booking = Bookings(
        event_type_id=event_type.id,
        host_id=HOST_ID,
        booker_name="Grace Booker",
        booker_email="grace@example.com",
        start_time=start,
        end_time=end or start + timedelta(minutes=event_type.duration),
        timezone="UTC",
        status=status,
    )
    db.add(booking)
    db.commit()
    return booking

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

Base = declarative_base()
metadata = Base.metadata


class UTCDateTime(TypeDecorator):
    """Stores aware datetimes as naive UTC, returns them as aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime passed to a UTC column")
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Hosts(Base):
    __tablename__ = 'hosts'

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True)
    timezone = Column(Text, nullable=False, default='Asia/Kolkata')
    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)

    event_types = relationship('EventTypes', back_populates='host')
    schedules = relationship('AvailabilitySchedules', back_populates='host')


class AvailabilitySchedules(Base):
    __tablename__ = 'availability_schedules'

    id = Column(Integer, primary_key=True)
    host_id = Column(ForeignKey('hosts.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    timezone = Column(Text, nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)

    # at most one default schedule per host
    __table_args__ = (
        Index(
            'uq_availability_schedules_one_default',
            'host_id',
            unique=True,
            sqlite_where=text('is_default'),
            postgresql_where=text('is_default'),
        ),
    )

    host = relationship('Hosts', back_populates='schedules')
    rules = relationship(
        'AvailabilityRules',
        back_populates='schedule',
        cascade='all, delete-orphan',
        order_by='AvailabilityRules.day_of_week',
    )
    overrides = relationship(
        'DateOverrides',
        back_populates='schedule',
        cascade='all, delete-orphan',
        order_by='DateOverrides.date',
    )
    event_types = relationship('EventTypes', back_populates='schedule')


class AvailabilityRules(Base):
    __tablename__ = 'availability_rules'

    id = Column(Integer, primary_key=True)
    schedule_id = Column(
        ForeignKey('availability_schedules.id', ondelete='CASCADE'), nullable=False
    )
    # 0 = Sunday ... 6 = Saturday
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)

    schedule = relationship('AvailabilitySchedules', back_populates='rules')


class DateOverrides(Base):
    __tablename__ = 'date_overrides'
    __table_args__ = (
        UniqueConstraint('schedule_id', 'date', name='uq_date_override_schedule_date'),
    )

    id = Column(Integer, primary_key=True)
    schedule_id = Column(
        ForeignKey('availability_schedules.id', ondelete='CASCADE'), nullable=False
    )
    date = Column(Date, nullable=False)
    is_blocked = Column(Boolean, nullable=False, default=False)
    start_time = Column(Text)
    end_time = Column(Text)

    schedule = relationship('AvailabilitySchedules', back_populates='overrides')


class EventTypes(Base):
    __tablename__ = 'event_types'

    id = Column(Integer, primary_key=True)
    host_id = Column(ForeignKey('hosts.id', ondelete='CASCADE'), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text)
    slug = Column(Text, nullable=False, unique=True)
    duration = Column(Integer, nullable=False)
    buffer_time_before = Column(Integer, nullable=False, default=0)
    buffer_time_after = Column(Integer, nullable=False, default=0)
    color = Column(Text, nullable=False, default='#6366f1')
    is_active = Column(Boolean, nullable=False, default=True)
    availability_schedule_id = Column(
        ForeignKey('availability_schedules.id', ondelete='SET NULL')
    )
    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)

    host = relationship('Hosts', back_populates='event_types')
    schedule = relationship('AvailabilitySchedules', back_populates='event_types')
    questions = relationship(
        'BookingQuestions',
        back_populates='event_type',
        cascade='all, delete-orphan',
        order_by='BookingQuestions.order',
    )
    bookings = relationship('Bookings', back_populates='event_type', passive_deletes=True)


class BookingQuestions(Base):
    __tablename__ = 'booking_questions'

    id = Column(Integer, primary_key=True)
    event_type_id = Column(ForeignKey('event_types.id', ondelete='CASCADE'), nullable=False)
    question = Column(Text, nullable=False)
    type = Column(Text, nullable=False, default='TEXT')
    is_required = Column(Boolean, nullable=False, default=False)
    # list[str]; serialized by the JSON column type only
    options = Column(JSON)
    order = Column(Integer, nullable=False, default=0)

    event_type = relationship('EventTypes', back_populates='questions')
    answers = relationship('BookingAnswers', back_populates='question', passive_deletes=True)


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index('ix_bookings_event_type_status_start', 'event_type_id', 'status', 'start_time'),
    )

    id = Column(Integer, primary_key=True)
    event_type_id = Column(ForeignKey('event_types.id', ondelete='CASCADE'), nullable=False)
    host_id = Column(ForeignKey('hosts.id', ondelete='CASCADE'), nullable=False)
    booker_name = Column(Text, nullable=False)
    booker_email = Column(Text, nullable=False)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    timezone = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default='CONFIRMED')
    rescheduled_from_id = Column(ForeignKey('bookings.id', ondelete='SET NULL'))
    cancellation_reason = Column(Text)
    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    event_type = relationship('EventTypes', back_populates='bookings')
    rescheduled_from = relationship('Bookings', remote_side=[id])
    answers = relationship(
        'BookingAnswers',
        back_populates='booking',
        cascade='all, delete-orphan',
    )


class BookingAnswers(Base):
    __tablename__ = 'booking_answers'
    __table_args__ = (
        UniqueConstraint('booking_id', 'question_id', name='uq_booking_answer_question'),
    )

    id = Column(Integer, primary_key=True)
    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)
    question_id = Column(ForeignKey('booking_questions.id', ondelete='CASCADE'), nullable=False)
    answer = Column(Text, nullable=False)

    booking = relationship('Bookings', back_populates='answers')
    question = relationship('BookingQuestions', back_populates='answers')

# slotbook/schemas/bookings.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator


class BookingEventType(BaseModel):
    id: int
    title: str
    slug: str
    duration: int
    color: str

    model_config = {"from_attributes": True}


class BookingAnswerRead(BaseModel):
    question_id: int
    question: Optional[str] = None
    answer: str

    model_config = {"from_attributes": True}

    @field_validator("question", mode="before")
    @classmethod
    def question_text(cls, v):
        # ORM relationship → its text
        return getattr(v, "question", v)


class BookingRead(BaseModel):
    id: int
    event_type_id: int
    booker_name: str
    booker_email: str
    start_time: datetime
    end_time: datetime
    timezone: str
    status: str
    cancellation_reason: Optional[str] = None
    rescheduled_from_id: Optional[int] = None
    created_at: datetime
    event_type: Optional[BookingEventType] = None
    answers: list[BookingAnswerRead] = []

    model_config = {"from_attributes": True}


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingReschedule(BaseModel):
    new_start_time: datetime
    timezone: Optional[str] = None

    @field_validator("new_start_time")
    @classmethod
    def require_offset(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("new_start_time must include a UTC offset")
        return v


class BookingStats(BaseModel):
    upcoming: int
    today: int
    total: int
    cancelled: int

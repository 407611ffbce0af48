# slotbook/schemas/public.py

from typing import Optional
from pydantic import BaseModel, Field, field_validator

from ..services.scheduling.config import is_valid_time_str
from .event_types import BookingQuestionRead


class PublicHost(BaseModel):
    name: str
    timezone: str

    model_config = {"from_attributes": True}


class PublicEventType(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    slug: str
    duration: int
    color: str
    host: PublicHost
    questions: list[BookingQuestionRead] = []

    model_config = {"from_attributes": True}


class SlotRead(BaseModel):
    time: str
    available: bool = True


class SlotsResponse(BaseModel):
    date: str
    timezone: str
    slots: list[SlotRead]


class DatesResponse(BaseModel):
    month: int
    year: int
    available_dates: list[str]


class AnswerIn(BaseModel):
    question_id: int
    answer: str


class PublicBookingCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    date: str
    time: str
    timezone: Optional[str] = None
    answers: list[AnswerIn] = []

    @field_validator("time")
    @classmethod
    def check_time(cls, v: str) -> str:
        if not is_valid_time_str(v) or v == "24:00":
            raise ValueError(f"time must be HH:MM, got {v!r}")
        return v

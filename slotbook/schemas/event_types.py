# slotbook/schemas/event_types.py

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

QuestionType = Literal["TEXT", "TEXTAREA", "SELECT", "RADIO", "CHECKBOX"]


class BookingQuestionIn(BaseModel):
    question: str = Field(min_length=1)
    type: QuestionType = "TEXT"
    is_required: bool = False
    options: Optional[list[str]] = None

    @model_validator(mode="after")
    def check_options(self):
        if self.type in ("SELECT", "RADIO") and not self.options:
            raise ValueError(f"{self.type} question needs options")
        return self


class BookingQuestionRead(BaseModel):
    id: int
    question: str
    type: str
    is_required: bool
    options: Optional[list[str]] = None
    order: int

    model_config = {"from_attributes": True}


class EventTypeCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    slug: str = Field(min_length=1, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    duration: int = Field(gt=0, le=1440)
    buffer_time_before: int = Field(0, ge=0, le=720)
    buffer_time_after: int = Field(0, ge=0, le=720)
    color: str = "#6366f1"
    availability_schedule_id: Optional[int] = None
    questions: list[BookingQuestionIn] = []


class EventTypeUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0, le=1440)
    buffer_time_before: Optional[int] = Field(None, ge=0, le=720)
    buffer_time_after: Optional[int] = Field(None, ge=0, le=720)
    color: Optional[str] = None
    is_active: Optional[bool] = None
    availability_schedule_id: Optional[int] = None
    # None = keep existing questions, list = replace them
    questions: Optional[list[BookingQuestionIn]] = None


class EventTypeRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    slug: str
    duration: int
    buffer_time_before: int
    buffer_time_after: int
    color: str
    is_active: bool
    availability_schedule_id: Optional[int] = None
    questions: list[BookingQuestionRead] = []
    created_at: datetime

    model_config = {"from_attributes": True}

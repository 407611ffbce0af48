# slotbook/schemas/availability.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from ..services.scheduling.config import is_valid_time_str, time_str_to_minutes


def _check_hhmm(v: Optional[str]) -> Optional[str]:
    if v is not None and not is_valid_time_str(v):
        raise ValueError(f"time must be HH:MM, got {v!r}")
    return v


class AvailabilityRuleIn(BaseModel):
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: str
    end_time: str

    check_hhmm = field_validator("start_time", "end_time")(_check_hhmm)

    @model_validator(mode="after")
    def check_order(self):
        if time_str_to_minutes(self.start_time) >= time_str_to_minutes(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityRuleRead(BaseModel):
    id: int
    day_of_week: int
    start_time: str
    end_time: str

    model_config = {"from_attributes": True}


class DateOverrideCreate(BaseModel):
    date: date
    is_blocked: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    check_hhmm = field_validator("start_time", "end_time")(_check_hhmm)

    @model_validator(mode="after")
    def check_window(self):
        if self.is_blocked:
            self.start_time = None
            self.end_time = None
            return self
        if not self.start_time or not self.end_time:
            raise ValueError("start_time and end_time are required unless is_blocked")
        if time_str_to_minutes(self.start_time) >= time_str_to_minutes(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class DateOverrideUpdate(BaseModel):
    is_blocked: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    check_hhmm = field_validator("start_time", "end_time")(_check_hhmm)

    @model_validator(mode="after")
    def check_window(self):
        if self.is_blocked:
            self.start_time = None
            self.end_time = None
            return self
        if not self.start_time or not self.end_time:
            raise ValueError("start_time and end_time are required unless is_blocked")
        if time_str_to_minutes(self.start_time) >= time_str_to_minutes(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class DateOverrideRead(BaseModel):
    id: int
    schedule_id: int
    date: date
    is_blocked: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    model_config = {"from_attributes": True}


class ScheduleCreate(BaseModel):
    name: str = Field(min_length=1)
    timezone: Optional[str] = None
    is_default: bool = False
    rules: list[AvailabilityRuleIn] = []


class ScheduleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    timezone: Optional[str] = None
    is_default: Optional[bool] = None
    # None = keep existing rules, [] = clear them
    rules: Optional[list[AvailabilityRuleIn]] = None


class ScheduleRead(BaseModel):
    id: int
    name: str
    timezone: str
    is_default: bool
    rules: list[AvailabilityRuleRead] = []
    overrides: list[DateOverrideRead] = []
    created_at: datetime

    model_config = {"from_attributes": True}

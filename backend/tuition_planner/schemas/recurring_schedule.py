from __future__ import annotations

from datetime import date
import re

from pydantic import BaseModel, Field, field_validator, model_validator

from tuition_planner.models.recurring_schedule import WeekDay

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    # 24:00 is a valid end of day for the last slot.
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


class RecurringScheduleBase(BaseModel):
    label: str | None = Field(default=None, max_length=100)
    start_time: str = Field(min_length=5, max_length=5)
    end_time: str = Field(min_length=5, max_length=5)
    start_date: date
    end_date: date | None = None
    max_students: int = Field(default=4, ge=1, le=100)
    days: list[WeekDay] = Field(min_length=1, max_length=7)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @field_validator("days")
    @classmethod
    def dedupe_days(cls, value: list[WeekDay]) -> list[WeekDay]:
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def validate_order(self) -> "RecurringScheduleBase":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class RecurringScheduleCreate(RecurringScheduleBase):
    pass


class RecurringScheduleOut(BaseModel):
    id: int
    label: str | None
    start_time: str
    end_time: str
    start_date: date
    end_date: date | None
    max_students: int
    days: list[WeekDay] = Field(validation_alias="day_codes")

    model_config = {"from_attributes": True}


class DayAssignmentBase(BaseModel):
    recurring_schedule_id: int = Field(ge=1)
    day: WeekDay
    student_id: int = Field(ge=1)


class DayAssignmentCreate(DayAssignmentBase):
    pass


class DayAssignmentOut(DayAssignmentBase):
    id: int

    model_config = {"from_attributes": True}

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.config import get_settings


def to_minutes(hour: int, minute: int) -> int:
    return hour * 60 + minute


class TimeSlot(BaseModel):
    """One occupied interval of a weekly timetable, [start, end)."""

    model_config = ConfigDict(extra="allow")

    start_hour: int = Field(ge=0, le=23)
    start_minute: int = Field(ge=0, le=59)
    end_hour: int = Field(ge=0, le=23)
    end_minute: int = Field(ge=0, le=59)
    type: Literal["course", "blocker"] = "course"
    course_id: str | None = None
    course_code: str | None = None
    blocker_reason: str | None = None
    hall_ids: list[str] = Field(default_factory=list)
    faculty_ids: list[str] = Field(default_factory=list)
    hall_group_ids: list[str] = Field(default_factory=list)
    faculty_group_ids: list[str] = Field(default_factory=list)
    student_ids: list[str] = Field(default_factory=list)
    student_group_ids: list[str] = Field(default_factory=list)

    @property
    def start(self) -> int:
        return to_minutes(self.start_hour, self.start_minute)

    @property
    def end(self) -> int:
        return to_minutes(self.end_hour, self.end_minute)

    @model_validator(mode="after")
    def validate_order(self) -> "TimeSlot":
        if self.end <= self.start:
            raise ValueError("Slot end must be after slot start")
        return self


class WorkingWindow(BaseModel):
    start_hour: int = Field(ge=0, le=23)
    start_minute: int = Field(ge=0, le=59)
    end_hour: int = Field(ge=0, le=23)
    end_minute: int = Field(ge=0, le=59)

    @property
    def start(self) -> int:
        return to_minutes(self.start_hour, self.start_minute)

    @property
    def end(self) -> int:
        return to_minutes(self.end_hour, self.end_minute)

    @model_validator(mode="after")
    def validate_order(self) -> "WorkingWindow":
        if self.end <= self.start:
            raise ValueError("Working hours must end after they start")
        return self


class WorkingHoursFields(BaseModel):
    start_hour: int = Field(default_factory=lambda: get_settings().default_start_hour, ge=0, le=23)
    start_minute: int = Field(default_factory=lambda: get_settings().default_start_minute, ge=0, le=59)
    end_hour: int = Field(default_factory=lambda: get_settings().default_end_hour, ge=0, le=23)
    end_minute: int = Field(default_factory=lambda: get_settings().default_end_minute, ge=0, le=59)
    timetable: dict[str, list[TimeSlot]] | None = None

    @model_validator(mode="after")
    def validate_window(self) -> "WorkingHoursFields":
        if to_minutes(self.end_hour, self.end_minute) <= to_minutes(self.start_hour, self.start_minute):
            raise ValueError("Working hours must end after they start")
        return self


class WorkingHoursUpdateFields(BaseModel):
    start_hour: int | None = Field(default=None, ge=0, le=23)
    start_minute: int | None = Field(default=None, ge=0, le=59)
    end_hour: int | None = Field(default=None, ge=0, le=23)
    end_minute: int | None = Field(default=None, ge=0, le=59)
    timetable: dict[str, list[TimeSlot]] | None = None


class AvailabilityGap(BaseModel):
    day: str
    start_hour: int
    start_minute: int
    duration: int

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.timetable import WorkingHoursFields, WorkingHoursUpdateFields


class ResourceOutBase(BaseModel):
    id: str
    session_id: str
    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int
    timetable: dict[str, list[dict]]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


def _coerce_digital_id(value):
    # Digital ids arrive as numbers from spreadsheet imports.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value.strip() if isinstance(value, str) else value


class StudentCreate(WorkingHoursFields):
    digital_id: str = Field(min_length=1, max_length=50)

    coerce_digital_id = field_validator("digital_id", mode="before")(_coerce_digital_id)


class StudentUpdate(WorkingHoursUpdateFields):
    digital_id: str | None = Field(default=None, min_length=1, max_length=50)

    coerce_digital_id = field_validator("digital_id", mode="before")(_coerce_digital_id)


class StudentOut(ResourceOutBase):
    digital_id: str


class FacultyCreate(WorkingHoursFields):
    name: str = Field(min_length=1, max_length=200)
    short_form: str | None = Field(default=None, max_length=50)


class FacultyUpdate(WorkingHoursUpdateFields):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    short_form: str | None = Field(default=None, max_length=50)


class FacultyOut(ResourceOutBase):
    name: str
    short_form: str | None = None


class HallCreate(WorkingHoursFields):
    name: str = Field(min_length=1, max_length=100)
    building: str = Field(min_length=1, max_length=200)
    floor: str = Field(min_length=1, max_length=50)
    short_form: str | None = Field(default=None, max_length=50)


class HallUpdate(WorkingHoursUpdateFields):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    building: str | None = Field(default=None, min_length=1, max_length=200)
    floor: str | None = Field(default=None, min_length=1, max_length=50)
    short_form: str | None = Field(default=None, max_length=50)


class HallOut(ResourceOutBase):
    name: str
    building: str
    floor: str
    short_form: str | None = None

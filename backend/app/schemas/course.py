from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.models.kinds import CourseRelation
from app.schemas.timetable import TimeSlot


def _normalize_code(value):
    return value.strip().upper() if isinstance(value, str) else value


def _normalize_name(value):
    return value.strip() if isinstance(value, str) else value


class CourseLinkFields(BaseModel):
    compulsory_faculty_ids: list[str] | None = None
    compulsory_hall_ids: list[str] | None = None
    compulsory_faculty_group_ids: list[str] | None = None
    compulsory_hall_group_ids: list[str] | None = None
    student_ids: list[str] | None = None
    student_group_ids: list[str] | None = None
    hall_group_required_counts: dict[str, int] = Field(default_factory=dict)

    @field_validator("hall_group_required_counts")
    @classmethod
    def validate_required_counts(cls, value: dict[str, int]) -> dict[str, int]:
        invalid = sorted(key for key, count in value.items() if count < 1)
        if invalid:
            raise ValueError(f"required_count must be at least 1 for: {', '.join(invalid)}")
        return value


class CourseCreate(CourseLinkFields):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    class_duration: int = Field(default=50, ge=1, le=600)
    sessions_per_lecture: int = Field(default=1, ge=1, le=12)
    total_sessions: int = Field(default=1, ge=1, le=200)
    timetable: dict[str, list[TimeSlot]] | None = None

    normalize_code = field_validator("code", mode="before")(_normalize_code)
    normalize_name = field_validator("name", mode="before")(_normalize_name)


class CourseUpdate(CourseLinkFields):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    class_duration: int | None = Field(default=None, ge=1, le=600)
    sessions_per_lecture: int | None = Field(default=None, ge=1, le=12)
    total_sessions: int | None = Field(default=None, ge=1, le=200)
    timetable: dict[str, list[TimeSlot]] | None = None

    normalize_code = field_validator("code", mode="before")(_normalize_code)
    normalize_name = field_validator("name", mode="before")(_normalize_name)


class CourseOut(BaseModel):
    id: str
    session_id: str
    code: str
    name: str
    class_duration: int
    sessions_per_lecture: int
    total_sessions: int
    scheduled_count: int
    timetable: dict[str, list[dict]]
    compulsory_faculty_ids: list[str] = Field(default_factory=list)
    compulsory_hall_ids: list[str] = Field(default_factory=list)
    compulsory_faculty_group_ids: list[str] = Field(default_factory=list)
    compulsory_hall_group_ids: list[str] = Field(default_factory=list)
    student_ids: list[str] = Field(default_factory=list)
    student_group_ids: list[str] = Field(default_factory=list)
    hall_group_required_counts: dict[str, int] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RequirementPayload(BaseModel):
    target_ids: list[str] = Field(min_length=1, max_length=5000)
    required_count: int = Field(default=1, ge=1, le=100)


class RequirementAddResult(BaseModel):
    relation: CourseRelation
    added: list[str]
    skipped: int


class RequirementRemoveResult(BaseModel):
    relation: CourseRelation
    removed: int


class ScheduledCountUpdate(BaseModel):
    # Left untyped so non-integer input reaches the service and is reported as INVALID_DELTA.
    increment: Any = None


class ScheduledCountOut(BaseModel):
    id: str
    code: str
    name: str
    scheduled_count: int
    total_sessions: int

    model_config = {"from_attributes": True}

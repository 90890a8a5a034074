from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.course import CourseOut
from app.schemas.group import GroupOut
from app.schemas.resource import FacultyOut, HallOut, StudentOut


class SessionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    details: str | None = Field(default=None, max_length=5000)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class SessionUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    details: str | None = Field(default=None, max_length=5000)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class SessionOut(BaseModel):
    id: str
    name: str
    details: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class SessionCopyRequest(BaseModel):
    source_session_id: str = Field(min_length=1)
    target_session_id: str = Field(min_length=1)

    @model_validator(mode="after")
    def validate_distinct(self) -> "SessionCopyRequest":
        if self.source_session_id == self.target_session_id:
            raise ValueError("Source and target sessions cannot be the same")
        return self


class SessionStats(BaseModel):
    students: int = 0
    faculty: int = 0
    halls: int = 0
    courses: int = 0
    student_groups: int = 0
    faculty_groups: int = 0
    hall_groups: int = 0


class DeleteReport(BaseModel):
    """Rows removed per category by a session cascade."""

    course_student_enrollments: int = 0
    course_student_group_enrollments: int = 0
    compulsory_faculty_groups: int = 0
    compulsory_hall_groups: int = 0
    compulsory_faculty: int = 0
    compulsory_halls: int = 0
    courses: int = 0
    student_group_memberships: int = 0
    faculty_group_memberships: int = 0
    hall_group_memberships: int = 0
    students: int = 0
    student_groups: int = 0
    faculty: int = 0
    faculty_groups: int = 0
    halls: int = 0
    hall_groups: int = 0
    sessions: int = 0


class MembershipRecord(BaseModel):
    resource_id: str
    group_id: str


class ExportedSession(BaseModel):
    id: str
    name: str
    details: str | None = None
    exported_at: datetime


class SessionSnapshot(BaseModel):
    session: ExportedSession
    students: list[StudentOut] = Field(default_factory=list)
    faculty: list[FacultyOut] = Field(default_factory=list)
    halls: list[HallOut] = Field(default_factory=list)
    student_groups: list[GroupOut] = Field(default_factory=list)
    faculty_groups: list[GroupOut] = Field(default_factory=list)
    hall_groups: list[GroupOut] = Field(default_factory=list)
    student_group_memberships: list[MembershipRecord] = Field(default_factory=list)
    faculty_group_memberships: list[MembershipRecord] = Field(default_factory=list)
    hall_group_memberships: list[MembershipRecord] = Field(default_factory=list)
    courses: list[CourseOut] = Field(default_factory=list)


class ImportReport(BaseModel):
    students: int = 0
    faculty: int = 0
    halls: int = 0
    student_groups: int = 0
    faculty_groups: int = 0
    hall_groups: int = 0
    memberships: int = 0
    courses: int = 0
    course_links: int = 0
    skipped_links: int = 0


class SessionCopyResult(BaseModel):
    cleared: DeleteReport
    imported: ImportReport

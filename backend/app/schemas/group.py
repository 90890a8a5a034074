from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.timetable import WorkingHoursFields, WorkingHoursUpdateFields


def _strip_name(value):
    return value.strip() if isinstance(value, str) else value


class GroupCreate(WorkingHoursFields):
    group_name: str = Field(min_length=1, max_length=100)

    normalize_name = field_validator("group_name", mode="before")(_strip_name)


class GroupUpdate(WorkingHoursUpdateFields):
    group_name: str | None = Field(default=None, min_length=1, max_length=100)

    normalize_name = field_validator("group_name", mode="before")(_strip_name)


class GroupOut(BaseModel):
    id: str
    session_id: str
    group_name: str
    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int
    timetable: dict[str, list[dict]]
    member_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class MemberIdsPayload(BaseModel):
    resource_ids: list[str] = Field(min_length=1, max_length=5000)


class MembershipOut(BaseModel):
    id: str
    group_id: str
    resource_id: str


class MembershipAddResult(BaseModel):
    added: list[MembershipOut]
    failed: int
    message: str


class MembershipRemoveResult(BaseModel):
    removed: int
    message: str


class GroupDeleteReport(BaseModel):
    memberships: int = 0
    course_links: int = 0

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import Identity, Role, get_current_identity, get_db, require_roles
from app.models import ResourceKind
from app.schemas.group import (
    GroupCreate,
    GroupDeleteReport,
    GroupOut,
    GroupUpdate,
    MemberIdsPayload,
    MembershipAddResult,
    MembershipRemoveResult,
)
from app.schemas.resource import FacultyOut, HallOut, StudentOut
from app.services import groups

MEMBER_OUT = {
    ResourceKind.student: StudentOut,
    ResourceKind.faculty: FacultyOut,
    ResourceKind.hall: HallOut,
}


def build_router(kind: ResourceKind) -> APIRouter:
    router = APIRouter()
    member_out = MEMBER_OUT[kind]

    @router.get("/", response_model=list[GroupOut])
    def list_items(
        session_id: str = Query(min_length=1),
        identity: Identity = Depends(get_current_identity),
        db: Session = Depends(get_db),
    ) -> list[GroupOut]:
        return [groups.group_to_out(db, kind, group) for group in groups.list_groups(db, kind, session_id)]

    @router.post("/", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
    def create_item(
        payload: GroupCreate,
        session_id: str = Query(min_length=1),
        identity: Identity = Depends(require_roles(Role.admin)),
        db: Session = Depends(get_db),
    ) -> GroupOut:
        group = groups.create_group(db, kind, session_id, payload)
        return groups.group_to_out(db, kind, group)

    @router.get("/{group_id}", response_model=GroupOut)
    def get_item(
        group_id: str,
        identity: Identity = Depends(get_current_identity),
        db: Session = Depends(get_db),
    ) -> GroupOut:
        return groups.group_to_out(db, kind, groups.require_group(db, kind, group_id))

    @router.put("/{group_id}", response_model=GroupOut)
    def update_item(
        group_id: str,
        payload: GroupUpdate,
        identity: Identity = Depends(require_roles(Role.admin)),
        db: Session = Depends(get_db),
    ) -> GroupOut:
        group = groups.update_group(db, kind, group_id, payload)
        return groups.group_to_out(db, kind, group)

    @router.delete("/{group_id}", response_model=GroupDeleteReport)
    def delete_item(
        group_id: str,
        identity: Identity = Depends(require_roles(Role.admin)),
        db: Session = Depends(get_db),
    ) -> GroupDeleteReport:
        return groups.delete_group(db, kind, group_id)

    @router.get("/{group_id}/members", response_model=list[member_out])
    def list_members(
        group_id: str,
        identity: Identity = Depends(get_current_identity),
        db: Session = Depends(get_db),
    ) -> list[Any]:
        return groups.list_members(db, kind, group_id)

    @router.post("/{group_id}/members", response_model=MembershipAddResult)
    def add_members(
        group_id: str,
        payload: MemberIdsPayload,
        identity: Identity = Depends(require_roles(Role.admin)),
        db: Session = Depends(get_db),
    ) -> MembershipAddResult:
        return groups.add_members(db, kind, group_id, payload.resource_ids)

    @router.delete("/{group_id}/members", response_model=MembershipRemoveResult)
    def remove_members(
        group_id: str,
        payload: MemberIdsPayload,
        identity: Identity = Depends(require_roles(Role.admin)),
        db: Session = Depends(get_db),
    ) -> MembershipRemoveResult:
        return groups.remove_members(db, kind, group_id, payload.resource_ids)

    return router


student_groups_router = build_router(ResourceKind.student)
faculty_groups_router = build_router(ResourceKind.faculty)
hall_groups_router = build_router(ResourceKind.hall)

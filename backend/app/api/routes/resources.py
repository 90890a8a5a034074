from typing import Any

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import Identity, Role, get_current_identity, get_db, require_roles
from app.models import ResourceKind
from app.schemas.resource import (
    FacultyCreate,
    FacultyOut,
    FacultyUpdate,
    HallCreate,
    HallOut,
    HallUpdate,
    StudentCreate,
    StudentOut,
    StudentUpdate,
)
from app.schemas.timetable import AvailabilityGap
from app.services import resources


def build_router(
    kind: ResourceKind,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    out_schema: type[BaseModel],
) -> APIRouter:
    router = APIRouter()

    @router.get("/", response_model=list[out_schema])
    def list_items(
        session_id: str = Query(min_length=1),
        identity: Identity = Depends(get_current_identity),
        db: Session = Depends(get_db),
    ) -> list[Any]:
        return resources.list_resources(db, kind, session_id)

    @router.post("/", response_model=out_schema, status_code=status.HTTP_201_CREATED)
    def create_item(
        payload: create_schema,
        session_id: str = Query(min_length=1),
        identity: Identity = Depends(require_roles(Role.admin)),
        db: Session = Depends(get_db),
    ) -> Any:
        return resources.create_resource(db, kind, session_id, payload)

    @router.get("/{resource_id}", response_model=out_schema)
    def get_item(
        resource_id: str,
        identity: Identity = Depends(get_current_identity),
        db: Session = Depends(get_db),
    ) -> Any:
        return resources.require_resource(db, kind, resource_id)

    @router.put("/{resource_id}", response_model=out_schema)
    def update_item(
        resource_id: str,
        payload: update_schema,
        identity: Identity = Depends(require_roles(Role.admin)),
        db: Session = Depends(get_db),
    ) -> Any:
        return resources.update_resource(db, kind, resource_id, payload)

    @router.delete("/{resource_id}")
    def delete_item(
        resource_id: str,
        identity: Identity = Depends(require_roles(Role.admin)),
        db: Session = Depends(get_db),
    ) -> dict:
        return resources.delete_resource(db, kind, resource_id)

    @router.get("/{resource_id}/availability", response_model=list[AvailabilityGap])
    def availability(
        resource_id: str,
        duration: int = Query(default=50, ge=1, le=24 * 60),
        identity: Identity = Depends(get_current_identity),
        db: Session = Depends(get_db),
    ) -> list[AvailabilityGap]:
        return resources.resource_availability(db, kind, resource_id, duration)

    return router


students_router = build_router(ResourceKind.student, StudentCreate, StudentUpdate, StudentOut)
faculty_router = build_router(ResourceKind.faculty, FacultyCreate, FacultyUpdate, FacultyOut)
halls_router = build_router(ResourceKind.hall, HallCreate, HallUpdate, HallOut)

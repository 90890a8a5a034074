from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceInUseError, ResourceNotFoundError
from app.models import CourseRelation, ResourceKind
from app.schemas.timetable import AvailabilityGap
from app.services.registry import COURSE_RELATIONS, kind_spec, relations_targeting
from app.services.sessions import require_session
from app.services.storage import commit, count_where
from app.services.timetable import (
    WINDOW_FIELDS,
    apply_working_hours,
    find_available_gaps,
    validate_timetable,
    window_of,
)

logger = logging.getLogger(__name__)

# Links that must be removed by the caller before the resource can go.
DELETE_GUARDS: dict[ResourceKind, CourseRelation] = {
    ResourceKind.hall: CourseRelation.compulsory_halls,
    ResourceKind.student: CourseRelation.enrolled_students,
}

CLEARABLE_FIELDS = {"short_form"}

ORDERING = {
    ResourceKind.student: "digital_id",
    ResourceKind.faculty: "name",
    ResourceKind.hall: "name",
}


def require_resource(db: Session, kind: ResourceKind | str, resource_id: str) -> Any:
    spec = kind_spec(kind)
    resource = db.get(spec.model, resource_id)
    if resource is None:
        raise ResourceNotFoundError(spec.label, resource_id)
    return resource


def list_resources(db: Session, kind: ResourceKind | str, session_id: str) -> list[Any]:
    spec = kind_spec(kind)
    require_session(db, session_id)
    order_column = getattr(spec.model, ORDERING[spec.kind])
    statement = select(spec.model).where(spec.model.session_id == session_id).order_by(order_column)
    return list(db.execute(statement).scalars())


def create_resource(db: Session, kind: ResourceKind | str, session_id: str, payload: BaseModel) -> Any:
    spec = kind_spec(kind)
    require_session(db, session_id)
    values = payload.model_dump(exclude={"timetable"})
    window = {key: values[key] for key in WINDOW_FIELDS}
    timetable = payload.model_dump(include={"timetable"}).get("timetable")
    values["timetable"] = validate_timetable(timetable, window)

    resource = spec.model(session_id=session_id, **values)
    db.add(resource)
    commit(db, action=f"create {spec.label.lower()}")
    db.refresh(resource)
    logger.info("Created %s %s in session %s", spec.label.lower(), resource.id, session_id)
    return resource


def update_resource(db: Session, kind: ResourceKind | str, resource_id: str, payload: BaseModel) -> Any:
    spec = kind_spec(kind)
    resource = require_resource(db, spec.kind, resource_id)
    data = payload.model_dump(exclude_unset=True)
    apply_working_hours(resource, data)
    for key, value in data.items():
        if value is None and key not in CLEARABLE_FIELDS:
            continue
        setattr(resource, key, value)
    commit(db, action=f"update {spec.label.lower()}")
    db.refresh(resource)
    return resource


def delete_resource(db: Session, kind: ResourceKind | str, resource_id: str) -> dict:
    """Delete a resource with its memberships and unguarded course links.

    Halls still required by a course and students still enrolled are refused
    with ``ResourceInUseError``; those links must be removed first.
    """
    spec = kind_spec(kind)
    resource = require_resource(db, spec.kind, resource_id)

    guard = DELETE_GUARDS.get(spec.kind)
    if guard is not None:
        relation = COURSE_RELATIONS[guard]
        in_use = count_where(db, relation.link_model.id, relation.target_column == resource_id)
        if in_use:
            logger.warning(
                "Refusing to delete %s %s: %d %s link(s) remain",
                spec.label.lower(),
                resource_id,
                in_use,
                guard.value,
            )
            raise ResourceInUseError(spec.label, resource_id, in_use, guard.value)

    memberships = db.execute(
        delete(spec.membership_model).where(spec.member_column == resource_id),
        execution_options={"synchronize_session": False},
    ).rowcount or 0
    course_links = 0
    for relation in relations_targeting(spec.model):
        course_links += db.execute(
            delete(relation.link_model).where(relation.target_column == resource_id),
            execution_options={"synchronize_session": False},
        ).rowcount or 0

    db.delete(resource)
    commit(db, action=f"delete {spec.label.lower()}")
    logger.info(
        "Deleted %s %s (%d memberships, %d course links)",
        spec.label.lower(),
        resource_id,
        memberships,
        course_links,
    )
    return {"success": True, "memberships": memberships, "course_links": course_links}


def resource_availability(
    db: Session, kind: ResourceKind | str, resource_id: str, duration: int
) -> list[AvailabilityGap]:
    resource = require_resource(db, kind, resource_id)
    return find_available_gaps(resource.timetable, window_of(resource), duration)

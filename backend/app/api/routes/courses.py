from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import Identity, Role, get_current_identity, get_db, require_roles
from app.models import CourseRelation, CourseTarget
from app.schemas.course import (
    CourseCreate,
    CourseOut,
    CourseUpdate,
    RequirementAddResult,
    RequirementPayload,
    RequirementRemoveResult,
    ScheduledCountOut,
    ScheduledCountUpdate,
)
from app.services import courses

router = APIRouter()


@router.get("/", response_model=list[CourseOut])
def list_courses(
    session_id: str = Query(min_length=1),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> list[CourseOut]:
    return [courses.course_to_out(db, course) for course in courses.list_courses(db, session_id)]


@router.post("/", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    session_id: str = Query(min_length=1),
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> CourseOut:
    course = courses.create_course(db, session_id, payload)
    return courses.course_to_out(db, course)


@router.get("/for-entity", response_model=list[CourseOut])
def list_courses_for_entity(
    session_id: str = Query(min_length=1),
    entity_type: CourseTarget = Query(),
    entity_id: str = Query(min_length=1),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> list[CourseOut]:
    matched = courses.courses_for_entity(db, session_id, entity_type, entity_id)
    return [courses.course_to_out(db, course) for course in matched]


@router.get("/{course_id}", response_model=CourseOut)
def get_course(
    course_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> CourseOut:
    return courses.course_to_out(db, courses.require_course(db, course_id))


@router.put("/{course_id}", response_model=CourseOut)
def update_course(
    course_id: str,
    payload: CourseUpdate,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> CourseOut:
    course = courses.update_course(db, course_id, payload)
    return courses.course_to_out(db, course)


@router.delete("/{course_id}")
def delete_course(
    course_id: str,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> dict:
    return courses.delete_course(db, course_id)


@router.post("/{course_id}/requirements/{relation}", response_model=RequirementAddResult)
def add_requirements(
    course_id: str,
    relation: CourseRelation,
    payload: RequirementPayload,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> RequirementAddResult:
    return courses.add_requirements(db, course_id, relation, payload.target_ids, payload.required_count)


@router.delete("/{course_id}/requirements/{relation}", response_model=RequirementRemoveResult)
def remove_requirements(
    course_id: str,
    relation: CourseRelation,
    payload: RequirementPayload,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> RequirementRemoveResult:
    return courses.remove_requirements(db, course_id, relation, payload.target_ids)


@router.patch("/{course_id}/scheduled-count", response_model=ScheduledCountOut)
def update_scheduled_count(
    course_id: str,
    payload: ScheduledCountUpdate,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> ScheduledCountOut:
    return courses.adjust_scheduled_count(db, course_id, payload.increment)

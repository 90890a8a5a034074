from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from app.core.exceptions import (
    CourseNotFoundError,
    CrossSessionReferenceError,
    InvalidDeltaError,
    NameConflictError,
    ValidationError,
)
from app.models import Course, CourseRelation, CourseTarget
from app.schemas.course import (
    CourseCreate,
    CourseOut,
    CourseUpdate,
    RequirementAddResult,
    RequirementRemoveResult,
)
from app.schemas.timetable import WorkingWindow
from app.services.registry import COURSE_RELATIONS, RelationSpec
from app.services.sessions import require_session
from app.services.storage import commit
from app.services.timetable import validate_timetable

logger = logging.getLogger(__name__)

# Courses have no working hours of their own; their grid may use the whole day.
COURSE_WINDOW = WorkingWindow(start_hour=0, start_minute=0, end_hour=23, end_minute=59)

LINK_FIELDS = {spec.out_field: spec for spec in COURSE_RELATIONS.values()}

# Portable signed INTEGER range of the scheduled_count column.
MAX_DELTA = 2**31 - 1

TARGET_RELATIONS = {
    CourseTarget.student: CourseRelation.enrolled_students,
    CourseTarget.student_group: CourseRelation.enrolled_student_groups,
    CourseTarget.faculty: CourseRelation.compulsory_faculty,
    CourseTarget.faculty_group: CourseRelation.compulsory_faculty_groups,
    CourseTarget.hall: CourseRelation.compulsory_halls,
    CourseTarget.hall_group: CourseRelation.compulsory_hall_groups,
}


def require_course(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise CourseNotFoundError(course_id)
    return course


def _relation_spec(relation: CourseRelation | str) -> RelationSpec:
    return COURSE_RELATIONS[CourseRelation(relation)]


def _ensure_unique_code(db: Session, session_id: str, code: str, exclude_id: str | None = None) -> None:
    statement = select(Course.id).where(Course.session_id == session_id, Course.code == code)
    if exclude_id is not None:
        statement = statement.where(Course.id != exclude_id)
    if db.execute(statement).first() is not None:
        raise NameConflictError("Course", code)


def _check_targets(db: Session, spec: RelationSpec, session_id: str, target_ids: list[str]) -> list[str]:
    """Return the de-duplicated ids, raising when any is missing or lives in another session."""
    requested = list(dict.fromkeys(target_ids))
    if not requested:
        return requested
    found = set(
        db.execute(
            select(spec.target_model.id).where(
                spec.target_model.id.in_(requested),
                spec.target_model.session_id == session_id,
            )
        ).scalars()
    )
    invalid = [target_id for target_id in requested if target_id not in found]
    if invalid:
        logger.warning("Rejected %d %s id(s) outside session %s", len(invalid), spec.label, session_id)
        raise CrossSessionReferenceError(spec.label, invalid)
    return requested


def make_link(spec: RelationSpec, course_id: str, target_id: str, required_count: int = 1) -> Any:
    values = {spec.course_column.key: course_id, spec.target_column.key: target_id}
    if spec.relation is CourseRelation.compulsory_hall_groups:
        values["required_count"] = required_count
    return spec.link_model(**values)


def _linked_ids(db: Session, spec: RelationSpec, course_id: str) -> list[str]:
    statement = select(spec.target_column).where(spec.course_column == course_id).order_by(spec.target_column)
    return list(db.execute(statement).scalars())


def _replace_links(
    db: Session,
    course: Course,
    spec: RelationSpec,
    target_ids: list[str],
    required_counts: dict[str, int],
) -> None:
    targets = _check_targets(db, spec, course.session_id, target_ids)
    db.execute(
        delete(spec.link_model).where(spec.course_column == course.id),
        execution_options={"synchronize_session": False},
    )
    for target_id in targets:
        db.add(make_link(spec, course.id, target_id, required_counts.get(target_id, 1)))


def course_to_out(db: Session, course: Course) -> CourseOut:
    out = CourseOut(
        id=course.id,
        session_id=course.session_id,
        code=course.code,
        name=course.name,
        class_duration=course.class_duration,
        sessions_per_lecture=course.sessions_per_lecture,
        total_sessions=course.total_sessions,
        scheduled_count=course.scheduled_count,
        timetable=course.timetable,
        created_at=course.created_at,
        updated_at=course.updated_at,
    )
    for field, spec in LINK_FIELDS.items():
        setattr(out, field, _linked_ids(db, spec, course.id))
    hall_groups = COURSE_RELATIONS[CourseRelation.compulsory_hall_groups]
    rows = db.execute(
        select(hall_groups.target_column, hall_groups.link_model.required_count).where(
            hall_groups.course_column == course.id
        )
    ).all()
    out.hall_group_required_counts = {group_id: count for group_id, count in rows}
    return out


def list_courses(db: Session, session_id: str) -> list[Course]:
    require_session(db, session_id)
    statement = select(Course).where(Course.session_id == session_id).order_by(Course.code)
    return list(db.execute(statement).scalars())


def courses_for_entity(
    db: Session,
    session_id: str,
    target: CourseTarget | str,
    target_id: str,
) -> list[Course]:
    """Courses in the session that enroll or require the given entity.

    ``course`` as the target returns every course of the session.
    """
    try:
        target = CourseTarget(target)
    except ValueError as exc:
        raise ValidationError("Invalid entity type", details={"entity_type": str(target)}) from exc
    require_session(db, session_id)

    statement = select(Course).where(Course.session_id == session_id)
    if target is not CourseTarget.course:
        spec = COURSE_RELATIONS[TARGET_RELATIONS[target]]
        linked = select(spec.course_column).where(spec.target_column == target_id)
        statement = statement.where(Course.id.in_(linked))
    return list(db.execute(statement.order_by(Course.code)).scalars())


def _update_required_counts(db: Session, course: Course, required_counts: dict[str, int]) -> None:
    spec = COURSE_RELATIONS[CourseRelation.compulsory_hall_groups]
    linked = set(_linked_ids(db, spec, course.id))
    unlinked = [group_id for group_id in required_counts if group_id not in linked]
    if unlinked:
        raise ValidationError(
            "Required counts given for hall groups not linked to the course",
            details={"course_id": course.id, "hall_group_ids": unlinked},
        )
    for group_id, count in required_counts.items():
        db.execute(
            update(spec.link_model)
            .where(spec.course_column == course.id, spec.target_column == group_id)
            .values(required_count=count),
            execution_options={"synchronize_session": False},
        )


def create_course(db: Session, session_id: str, payload: CourseCreate) -> Course:
    require_session(db, session_id)
    _ensure_unique_code(db, session_id, payload.code)

    timetable = payload.model_dump(include={"timetable"}).get("timetable")
    course = Course(
        session_id=session_id,
        code=payload.code,
        name=payload.name,
        class_duration=payload.class_duration,
        sessions_per_lecture=payload.sessions_per_lecture,
        total_sessions=payload.total_sessions,
        timetable=validate_timetable(timetable, COURSE_WINDOW),
    )
    db.add(course)
    db.flush()
    for field, spec in LINK_FIELDS.items():
        ids = getattr(payload, field)
        if ids:
            _replace_links(db, course, spec, ids, payload.hall_group_required_counts)

    commit(db, action="create course")
    db.refresh(course)
    logger.info("Created course %s (%s) in session %s", course.id, course.code, session_id)
    return course


def update_course(db: Session, course_id: str, payload: CourseUpdate) -> Course:
    """Apply a partial update; any id list that is sent replaces that relation wholesale."""
    course = require_course(db, course_id)
    data = payload.model_dump(exclude_unset=True)
    required_counts = data.pop("hall_group_required_counts", None) or {}

    code = data.pop("code", None)
    if code is not None and code != course.code:
        _ensure_unique_code(db, course.session_id, code, exclude_id=course.id)
        course.code = code

    timetable = data.pop("timetable", None)
    if timetable is not None:
        course.timetable = validate_timetable(timetable, COURSE_WINDOW)

    for field, spec in LINK_FIELDS.items():
        ids = data.pop(field, None)
        if ids is not None:
            _replace_links(db, course, spec, ids, required_counts)
    if required_counts and "compulsory_hall_group_ids" not in payload.model_fields_set:
        _update_required_counts(db, course, required_counts)

    for key, value in data.items():
        if value is not None:
            setattr(course, key, value)

    commit(db, action="update course")
    db.refresh(course)
    return course


def delete_course(db: Session, course_id: str) -> dict:
    course = require_course(db, course_id)
    links = 0
    for spec in COURSE_RELATIONS.values():
        links += db.execute(
            delete(spec.link_model).where(spec.course_column == course_id),
            execution_options={"synchronize_session": False},
        ).rowcount or 0
    db.delete(course)
    commit(db, action="delete course")
    logger.info("Deleted course %s with %d requirement link(s)", course_id, links)
    return {"success": True, "course_links": links}


def add_requirements(
    db: Session,
    course_id: str,
    relation: CourseRelation | str,
    target_ids: list[str],
    required_count: int = 1,
) -> RequirementAddResult:
    """Link targets to a course, skipping pairs that already exist.

    Only membership in the course's session is checked; the targets'
    availability is left to the scheduler.
    """
    spec = _relation_spec(relation)
    course = require_course(db, course_id)
    targets = _check_targets(db, spec, course.session_id, target_ids)

    existing = set(
        db.execute(
            select(spec.target_column).where(spec.course_column == course_id, spec.target_column.in_(targets))
        ).scalars()
    )
    added = [target_id for target_id in targets if target_id not in existing]
    for target_id in added:
        db.add(make_link(spec, course_id, target_id, required_count))
    commit(db, action=f"add {spec.label} requirements")
    return RequirementAddResult(relation=spec.relation, added=added, skipped=len(target_ids) - len(added))


def remove_requirements(
    db: Session,
    course_id: str,
    relation: CourseRelation | str,
    target_ids: list[str],
) -> RequirementRemoveResult:
    spec = _relation_spec(relation)
    require_course(db, course_id)
    removed = db.execute(
        delete(spec.link_model).where(
            spec.course_column == course_id,
            spec.target_column.in_(set(target_ids)),
        ),
        execution_options={"synchronize_session": False},
    ).rowcount or 0
    commit(db, action=f"remove {spec.label} requirements")
    return RequirementRemoveResult(relation=spec.relation, removed=removed)


def _coerce_delta(delta: Any) -> int:
    if isinstance(delta, bool) or not isinstance(delta, Real):
        raise InvalidDeltaError(delta)
    if isinstance(delta, int):
        step = delta
    else:
        value = float(delta)
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidDeltaError(delta)
        step = int(value)
    if abs(step) > MAX_DELTA:
        raise InvalidDeltaError(delta)
    return step


def adjust_scheduled_count(db: Session, course_id: str, delta: Any) -> Course:
    """Add ``delta`` to the course's scheduled count in one atomic UPDATE.

    The count is not clamped: it may drop below zero or exceed
    ``total_sessions``.
    """
    step = _coerce_delta(delta)
    result = db.execute(
        update(Course)
        .where(Course.id == course_id)
        .values(scheduled_count=Course.scheduled_count + step),
        execution_options={"synchronize_session": False},
    )
    if not result.rowcount:
        db.rollback()
        raise CourseNotFoundError(course_id)
    commit(db, action="adjust scheduled count")
    course = require_course(db, course_id)
    db.refresh(course)
    logger.debug("Scheduled count of course %s moved by %d to %d", course_id, step, course.scheduled_count)
    return course

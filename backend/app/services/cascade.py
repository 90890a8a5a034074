"""Ordered removal of everything that hangs off a scheduling session.

Each step is a bulk ``DELETE`` whose row count lands in the ``DeleteReport``.
The rows are removed explicitly even though the foreign keys also cascade, so
the report is exact on every backend. All steps share one transaction: a
failure rolls back and surfaces as ``CascadeFailureError`` carrying the last
completed step and the counts gathered so far.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from sqlalchemy import Delete, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import CascadeFailureError
from app.models import (
    CompulsoryFacultyGroup,
    CompulsoryHallGroup,
    Course,
    CourseCompulsoryFaculty,
    CourseCompulsoryHall,
    CourseStudentEnrollment,
    CourseStudentGroupEnrollment,
    Faculty,
    FacultyGroup,
    FacultyGroupMembership,
    Hall,
    HallGroup,
    HallGroupMembership,
    SchedulingSession,
    Student,
    StudentGroup,
    StudentGroupMembership,
)
from app.schemas.session import DeleteReport
from app.services.sessions import require_session

logger = logging.getLogger(__name__)


def _execute_delete(db: Session, statement: Delete) -> int:
    result = db.execute(statement, execution_options={"synchronize_session": False})
    return result.rowcount or 0


def _cascade_steps(session_id: str, course_ids: list[str], remove_session: bool) -> Iterator[tuple[str, Delete]]:
    if course_ids:
        yield "course_student_enrollments", delete(CourseStudentEnrollment).where(
            CourseStudentEnrollment.course_id.in_(course_ids)
        )
        yield "course_student_group_enrollments", delete(CourseStudentGroupEnrollment).where(
            CourseStudentGroupEnrollment.course_id.in_(course_ids)
        )
        yield "compulsory_faculty_groups", delete(CompulsoryFacultyGroup).where(
            CompulsoryFacultyGroup.course_id.in_(course_ids)
        )
        yield "compulsory_hall_groups", delete(CompulsoryHallGroup).where(
            CompulsoryHallGroup.course_id.in_(course_ids)
        )
        yield "compulsory_faculty", delete(CourseCompulsoryFaculty).where(
            CourseCompulsoryFaculty.course_id.in_(course_ids)
        )
        yield "compulsory_halls", delete(CourseCompulsoryHall).where(
            CourseCompulsoryHall.course_id.in_(course_ids)
        )
    yield "courses", delete(Course).where(Course.session_id == session_id)

    yield "student_group_memberships", delete(StudentGroupMembership).where(
        StudentGroupMembership.student_group_id.in_(
            select(StudentGroup.id).where(StudentGroup.session_id == session_id)
        )
    )
    yield "faculty_group_memberships", delete(FacultyGroupMembership).where(
        FacultyGroupMembership.faculty_group_id.in_(
            select(FacultyGroup.id).where(FacultyGroup.session_id == session_id)
        )
    )
    yield "hall_group_memberships", delete(HallGroupMembership).where(
        HallGroupMembership.hall_group_id.in_(select(HallGroup.id).where(HallGroup.session_id == session_id))
    )

    yield "students", delete(Student).where(Student.session_id == session_id)
    yield "student_groups", delete(StudentGroup).where(StudentGroup.session_id == session_id)
    yield "faculty", delete(Faculty).where(Faculty.session_id == session_id)
    yield "faculty_groups", delete(FacultyGroup).where(FacultyGroup.session_id == session_id)
    yield "halls", delete(Hall).where(Hall.session_id == session_id)
    yield "hall_groups", delete(HallGroup).where(HallGroup.session_id == session_id)

    if remove_session:
        yield "sessions", delete(SchedulingSession).where(SchedulingSession.id == session_id)


def apply_session_cascade(db: Session, session_id: str, *, remove_session: bool) -> DeleteReport:
    """Run every cascade step inside the caller's transaction without committing."""
    require_session(db, session_id)
    counts: dict[str, int] = {}
    last_step: str | None = None
    try:
        course_ids = list(db.execute(select(Course.id).where(Course.session_id == session_id)).scalars())
        last_step = "resolve_scope"
        for name, statement in _cascade_steps(session_id, course_ids, remove_session):
            counts[name] = _execute_delete(db, statement)
            last_step = name
    except SQLAlchemyError as exc:
        logger.error(
            "Cascade for session %s failed after step %s (partial counts: %s)",
            session_id,
            last_step,
            counts,
            exc_info=True,
        )
        raise CascadeFailureError(session_id, last_step, counts) from exc
    return DeleteReport(**counts)


def _run(db: Session, session_id: str, *, remove_session: bool) -> DeleteReport:
    try:
        report = apply_session_cascade(db, session_id, remove_session=remove_session)
    except CascadeFailureError:
        db.rollback()
        raise
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Commit of cascade for session %s failed", session_id, exc_info=True)
        last_step = "sessions" if remove_session else "hall_groups"
        raise CascadeFailureError(session_id, last_step, report.model_dump()) from exc
    db.expire_all()
    logger.info(
        "%s session %s: %s",
        "Deleted" if remove_session else "Cleared",
        session_id,
        report.model_dump(exclude_defaults=True),
    )
    return report


def delete_session(db: Session, session_id: str) -> DeleteReport:
    return _run(db, session_id, remove_session=True)


def clear_session(db: Session, session_id: str) -> DeleteReport:
    """Empty the session but keep its row, so it can be refilled by an import."""
    return _run(db, session_id, remove_session=False)

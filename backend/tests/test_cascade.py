import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.core.exceptions import CascadeFailureError, CourseNotFoundError, SessionNotFoundError
from app.models import (
    CompulsoryFacultyGroup,
    CompulsoryHallGroup,
    Course,
    ResourceKind,
    SchedulingSession,
    Student,
    StudentGroupMembership,
)
from app.schemas.course import CourseCreate
from app.schemas.group import GroupCreate
from app.schemas.resource import FacultyCreate, HallCreate, StudentCreate
from app.schemas.session import SessionCreate
from app.services import cascade, courses, groups, resources, sessions


def populate(db, name):
    session = sessions.create_session(db, SessionCreate(name=name))
    students = [
        resources.create_resource(db, ResourceKind.student, session.id, StudentCreate(digital_id=f"{name}-{index}"))
        for index in range(2)
    ]
    faculty = resources.create_resource(db, ResourceKind.faculty, session.id, FacultyCreate(name="Dr. Sen"))
    hall = resources.create_resource(db, ResourceKind.hall, session.id, HallCreate(name="A1", building="B", floor="1"))
    student_group = groups.create_group(db, ResourceKind.student, session.id, GroupCreate(group_name="Year 1"))
    hall_group = groups.create_group(db, ResourceKind.hall, session.id, GroupCreate(group_name="Labs"))
    groups.add_members(db, ResourceKind.student, student_group.id, [student.id for student in students])
    groups.add_members(db, ResourceKind.hall, hall_group.id, [hall.id])
    courses.create_course(
        db,
        session.id,
        CourseCreate(
            code="CS101",
            name="Intro",
            student_ids=[students[0].id],
            student_group_ids=[student_group.id],
            compulsory_faculty_ids=[faculty.id],
            compulsory_hall_ids=[hall.id],
            compulsory_hall_group_ids=[hall_group.id],
        ),
    )
    return session


def count(db, model, *criteria):
    return db.execute(select(func.count()).select_from(model).where(*criteria)).scalar_one()


def test_delete_session_reports_every_category(db):
    session = populate(db, "Doomed")
    survivor = populate(db, "Survivor")
    (course,) = courses.list_courses(db, session.id)

    report = cascade.delete_session(db, session.id)

    assert report.course_student_enrollments == 1
    assert report.course_student_group_enrollments == 1
    assert report.compulsory_faculty == 1
    assert report.compulsory_halls == 1
    assert report.compulsory_hall_groups == 1
    assert report.compulsory_faculty_groups == 0
    assert report.courses == 1
    assert report.student_group_memberships == 2
    assert report.hall_group_memberships == 1
    assert report.students == 2
    assert report.faculty == 1
    assert report.halls == 1
    assert report.student_groups == 1
    assert report.hall_groups == 1
    assert report.sessions == 1

    assert db.get(SchedulingSession, session.id) is None
    with pytest.raises(CourseNotFoundError):
        courses.require_course(db, course.id)
    assert count(db, Student, Student.session_id == session.id) == 0
    assert sessions.session_stats(db, survivor.id).students == 2
    assert count(db, StudentGroupMembership) == 2


def test_clear_session_keeps_the_session_row(db):
    session = populate(db, "Reset")

    report = cascade.clear_session(db, session.id)

    assert report.sessions == 0
    assert report.courses == 1
    assert sessions.require_session(db, session.id).name == "Reset"
    assert all(value == 0 for value in sessions.session_stats(db, session.id).model_dump().values())


def test_missing_session_fails_before_any_mutation(db):
    populate(db, "Untouched")

    with pytest.raises(SessionNotFoundError):
        cascade.delete_session(db, "missing")

    assert count(db, Course) == 1


def test_failure_mid_cascade_rolls_back_everything(db, monkeypatch):
    session = populate(db, "Fragile")
    original = cascade._execute_delete

    def failing_delete(db_session, statement):
        if statement.table.name == "students":
            raise OperationalError("DELETE FROM students", {}, Exception("disk I/O error"))
        return original(db_session, statement)

    monkeypatch.setattr(cascade, "_execute_delete", failing_delete)

    with pytest.raises(CascadeFailureError) as exc_info:
        cascade.delete_session(db, session.id)

    error = exc_info.value
    assert error.last_step == "hall_group_memberships"
    assert error.counts["courses"] == 1
    assert error.status_code == 500
    assert count(db, Course, Course.session_id == session.id) == 1
    assert count(db, StudentGroupMembership) == 2
    assert sessions.session_stats(db, session.id).students == 2


def test_delete_report_counts_every_compulsory_group_link(db):
    session = sessions.create_session(db, SessionCreate(name="Groups"))
    faculty_groups = [
        groups.create_group(db, ResourceKind.faculty, session.id, GroupCreate(group_name=f"Panel {index}"))
        for index in range(3)
    ]
    hall_groups = [
        groups.create_group(db, ResourceKind.hall, session.id, GroupCreate(group_name=f"Wing {index}"))
        for index in range(2)
    ]
    courses.create_course(
        db,
        session.id,
        CourseCreate(
            code="EE101",
            name="Circuits",
            compulsory_faculty_group_ids=[group.id for group in faculty_groups],
            compulsory_hall_group_ids=[group.id for group in hall_groups],
        ),
    )
    courses.create_course(
        db,
        session.id,
        CourseCreate(
            code="EE102",
            name="Signals",
            compulsory_faculty_group_ids=[group.id for group in faculty_groups[:2]],
            compulsory_hall_group_ids=[group.id for group in hall_groups],
        ),
    )
    linked = count(db, CompulsoryFacultyGroup) + count(db, CompulsoryHallGroup)

    report = cascade.delete_session(db, session.id)

    assert report.compulsory_faculty_groups == 5
    assert report.compulsory_hall_groups == 4
    assert report.compulsory_faculty_groups + report.compulsory_hall_groups == linked
    assert report.courses == 2
    assert count(db, CompulsoryFacultyGroup) + count(db, CompulsoryHallGroup) == 0

import pytest

from app.core.exceptions import OutOfWindowSlotError, ResourceInUseError, ResourceNotFoundError, SessionNotFoundError
from app.models import CourseRelation, ResourceKind
from app.schemas.course import CourseCreate
from app.schemas.group import GroupCreate
from app.schemas.resource import FacultyCreate, FacultyUpdate, HallCreate, HallUpdate, StudentCreate, StudentUpdate
from app.schemas.session import SessionCreate
from app.services import courses, groups, resources, sessions


def evening_slot():
    return {"start_hour": 18, "start_minute": 0, "end_hour": 19, "end_minute": 30, "type": "blocker"}


def test_default_working_window(db):
    session = sessions.create_session(db, SessionCreate(name="Defaults"))

    student = resources.create_resource(db, ResourceKind.student, session.id, StudentCreate(digital_id=2024001))

    assert student.digital_id == "2024001"
    assert (student.start_hour, student.start_minute, student.end_hour, student.end_minute) == (8, 0, 15, 0)
    assert set(student.timetable) == {"Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"}


def test_create_requires_existing_session(db):
    with pytest.raises(SessionNotFoundError):
        resources.create_resource(db, ResourceKind.faculty, "missing", FacultyCreate(name="Dr. X"))


def test_hall_window_update_must_cover_existing_slots(db):
    session = sessions.create_session(db, SessionCreate(name="Halls"))
    hall = resources.create_resource(
        db,
        ResourceKind.hall,
        session.id,
        HallCreate(
            name="A101",
            building="Main",
            floor="1",
            start_hour=8,
            end_hour=20,
            timetable={"Monday": [evening_slot()]},
        ),
    )

    with pytest.raises(OutOfWindowSlotError):
        resources.update_resource(db, ResourceKind.hall, hall.id, HallUpdate(end_hour=15))

    updated = resources.update_resource(
        db, ResourceKind.hall, hall.id, HallUpdate(end_hour=15, timetable={"Monday": []}, short_form="A1")
    )
    assert updated.end_hour == 15
    assert updated.timetable["Monday"] == []
    assert updated.short_form == "A1"


def test_short_form_can_be_cleared(db):
    session = sessions.create_session(db, SessionCreate(name="Faculty"))
    faculty = resources.create_resource(
        db, ResourceKind.faculty, session.id, FacultyCreate(name="Dr. Das", short_form="DD")
    )

    updated = resources.update_resource(db, ResourceKind.faculty, faculty.id, FacultyUpdate(short_form=None))

    assert updated.short_form is None
    assert updated.name == "Dr. Das"


def test_student_update_coerces_digital_id(db):
    session = sessions.create_session(db, SessionCreate(name="Renumber"))
    student = resources.create_resource(db, ResourceKind.student, session.id, StudentCreate(digital_id="S1"))

    updated = resources.update_resource(db, ResourceKind.student, student.id, StudentUpdate(digital_id=2024002))
    assert updated.digital_id == "2024002"

    updated = resources.update_resource(db, ResourceKind.student, student.id, StudentUpdate(digital_id="  S9 "))
    assert updated.digital_id == "S9"


def test_hall_required_by_course_cannot_be_deleted(db):
    session = sessions.create_session(db, SessionCreate(name="Guards"))
    hall = resources.create_resource(
        db, ResourceKind.hall, session.id, HallCreate(name="A101", building="Main", floor="1")
    )
    course = courses.create_course(db, session.id, CourseCreate(code="PH101", name="Physics", compulsory_hall_ids=[hall.id]))

    with pytest.raises(ResourceInUseError) as exc_info:
        resources.delete_resource(db, ResourceKind.hall, hall.id)
    assert exc_info.value.count == 1

    courses.remove_requirements(db, course.id, CourseRelation.compulsory_halls, [hall.id])
    assert resources.delete_resource(db, ResourceKind.hall, hall.id)["success"] is True
    with pytest.raises(ResourceNotFoundError):
        resources.require_resource(db, ResourceKind.hall, hall.id)


def test_enrolled_student_cannot_be_deleted(db):
    session = sessions.create_session(db, SessionCreate(name="Enrolment"))
    student = resources.create_resource(db, ResourceKind.student, session.id, StudentCreate(digital_id="S1"))
    courses.create_course(db, session.id, CourseCreate(code="MA101", name="Maths", student_ids=[student.id]))

    with pytest.raises(ResourceInUseError):
        resources.delete_resource(db, ResourceKind.student, student.id)


def test_faculty_delete_removes_memberships_and_compulsory_links(db):
    session = sessions.create_session(db, SessionCreate(name="Staff"))
    faculty = resources.create_resource(db, ResourceKind.faculty, session.id, FacultyCreate(name="Dr. Roy"))
    group = groups.create_group(db, ResourceKind.faculty, session.id, GroupCreate(group_name="Core"))
    groups.add_members(db, ResourceKind.faculty, group.id, [faculty.id])
    course = courses.create_course(
        db, session.id, CourseCreate(code="CH101", name="Chemistry", compulsory_faculty_ids=[faculty.id])
    )

    result = resources.delete_resource(db, ResourceKind.faculty, faculty.id)

    assert result == {"success": True, "memberships": 1, "course_links": 1}
    assert courses.course_to_out(db, course).compulsory_faculty_ids == []


def test_resource_availability(db):
    session = sessions.create_session(db, SessionCreate(name="Availability"))
    hall = resources.create_resource(
        db,
        ResourceKind.hall,
        session.id,
        HallCreate(name="A101", building="Main", floor="1", end_hour=20, timetable={"Monday": [evening_slot()]}),
    )

    gaps = resources.resource_availability(db, ResourceKind.hall, hall.id, 90)
    monday = [(gap.start_hour, gap.start_minute, gap.duration) for gap in gaps if gap.day == "Monday"]

    assert monday == [(8, 0, 600)]

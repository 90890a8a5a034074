import pytest

from app.core.exceptions import (
    CourseNotFoundError,
    CrossSessionReferenceError,
    InvalidDeltaError,
    NameConflictError,
    OverlappingSlotsError,
    ValidationError,
)
from app.models import CourseRelation, CourseTarget, ResourceKind
from app.schemas.course import CourseCreate, CourseUpdate
from app.schemas.group import GroupCreate
from app.schemas.resource import FacultyCreate, HallCreate, StudentCreate
from app.schemas.session import SessionCreate
from app.services import courses, groups, resources, sessions


@pytest.fixture()
def world(db):
    session = sessions.create_session(db, SessionCreate(name="Spring 2027"))
    hall = resources.create_resource(
        db, ResourceKind.hall, session.id, HallCreate(name="A101", building="Main", floor="1")
    )
    faculty = resources.create_resource(db, ResourceKind.faculty, session.id, FacultyCreate(name="Dr. Iyer"))
    students = [
        resources.create_resource(db, ResourceKind.student, session.id, StudentCreate(digital_id=f"S{index}"))
        for index in range(3)
    ]
    hall_group = groups.create_group(db, ResourceKind.hall, session.id, GroupCreate(group_name="Labs"))
    return {"session": session, "hall": hall, "faculty": faculty, "students": students, "hall_group": hall_group}


def test_create_course_normalises_code_and_links(db, world):
    course = courses.create_course(
        db,
        world["session"].id,
        CourseCreate(
            code=" cs201 ",
            name="Data Structures",
            compulsory_hall_ids=[world["hall"].id],
            compulsory_hall_group_ids=[world["hall_group"].id],
            hall_group_required_counts={world["hall_group"].id: 2},
            student_ids=[student.id for student in world["students"]],
        ),
    )

    out = courses.course_to_out(db, course)
    assert out.code == "CS201"
    assert out.class_duration == 50
    assert out.scheduled_count == 0
    assert out.compulsory_hall_ids == [world["hall"].id]
    assert out.hall_group_required_counts == {world["hall_group"].id: 2}
    assert sorted(out.student_ids) == sorted(student.id for student in world["students"])


def test_course_code_unique_per_session(db, world):
    courses.create_course(db, world["session"].id, CourseCreate(code="CS201", name="A"))
    with pytest.raises(NameConflictError):
        courses.create_course(db, world["session"].id, CourseCreate(code="cs201", name="B"))

    other = sessions.create_session(db, SessionCreate(name="Other"))
    assert courses.create_course(db, other.id, CourseCreate(code="CS201", name="C")).session_id == other.id


def test_update_course_replaces_sent_relations_only(db, world):
    s1, s2, s3 = world["students"]
    course = courses.create_course(
        db,
        world["session"].id,
        CourseCreate(code="CS301", name="OS", student_ids=[s1.id, s2.id], compulsory_faculty_ids=[world["faculty"].id]),
    )

    courses.update_course(db, course.id, CourseUpdate(student_ids=[s3.id], total_sessions=4))

    out = courses.course_to_out(db, courses.require_course(db, course.id))
    assert out.student_ids == [s3.id]
    assert out.compulsory_faculty_ids == [world["faculty"].id]
    assert out.total_sessions == 4


def test_course_timetable_is_validated(db, world):
    overlapping = {
        "Monday": [
            {"start_hour": 9, "start_minute": 0, "end_hour": 10, "end_minute": 0},
            {"start_hour": 9, "start_minute": 30, "end_hour": 10, "end_minute": 30},
        ]
    }
    with pytest.raises(OverlappingSlotsError):
        courses.create_course(db, world["session"].id, CourseCreate(code="CS1", name="X", timetable=overlapping))


def test_add_requirements_skips_existing_links(db, world):
    s1, s2, _ = world["students"]
    course = courses.create_course(db, world["session"].id, CourseCreate(code="CS401", name="DB", student_ids=[s1.id]))

    result = courses.add_requirements(db, course.id, CourseRelation.enrolled_students, [s1.id, s2.id])

    assert result.added == [s2.id]
    assert result.skipped == 1


def test_add_requirements_rejects_other_session_targets(db, world):
    other = sessions.create_session(db, SessionCreate(name="Other"))
    stranger = resources.create_resource(
        db, ResourceKind.hall, other.id, HallCreate(name="B1", building="Annex", floor="G")
    )
    course = courses.create_course(db, world["session"].id, CourseCreate(code="CS402", name="Nets"))

    with pytest.raises(CrossSessionReferenceError) as exc_info:
        courses.add_requirements(db, course.id, "compulsory_halls", [world["hall"].id, stranger.id])

    assert exc_info.value.invalid_ids == [stranger.id]
    assert courses.course_to_out(db, course).compulsory_hall_ids == []


def test_remove_requirements(db, world):
    course = courses.create_course(
        db, world["session"].id, CourseCreate(code="CS403", name="AI", compulsory_faculty_ids=[world["faculty"].id])
    )

    result = courses.remove_requirements(db, course.id, CourseRelation.compulsory_faculty, [world["faculty"].id])

    assert result.removed == 1
    assert courses.course_to_out(db, course).compulsory_faculty_ids == []


def test_scheduled_count_is_not_clamped(db, world):
    course = courses.create_course(db, world["session"].id, CourseCreate(code="CS501", name="ML", total_sessions=2))

    assert courses.adjust_scheduled_count(db, course.id, 3).scheduled_count == 3
    assert courses.adjust_scheduled_count(db, course.id, -5).scheduled_count == -2
    assert courses.adjust_scheduled_count(db, course.id, 2.0).scheduled_count == 0


@pytest.mark.parametrize("delta", [True, None, "1", 1.5, float("nan"), float("inf")])
def test_scheduled_count_rejects_invalid_delta(db, world, delta):
    course = courses.create_course(db, world["session"].id, CourseCreate(code="CS502", name="CV"))

    with pytest.raises(InvalidDeltaError):
        courses.adjust_scheduled_count(db, course.id, delta)


def test_scheduled_count_for_missing_course(db):
    with pytest.raises(CourseNotFoundError):
        courses.adjust_scheduled_count(db, "missing", 1)


def test_delete_course_strips_links(db, world):
    course = courses.create_course(
        db,
        world["session"].id,
        CourseCreate(code="CS601", name="HPC", compulsory_hall_ids=[world["hall"].id]),
    )

    assert courses.delete_course(db, course.id) == {"success": True, "course_links": 1}
    resources.delete_resource(db, ResourceKind.hall, world["hall"].id)


def test_scheduled_count_increment_then_decrement_restores(db, world):
    course = courses.create_course(db, world["session"].id, CourseCreate(code="CS503", name="NLP"))

    courses.adjust_scheduled_count(db, course.id, 1)
    assert courses.adjust_scheduled_count(db, course.id, -1).scheduled_count == 0


@pytest.mark.parametrize("delta", [2**70, -(2**70), 1e30, 2**31])
def test_scheduled_count_rejects_out_of_range_delta(db, world, delta):
    course = courses.create_course(db, world["session"].id, CourseCreate(code="CS504", name="RL"))

    with pytest.raises(InvalidDeltaError):
        courses.adjust_scheduled_count(db, course.id, delta)

    assert courses.adjust_scheduled_count(db, course.id, 1).scheduled_count == 1


def test_update_course_sets_required_counts_on_existing_links(db, world):
    hall_group = world["hall_group"]
    course = courses.create_course(
        db,
        world["session"].id,
        CourseCreate(code="CS602", name="Labs", compulsory_hall_group_ids=[hall_group.id]),
    )

    courses.update_course(db, course.id, CourseUpdate(hall_group_required_counts={hall_group.id: 3}))

    out = courses.course_to_out(db, courses.require_course(db, course.id))
    assert out.hall_group_required_counts == {hall_group.id: 3}
    assert out.compulsory_hall_group_ids == [hall_group.id]


def test_update_course_rejects_counts_for_unlinked_hall_groups(db, world):
    course = courses.create_course(db, world["session"].id, CourseCreate(code="CS603", name="Studio"))

    with pytest.raises(ValidationError) as exc_info:
        courses.update_course(
            db, course.id, CourseUpdate(hall_group_required_counts={world["hall_group"].id: 2})
        )

    assert exc_info.value.details["hall_group_ids"] == [world["hall_group"].id]


def test_courses_for_entity(db, world):
    s1, s2, _ = world["students"]
    enrolled = courses.create_course(
        db,
        world["session"].id,
        CourseCreate(code="CS701", name="Compilers", student_ids=[s1.id], compulsory_hall_ids=[world["hall"].id]),
    )
    courses.create_course(
        db,
        world["session"].id,
        CourseCreate(code="CS702", name="Graphics", compulsory_faculty_ids=[world["faculty"].id]),
    )

    assert [c.id for c in courses.courses_for_entity(db, world["session"].id, CourseTarget.student, s1.id)] == [
        enrolled.id
    ]
    assert courses.courses_for_entity(db, world["session"].id, "student", s2.id) == []
    assert [c.code for c in courses.courses_for_entity(db, world["session"].id, "hall", world["hall"].id)] == [
        "CS701"
    ]
    assert [c.code for c in courses.courses_for_entity(db, world["session"].id, "faculty", world["faculty"].id)] == [
        "CS702"
    ]
    assert [c.code for c in courses.courses_for_entity(db, world["session"].id, "course", "")] == ["CS701", "CS702"]

    other = sessions.create_session(db, SessionCreate(name="Elsewhere"))
    assert courses.courses_for_entity(db, other.id, "student", s1.id) == []


def test_courses_for_entity_rejects_unknown_type(db, world):
    with pytest.raises(ValidationError):
        courses.courses_for_entity(db, world["session"].id, "janitor", "x")

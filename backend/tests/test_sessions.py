import pytest

from app.core.exceptions import ConflictError, NameConflictError, SessionNotFoundError
from app.models import ResourceKind
from app.schemas.course import CourseCreate
from app.schemas.group import GroupCreate
from app.schemas.resource import HallCreate, StudentCreate
from app.schemas.session import SessionCreate, SessionUpdate
from app.services import courses, groups, resources, sessions, transfer


def build_source(db):
    session = sessions.create_session(db, SessionCreate(name="Source", details="Odd semester"))
    hall = resources.create_resource(
        db,
        ResourceKind.hall,
        session.id,
        HallCreate(name="A101", building="Main", floor="1", end_hour=18),
    )
    students = [
        resources.create_resource(db, ResourceKind.student, session.id, StudentCreate(digital_id=f"S{index}"))
        for index in range(2)
    ]
    group = groups.create_group(db, ResourceKind.student, session.id, GroupCreate(group_name="Batch 1"))
    groups.add_members(db, ResourceKind.student, group.id, [student.id for student in students])
    course = courses.create_course(
        db,
        session.id,
        CourseCreate(
            code="EE101",
            name="Circuits",
            compulsory_hall_ids=[hall.id],
            student_group_ids=[group.id],
            timetable={
                "Monday": [
                    {"start_hour": 9, "start_minute": 0, "end_hour": 10, "end_minute": 0, "hall_ids": [hall.id]}
                ]
            },
        ),
    )
    courses.adjust_scheduled_count(db, course.id, 1)
    return session


def test_session_names_are_unique(db):
    sessions.create_session(db, SessionCreate(name="Autumn"))
    spring = sessions.create_session(db, SessionCreate(name="Spring"))

    with pytest.raises(NameConflictError):
        sessions.create_session(db, SessionCreate(name=" Autumn "))
    with pytest.raises(NameConflictError):
        sessions.update_session(db, spring.id, SessionUpdate(name="Autumn"))

    renamed = sessions.update_session(db, spring.id, SessionUpdate(name="Spring", details="Even semester"))
    assert renamed.details == "Even semester"


def test_session_stats(db):
    session = build_source(db)

    stats = sessions.session_stats(db, session.id)

    assert stats.model_dump() == {
        "students": 2,
        "faculty": 0,
        "halls": 1,
        "courses": 1,
        "student_groups": 1,
        "faculty_groups": 0,
        "hall_groups": 0,
    }
    with pytest.raises(SessionNotFoundError):
        sessions.session_stats(db, "missing")


def test_export_contains_denormalised_snapshot(db):
    session = build_source(db)

    snapshot = transfer.export_session(db, session.id)

    assert snapshot.session.name == "Source"
    assert len(snapshot.students) == 2
    assert snapshot.student_groups[0].member_count == 2
    assert len(snapshot.student_group_memberships) == 2
    (course,) = snapshot.courses
    assert course.code == "EE101"
    assert course.compulsory_hall_ids == [snapshot.halls[0].id]
    assert course.student_group_ids == [snapshot.student_groups[0].id]


def test_import_remaps_ids_into_empty_session(db):
    source = build_source(db)
    target = sessions.create_session(db, SessionCreate(name="Target"))
    snapshot = transfer.export_session(db, source.id)

    report = transfer.import_session(db, target.id, snapshot)

    assert report.students == 2
    assert report.memberships == 2
    assert report.courses == 1
    assert report.course_links == 2
    assert report.skipped_links == 0

    (course,) = courses.list_courses(db, target.id)
    out = courses.course_to_out(db, course)
    (hall,) = resources.list_resources(db, ResourceKind.hall, target.id)
    assert hall.id != snapshot.halls[0].id
    assert out.compulsory_hall_ids == [hall.id]
    assert out.timetable["Monday"][0]["hall_ids"] == [hall.id]
    assert out.scheduled_count == 1
    assert sessions.session_stats(db, source.id) == sessions.session_stats(db, target.id)


def test_import_refuses_non_empty_target(db):
    source = build_source(db)
    snapshot = transfer.export_session(db, source.id)

    with pytest.raises(ConflictError):
        transfer.import_session(db, source.id, snapshot)


def test_copy_session_replaces_target_contents(db):
    source = build_source(db)
    target = sessions.create_session(db, SessionCreate(name="Target"))
    resources.create_resource(db, ResourceKind.student, target.id, StudentCreate(digital_id="OLD"))

    result = transfer.copy_session(db, source.id, target.id)

    assert result.cleared.students == 1
    assert result.cleared.sessions == 0
    assert result.imported.students == 2
    digital_ids = {student.digital_id for student in resources.list_resources(db, ResourceKind.student, target.id)}
    assert digital_ids == {"S0", "S1"}
    assert sessions.require_session(db, target.id).name == "Target"


def test_copy_session_into_itself_is_rejected(db):
    source = build_source(db)

    with pytest.raises(ConflictError):
        transfer.copy_session(db, source.id, source.id)

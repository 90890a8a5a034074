from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import InstrumentedAttribute

from app.models import (
    CompulsoryFacultyGroup,
    CompulsoryHallGroup,
    CourseCompulsoryFaculty,
    CourseCompulsoryHall,
    CourseRelation,
    CourseStudentEnrollment,
    CourseStudentGroupEnrollment,
    Faculty,
    FacultyGroup,
    FacultyGroupMembership,
    Hall,
    HallGroup,
    HallGroupMembership,
    ResourceKind,
    Student,
    StudentGroup,
    StudentGroupMembership,
)


@dataclass(frozen=True)
class KindSpec:
    kind: ResourceKind
    label: str
    group_label: str
    model: Any
    group_model: Any
    membership_model: Any
    member_column: InstrumentedAttribute
    group_column: InstrumentedAttribute


RESOURCE_KINDS: dict[ResourceKind, KindSpec] = {
    ResourceKind.student: KindSpec(
        kind=ResourceKind.student,
        label="Student",
        group_label="Student group",
        model=Student,
        group_model=StudentGroup,
        membership_model=StudentGroupMembership,
        member_column=StudentGroupMembership.student_id,
        group_column=StudentGroupMembership.student_group_id,
    ),
    ResourceKind.faculty: KindSpec(
        kind=ResourceKind.faculty,
        label="Faculty",
        group_label="Faculty group",
        model=Faculty,
        group_model=FacultyGroup,
        membership_model=FacultyGroupMembership,
        member_column=FacultyGroupMembership.faculty_id,
        group_column=FacultyGroupMembership.faculty_group_id,
    ),
    ResourceKind.hall: KindSpec(
        kind=ResourceKind.hall,
        label="Hall",
        group_label="Hall group",
        model=Hall,
        group_model=HallGroup,
        membership_model=HallGroupMembership,
        member_column=HallGroupMembership.hall_id,
        group_column=HallGroupMembership.hall_group_id,
    ),
}


@dataclass(frozen=True)
class RelationSpec:
    relation: CourseRelation
    label: str
    link_model: Any
    target_model: Any
    target_column: InstrumentedAttribute
    course_column: InstrumentedAttribute
    out_field: str


COURSE_RELATIONS: dict[CourseRelation, RelationSpec] = {
    CourseRelation.compulsory_faculty: RelationSpec(
        relation=CourseRelation.compulsory_faculty,
        label="faculty",
        link_model=CourseCompulsoryFaculty,
        target_model=Faculty,
        target_column=CourseCompulsoryFaculty.faculty_id,
        course_column=CourseCompulsoryFaculty.course_id,
        out_field="compulsory_faculty_ids",
    ),
    CourseRelation.compulsory_halls: RelationSpec(
        relation=CourseRelation.compulsory_halls,
        label="hall",
        link_model=CourseCompulsoryHall,
        target_model=Hall,
        target_column=CourseCompulsoryHall.hall_id,
        course_column=CourseCompulsoryHall.course_id,
        out_field="compulsory_hall_ids",
    ),
    CourseRelation.compulsory_faculty_groups: RelationSpec(
        relation=CourseRelation.compulsory_faculty_groups,
        label="faculty group",
        link_model=CompulsoryFacultyGroup,
        target_model=FacultyGroup,
        target_column=CompulsoryFacultyGroup.faculty_group_id,
        course_column=CompulsoryFacultyGroup.course_id,
        out_field="compulsory_faculty_group_ids",
    ),
    CourseRelation.compulsory_hall_groups: RelationSpec(
        relation=CourseRelation.compulsory_hall_groups,
        label="hall group",
        link_model=CompulsoryHallGroup,
        target_model=HallGroup,
        target_column=CompulsoryHallGroup.hall_group_id,
        course_column=CompulsoryHallGroup.course_id,
        out_field="compulsory_hall_group_ids",
    ),
    CourseRelation.enrolled_students: RelationSpec(
        relation=CourseRelation.enrolled_students,
        label="student",
        link_model=CourseStudentEnrollment,
        target_model=Student,
        target_column=CourseStudentEnrollment.student_id,
        course_column=CourseStudentEnrollment.course_id,
        out_field="student_ids",
    ),
    CourseRelation.enrolled_student_groups: RelationSpec(
        relation=CourseRelation.enrolled_student_groups,
        label="student group",
        link_model=CourseStudentGroupEnrollment,
        target_model=StudentGroup,
        target_column=CourseStudentGroupEnrollment.student_group_id,
        course_column=CourseStudentGroupEnrollment.course_id,
        out_field="student_group_ids",
    ),
}


def relations_targeting(model: Any) -> list[RelationSpec]:
    return [spec for spec in COURSE_RELATIONS.values() if spec.target_model is model]


def kind_spec(kind: ResourceKind | str) -> KindSpec:
    return RESOURCE_KINDS[ResourceKind(kind)]

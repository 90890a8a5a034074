from enum import Enum


class ResourceKind(str, Enum):
    student = "student"
    faculty = "faculty"
    hall = "hall"


class CourseRelation(str, Enum):
    compulsory_faculty = "compulsory_faculty"
    compulsory_halls = "compulsory_halls"
    compulsory_faculty_groups = "compulsory_faculty_groups"
    compulsory_hall_groups = "compulsory_hall_groups"
    enrolled_students = "enrolled_students"
    enrolled_student_groups = "enrolled_student_groups"


class CourseTarget(str, Enum):
    student = "student"
    student_group = "student_group"
    faculty = "faculty"
    faculty_group = "faculty_group"
    hall = "hall"
    hall_group = "hall_group"
    course = "course"

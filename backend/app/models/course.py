import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.mixins import empty_timetable


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (
        UniqueConstraint("session_id", "code", name="uq_courses_session_code"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sessions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    code: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    class_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    sessions_per_lecture: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    scheduled_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    timetable: Mapped[dict[str, list[dict]]] = mapped_column(JSON, nullable=False, default=empty_timetable)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class CourseCompulsoryFaculty(Base):
    __tablename__ = "course_compulsory_faculty"
    __table_args__ = (
        UniqueConstraint("course_id", "faculty_id", name="uq_course_compulsory_faculty_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False
    )
    faculty_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("faculty.id", ondelete="CASCADE"), index=True, nullable=False
    )


class CourseCompulsoryHall(Base):
    __tablename__ = "course_compulsory_halls"
    __table_args__ = (
        UniqueConstraint("course_id", "hall_id", name="uq_course_compulsory_halls_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False
    )
    hall_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("halls.id", ondelete="CASCADE"), index=True, nullable=False
    )


class CompulsoryFacultyGroup(Base):
    __tablename__ = "course_compulsory_faculty_groups"
    __table_args__ = (
        UniqueConstraint("course_id", "faculty_group_id", name="uq_course_compulsory_faculty_groups_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False
    )
    faculty_group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("faculty_groups.id", ondelete="CASCADE"), index=True, nullable=False
    )


class CompulsoryHallGroup(Base):
    __tablename__ = "course_compulsory_hall_groups"
    __table_args__ = (
        UniqueConstraint("course_id", "hall_group_id", name="uq_course_compulsory_hall_groups_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False
    )
    hall_group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("hall_groups.id", ondelete="CASCADE"), index=True, nullable=False
    )
    # Number of halls from the group the course needs at once.
    required_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class CourseStudentEnrollment(Base):
    __tablename__ = "course_student_enrollments"
    __table_args__ = (
        UniqueConstraint("course_id", "student_id", name="uq_course_student_enrollments_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False
    )
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False
    )


class CourseStudentGroupEnrollment(Base):
    __tablename__ = "course_student_group_enrollments"
    __table_args__ = (
        UniqueConstraint("course_id", "student_group_id", name="uq_course_student_group_enrollments_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False
    )
    student_group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("student_groups.id", ondelete="CASCADE"), index=True, nullable=False
    )

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.mixins import WorkingHoursMixin


class StudentGroup(WorkingHoursMixin, Base):
    __tablename__ = "student_groups"
    __table_args__ = (
        UniqueConstraint("session_id", "group_name", name="uq_student_groups_session_name"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sessions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    group_name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class FacultyGroup(WorkingHoursMixin, Base):
    __tablename__ = "faculty_groups"
    __table_args__ = (
        UniqueConstraint("session_id", "group_name", name="uq_faculty_groups_session_name"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sessions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    group_name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class HallGroup(WorkingHoursMixin, Base):
    __tablename__ = "hall_groups"
    __table_args__ = (
        UniqueConstraint("session_id", "group_name", name="uq_hall_groups_session_name"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sessions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    group_name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class StudentGroupMembership(Base):
    __tablename__ = "student_group_memberships"
    __table_args__ = (
        UniqueConstraint("student_id", "student_group_id", name="uq_student_group_memberships_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False
    )
    student_group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("student_groups.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class FacultyGroupMembership(Base):
    __tablename__ = "faculty_group_memberships"
    __table_args__ = (
        UniqueConstraint("faculty_id", "faculty_group_id", name="uq_faculty_group_memberships_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    faculty_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("faculty.id", ondelete="CASCADE"), index=True, nullable=False
    )
    faculty_group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("faculty_groups.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class HallGroupMembership(Base):
    __tablename__ = "hall_group_memberships"
    __table_args__ = (
        UniqueConstraint("hall_id", "hall_group_id", name="uq_hall_group_memberships_pair"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    hall_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("halls.id", ondelete="CASCADE"), index=True, nullable=False
    )
    hall_group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("hall_groups.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

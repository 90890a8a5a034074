"""create session schema

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


RESOURCE_TABLES = ("students", "faculty", "halls")
GROUP_TABLES = ("student_groups", "faculty_groups", "hall_groups")

# (table, member column, member table, group column, group table)
MEMBERSHIP_TABLES = (
    ("student_group_memberships", "student_id", "students", "student_group_id", "student_groups"),
    ("faculty_group_memberships", "faculty_id", "faculty", "faculty_group_id", "faculty_groups"),
    ("hall_group_memberships", "hall_id", "halls", "hall_group_id", "hall_groups"),
)

# (table, target column, target table)
COURSE_LINK_TABLES = (
    ("course_compulsory_faculty", "faculty_id", "faculty"),
    ("course_compulsory_halls", "hall_id", "halls"),
    ("course_compulsory_faculty_groups", "faculty_group_id", "faculty_groups"),
    ("course_compulsory_hall_groups", "hall_group_id", "hall_groups"),
    ("course_student_enrollments", "student_id", "students"),
    ("course_student_group_enrollments", "student_group_id", "student_groups"),
)


def _id() -> sa.Column:
    return sa.Column("id", sa.String(length=36), primary_key=True, nullable=False)


def _session_fk() -> sa.Column:
    return sa.Column(
        "session_id",
        sa.String(length=36),
        sa.ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
    )


def _working_hours() -> list[sa.Column]:
    return [
        sa.Column("start_hour", sa.Integer(), nullable=False, server_default="8"),
        sa.Column("start_minute", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("end_hour", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("end_minute", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("timetable", sa.JSON(), nullable=False),
    ]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "sessions",
        _id(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_sessions_name", "sessions", ["name"], unique=True)

    op.create_table(
        "students",
        _id(),
        _session_fk(),
        sa.Column("digital_id", sa.String(length=50), nullable=False),
        *_working_hours(),
        *_timestamps(),
    )
    op.create_index("ix_students_digital_id", "students", ["digital_id"])

    op.create_table(
        "faculty",
        _id(),
        _session_fk(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("short_form", sa.String(length=50), nullable=True),
        *_working_hours(),
        *_timestamps(),
    )

    op.create_table(
        "halls",
        _id(),
        _session_fk(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("building", sa.String(length=200), nullable=False),
        sa.Column("floor", sa.String(length=50), nullable=False),
        sa.Column("short_form", sa.String(length=50), nullable=True),
        *_working_hours(),
        *_timestamps(),
    )

    for table_name in GROUP_TABLES:
        op.create_table(
            table_name,
            _id(),
            _session_fk(),
            sa.Column("group_name", sa.String(length=100), nullable=False),
            *_working_hours(),
            *_timestamps(),
            sa.UniqueConstraint("session_id", "group_name", name=f"uq_{table_name}_session_name"),
        )

    for table_name in (*RESOURCE_TABLES, *GROUP_TABLES):
        op.create_index(f"ix_{table_name}_session_id", table_name, ["session_id"])

    for table_name, member_column, member_table, group_column, group_table in MEMBERSHIP_TABLES:
        op.create_table(
            table_name,
            _id(),
            sa.Column(
                member_column,
                sa.String(length=36),
                sa.ForeignKey(f"{member_table}.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                group_column,
                sa.String(length=36),
                sa.ForeignKey(f"{group_table}.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.UniqueConstraint(member_column, group_column, name=f"uq_{table_name}_pair"),
        )
        op.create_index(f"ix_{table_name}_{member_column}", table_name, [member_column])
        op.create_index(f"ix_{table_name}_{group_column}", table_name, [group_column])

    op.create_table(
        "courses",
        _id(),
        _session_fk(),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("class_duration", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("sessions_per_lecture", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("total_sessions", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("scheduled_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("timetable", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("session_id", "code", name="uq_courses_session_code"),
    )
    op.create_index("ix_courses_session_id", "courses", ["session_id"])
    op.create_index("ix_courses_code", "courses", ["code"])

    for table_name, target_column, target_table in COURSE_LINK_TABLES:
        extra = []
        if table_name == "course_compulsory_hall_groups":
            extra.append(sa.Column("required_count", sa.Integer(), nullable=False, server_default="1"))
        op.create_table(
            table_name,
            _id(),
            sa.Column(
                "course_id",
                sa.String(length=36),
                sa.ForeignKey("courses.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                target_column,
                sa.String(length=36),
                sa.ForeignKey(f"{target_table}.id", ondelete="CASCADE"),
                nullable=False,
            ),
            *extra,
            sa.UniqueConstraint("course_id", target_column, name=f"uq_{table_name}_pair"),
        )
        op.create_index(f"ix_{table_name}_course_id", table_name, ["course_id"])
        op.create_index(f"ix_{table_name}_{target_column}", table_name, [target_column])


def downgrade() -> None:
    for table_name, _, _ in reversed(COURSE_LINK_TABLES):
        op.drop_table(table_name)
    op.drop_table("courses")
    for table_name, *_ in reversed(MEMBERSHIP_TABLES):
        op.drop_table(table_name)
    for table_name in reversed(GROUP_TABLES):
        op.drop_table(table_name)
    for table_name in reversed(RESOURCE_TABLES):
        op.drop_table(table_name)
    op.drop_index("ix_sessions_name", table_name="sessions")
    op.drop_table("sessions")

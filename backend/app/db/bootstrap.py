from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

import app.models  # noqa: F401  registers every table on Base.metadata
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "sessions": {"id", "name", "details"},
    "students": {"id", "session_id", "digital_id", "start_hour", "end_hour", "timetable"},
    "faculty": {"id", "session_id", "name", "short_form", "start_hour", "end_hour", "timetable"},
    "halls": {"id", "session_id", "name", "building", "floor", "start_hour", "end_hour", "timetable"},
    "student_groups": {"id", "session_id", "group_name", "timetable"},
    "faculty_groups": {"id", "session_id", "group_name", "timetable"},
    "hall_groups": {"id", "session_id", "group_name", "timetable"},
    "courses": {
        "id",
        "session_id",
        "code",
        "class_duration",
        "sessions_per_lecture",
        "total_sessions",
        "scheduled_count",
        "timetable",
    },
    "course_compulsory_hall_groups": {"id", "course_id", "hall_group_id", "required_count"},
}

# Defaulted columns that can be added in place when an existing table lacks them.
ADDITIVE_COLUMNS: dict[str, dict[str, str]] = {
    "courses": {
        "class_duration": "INTEGER NOT NULL DEFAULT 50",
        "sessions_per_lecture": "INTEGER NOT NULL DEFAULT 1",
        "total_sessions": "INTEGER NOT NULL DEFAULT 1",
        "scheduled_count": "INTEGER NOT NULL DEFAULT 0",
    },
    "course_compulsory_hall_groups": {
        "required_count": "INTEGER NOT NULL DEFAULT 1",
    },
}


def _ensure_additive_columns(bind: Engine) -> None:
    with bind.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        for table_name, columns in ADDITIVE_COLUMNS.items():
            if table_name not in table_names:
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name, ddl in columns.items():
                if column_name in existing:
                    continue
                logger.info("Adding column %s.%s", table_name, column_name)
                connection.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {ddl}"))


def _missing_schema(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name in missing_tables:
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def _assert_required_columns(bind: Engine) -> None:
    with bind.connect() as connection:
        missing_tables, missing_columns = _missing_schema(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flat)}")


def schema_status(bind: Engine | None = None) -> dict[str, Any]:
    """Readiness summary used by the health endpoint; never raises."""
    bind = bind or engine
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    try:
        with bind.connect() as connection:
            connection.execute(text("SELECT 1"))
            missing_tables, missing_columns = _missing_schema(connection)
    except SQLAlchemyError as exc:
        logger.warning("Database readiness check failed: %s", exc)
        return {"ok": False, "schema_ok": False, "missing_tables": [], "missing_columns": {}, "error": str(exc)}
    return {
        "ok": True,
        "schema_ok": not missing_tables and not missing_columns,
        "missing_tables": missing_tables,
        "missing_columns": missing_columns,
        "error": None,
    }


def ensure_runtime_schema(bind: Engine | None = None) -> None:
    bind = bind or engine
    try:
        # Create missing tables before additive column patches.
        Base.metadata.create_all(bind=bind)
        _ensure_additive_columns(bind)
        _assert_required_columns(bind)
    except Exception as exc:
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc

"""Session snapshots: export, import into an empty session, and copy between sessions."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import AppError, ConflictError, StorageError
from app.models import Course, CourseRelation, ResourceKind
from app.schemas.group import GroupOut
from app.schemas.resource import FacultyOut, HallOut, StudentOut
from app.schemas.session import (
    ExportedSession,
    ImportReport,
    MembershipRecord,
    SessionCopyResult,
    SessionSnapshot,
)
from app.services.cascade import apply_session_cascade
from app.services.courses import COURSE_WINDOW, LINK_FIELDS, course_to_out, make_link
from app.services.registry import RESOURCE_KINDS
from app.services.sessions import require_session, session_stats
from app.services.storage import commit
from app.services.timetable import WINDOW_FIELDS, validate_timetable

logger = logging.getLogger(__name__)

RESOURCE_OUT = {
    ResourceKind.student: StudentOut,
    ResourceKind.faculty: FacultyOut,
    ResourceKind.hall: HallOut,
}

# Snapshot attribute names per kind: (resources, groups, memberships).
SNAPSHOT_FIELDS = {
    ResourceKind.student: ("students", "student_groups", "student_group_memberships"),
    ResourceKind.faculty: ("faculty", "faculty_groups", "faculty_group_memberships"),
    ResourceKind.hall: ("halls", "hall_groups", "hall_group_memberships"),
}

SLOT_ID_LISTS = (
    "hall_ids",
    "faculty_ids",
    "hall_group_ids",
    "faculty_group_ids",
    "student_ids",
    "student_group_ids",
)

RESOURCE_FIELDS = {
    ResourceKind.student: ("digital_id",),
    ResourceKind.faculty: ("name", "short_form"),
    ResourceKind.hall: ("name", "building", "floor", "short_form"),
}


def export_session(db: Session, session_id: str) -> SessionSnapshot:
    session = require_session(db, session_id)
    snapshot: dict[str, Any] = {
        "session": ExportedSession(
            id=session.id,
            name=session.name,
            details=session.details,
            exported_at=datetime.now(timezone.utc),
        )
    }
    for kind, spec in RESOURCE_KINDS.items():
        resources_key, groups_key, memberships_key = SNAPSHOT_FIELDS[kind]
        resources = db.execute(
            select(spec.model).where(spec.model.session_id == session_id).order_by(spec.model.created_at)
        ).scalars()
        snapshot[resources_key] = [RESOURCE_OUT[kind].model_validate(item) for item in resources]

        groups = list(
            db.execute(
                select(spec.group_model)
                .where(spec.group_model.session_id == session_id)
                .order_by(spec.group_model.group_name)
            ).scalars()
        )
        snapshot[groups_key] = [GroupOut.model_validate(group) for group in groups]

        rows = db.execute(
            select(spec.member_column, spec.group_column)
            .join(spec.group_model, spec.group_model.id == spec.group_column)
            .where(spec.group_model.session_id == session_id)
        ).all()
        snapshot[memberships_key] = [MembershipRecord(resource_id=member, group_id=group) for member, group in rows]
        counts: dict[str, int] = {}
        for record in snapshot[memberships_key]:
            counts[record.group_id] = counts.get(record.group_id, 0) + 1
        for group in snapshot[groups_key]:
            group.member_count = counts.get(group.id, 0)

    courses = db.execute(select(Course).where(Course.session_id == session_id).order_by(Course.code)).scalars()
    snapshot["courses"] = [course_to_out(db, course) for course in courses]
    return SessionSnapshot(**snapshot)


def _remap_timetable(timetable: dict[str, list[dict]], id_map: dict[str, str]) -> dict[str, list[dict]]:
    remapped: dict[str, list[dict]] = {}
    for day, slots in (timetable or {}).items():
        day_slots = []
        for slot in slots or []:
            slot = dict(slot)
            for key in SLOT_ID_LISTS:
                if key in slot:
                    slot[key] = [id_map[old] for old in slot[key] if old in id_map]
            if slot.get("course_id") is not None:
                course_id = id_map.get(slot["course_id"])
                if course_id is None:
                    slot.pop("course_id")
                else:
                    slot["course_id"] = course_id
            day_slots.append(slot)
        remapped[day] = day_slots
    return remapped


def _build_id_map(snapshot: SessionSnapshot) -> dict[str, str]:
    old_ids: list[str] = []
    for resources_key, groups_key, _ in SNAPSHOT_FIELDS.values():
        old_ids.extend(item.id for item in getattr(snapshot, resources_key))
        old_ids.extend(group.id for group in getattr(snapshot, groups_key))
    old_ids.extend(course.id for course in snapshot.courses)
    return {old_id: str(uuid.uuid4()) for old_id in old_ids}


def _stage_import(db: Session, session_id: str, snapshot: SessionSnapshot) -> ImportReport:
    id_map = _build_id_map(snapshot)
    report = ImportReport()

    for kind, spec in RESOURCE_KINDS.items():
        resources_key, groups_key, _ = SNAPSHOT_FIELDS[kind]
        for item in getattr(snapshot, resources_key):
            window = {key: getattr(item, key) for key in WINDOW_FIELDS}
            values = {key: getattr(item, key) for key in RESOURCE_FIELDS[kind]}
            db.add(
                spec.model(
                    id=id_map[item.id],
                    session_id=session_id,
                    timetable=validate_timetable(_remap_timetable(item.timetable, id_map), window),
                    **window,
                    **values,
                )
            )
        setattr(report, resources_key, len(getattr(snapshot, resources_key)))

        for group in getattr(snapshot, groups_key):
            window = {key: getattr(group, key) for key in WINDOW_FIELDS}
            db.add(
                spec.group_model(
                    id=id_map[group.id],
                    session_id=session_id,
                    group_name=group.group_name,
                    timetable=validate_timetable(_remap_timetable(group.timetable, id_map), window),
                    **window,
                )
            )
        setattr(report, groups_key, len(getattr(snapshot, groups_key)))

    # Resources and groups must exist before links point at them.
    db.flush()

    for kind, spec in RESOURCE_KINDS.items():
        memberships_key = SNAPSHOT_FIELDS[kind][2]
        member_key = spec.member_column.key
        group_key = spec.group_column.key
        seen: set[tuple[str, str]] = set()
        for record in getattr(snapshot, memberships_key):
            pair = (id_map.get(record.resource_id), id_map.get(record.group_id))
            if None in pair or pair in seen:
                report.skipped_links += 1
                continue
            seen.add(pair)
            db.add(spec.membership_model(**{member_key: pair[0], group_key: pair[1]}))
            report.memberships += 1

    for course in snapshot.courses:
        new_course_id = id_map[course.id]
        db.add(
            Course(
                id=new_course_id,
                session_id=session_id,
                code=course.code,
                name=course.name,
                class_duration=course.class_duration,
                sessions_per_lecture=course.sessions_per_lecture,
                total_sessions=course.total_sessions,
                scheduled_count=course.scheduled_count,
                timetable=validate_timetable(_remap_timetable(course.timetable, id_map), COURSE_WINDOW),
            )
        )
        report.courses += 1
    db.flush()

    for course in snapshot.courses:
        new_course_id = id_map[course.id]
        for field, spec in LINK_FIELDS.items():
            for target_id in dict.fromkeys(getattr(course, field)):
                new_target_id = id_map.get(target_id)
                if new_target_id is None:
                    report.skipped_links += 1
                    continue
                required_count = 1
                if spec.relation is CourseRelation.compulsory_hall_groups:
                    required_count = course.hall_group_required_counts.get(target_id, 1)
                db.add(make_link(spec, new_course_id, new_target_id, required_count))
                report.course_links += 1
    db.flush()
    return report


def import_session(db: Session, session_id: str, snapshot: SessionSnapshot, commit_changes: bool = True) -> ImportReport:
    """Load ``snapshot`` into an empty session under freshly generated ids.

    Links whose endpoints are not part of the snapshot are skipped and counted.
    With ``commit_changes=False`` the rows are only flushed, leaving the
    transaction to the caller.
    """
    require_session(db, session_id)
    stats = session_stats(db, session_id)
    if any(stats.model_dump().values()):
        raise ConflictError(
            "Target session must be empty before import",
            details={"session_id": session_id, "stats": stats.model_dump()},
        )

    try:
        report = _stage_import(db, session_id, snapshot)
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Import into session %s failed", session_id, exc_info=True)
        raise StorageError("Failed to import session snapshot", details={"session_id": session_id}) from exc

    if commit_changes:
        commit(db, action="import session")
        logger.info("Imported snapshot of %s into session %s: %s", snapshot.session.id, session_id, report.model_dump())
    return report


def copy_session(db: Session, source_id: str, target_id: str) -> SessionCopyResult:
    """Replace the target session's contents with a copy of the source, atomically."""
    if source_id == target_id:
        raise ConflictError("Source and target sessions cannot be the same", details={"session_id": source_id})
    snapshot = export_session(db, source_id)
    require_session(db, target_id)

    try:
        cleared = apply_session_cascade(db, target_id, remove_session=False)
        imported = import_session(db, target_id, snapshot, commit_changes=False)
    except AppError:
        db.rollback()
        raise
    commit(db, action="copy session")
    db.expire_all()
    logger.info("Copied session %s into %s", source_id, target_id)
    return SessionCopyResult(cleared=cleared, imported=imported)

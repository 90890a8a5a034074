from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.exceptions import CrossSessionReferenceError, GroupNotFoundError, NameConflictError
from app.models import ResourceKind
from app.schemas.group import (
    GroupCreate,
    GroupDeleteReport,
    GroupOut,
    GroupUpdate,
    MembershipAddResult,
    MembershipOut,
    MembershipRemoveResult,
)
from app.services.registry import KindSpec, kind_spec, relations_targeting
from app.services.sessions import require_session
from app.services.storage import commit, count_where
from app.services.timetable import WINDOW_FIELDS, apply_working_hours, validate_timetable

logger = logging.getLogger(__name__)


def require_group(db: Session, kind: ResourceKind | str, group_id: str) -> Any:
    spec = kind_spec(kind)
    group = db.get(spec.group_model, group_id)
    if group is None:
        raise GroupNotFoundError(spec.group_label, group_id)
    return group


def _ensure_unique_name(db: Session, spec: KindSpec, session_id: str, name: str, exclude_id: str | None = None) -> None:
    statement = select(spec.group_model.id).where(
        spec.group_model.session_id == session_id,
        spec.group_model.group_name == name,
    )
    if exclude_id is not None:
        statement = statement.where(spec.group_model.id != exclude_id)
    if db.execute(statement).first() is not None:
        raise NameConflictError(spec.group_label, name)


def group_to_out(db: Session, kind: ResourceKind | str, group: Any) -> GroupOut:
    spec = kind_spec(kind)
    out = GroupOut.model_validate(group)
    out.member_count = count_where(db, spec.membership_model.id, spec.group_column == group.id)
    return out


def list_groups(db: Session, kind: ResourceKind | str, session_id: str) -> list[Any]:
    spec = kind_spec(kind)
    require_session(db, session_id)
    statement = (
        select(spec.group_model)
        .where(spec.group_model.session_id == session_id)
        .order_by(spec.group_model.group_name)
    )
    return list(db.execute(statement).scalars())


def create_group(db: Session, kind: ResourceKind | str, session_id: str, payload: GroupCreate) -> Any:
    spec = kind_spec(kind)
    require_session(db, session_id)
    _ensure_unique_name(db, spec, session_id, payload.group_name)

    values = payload.model_dump(exclude={"timetable"})
    window = {key: values[key] for key in WINDOW_FIELDS}
    timetable = payload.model_dump(include={"timetable"}).get("timetable")
    values["timetable"] = validate_timetable(timetable, window)

    group = spec.group_model(session_id=session_id, **values)
    db.add(group)
    commit(db, action=f"create {spec.group_label.lower()}")
    db.refresh(group)
    return group


def update_group(db: Session, kind: ResourceKind | str, group_id: str, payload: GroupUpdate) -> Any:
    spec = kind_spec(kind)
    group = require_group(db, spec.kind, group_id)
    data = payload.model_dump(exclude_unset=True)

    name = data.pop("group_name", None)
    if name is not None and name != group.group_name:
        _ensure_unique_name(db, spec, group.session_id, name, exclude_id=group.id)
        group.group_name = name

    # Group timetables are stored independently of their members' grids.
    apply_working_hours(group, data)
    commit(db, action=f"update {spec.group_label.lower()}")
    db.refresh(group)
    return group


def delete_group(db: Session, kind: ResourceKind | str, group_id: str) -> GroupDeleteReport:
    """Delete a group with its memberships and the course links that name it; members survive."""
    spec = kind_spec(kind)
    group = require_group(db, spec.kind, group_id)

    memberships = db.execute(
        delete(spec.membership_model).where(spec.group_column == group_id),
        execution_options={"synchronize_session": False},
    ).rowcount or 0
    course_links = 0
    for relation in relations_targeting(spec.group_model):
        course_links += db.execute(
            delete(relation.link_model).where(relation.target_column == group_id),
            execution_options={"synchronize_session": False},
        ).rowcount or 0

    db.delete(group)
    commit(db, action=f"delete {spec.group_label.lower()}")
    logger.info(
        "Deleted %s %s (%d memberships, %d course links)",
        spec.group_label.lower(),
        group_id,
        memberships,
        course_links,
    )
    return GroupDeleteReport(memberships=memberships, course_links=course_links)


def list_members(db: Session, kind: ResourceKind | str, group_id: str) -> list[Any]:
    spec = kind_spec(kind)
    require_group(db, spec.kind, group_id)
    statement = (
        select(spec.model)
        .join(spec.membership_model, spec.member_column == spec.model.id)
        .where(spec.group_column == group_id)
        .order_by(spec.model.id)
    )
    return list(db.execute(statement).scalars())


def add_members(db: Session, kind: ResourceKind | str, group_id: str, resource_ids: list[str]) -> MembershipAddResult:
    """Add resources to a group with per-item outcomes.

    Every id must resolve to a resource of the same kind in the group's session,
    otherwise nothing is inserted. Past that check each id succeeds or counts
    as failed on its own; a duplicate never aborts the batch.
    """
    spec = kind_spec(kind)
    group = require_group(db, spec.kind, group_id)

    requested = list(dict.fromkeys(resource_ids))
    found = set(
        db.execute(
            select(spec.model.id).where(
                spec.model.id.in_(requested),
                spec.model.session_id == group.session_id,
            )
        ).scalars()
    )
    invalid = [resource_id for resource_id in requested if resource_id not in found]
    if invalid:
        logger.warning(
            "Rejected %d member id(s) for %s %s: missing or outside session %s",
            len(invalid),
            spec.group_label.lower(),
            group_id,
            group.session_id,
        )
        raise CrossSessionReferenceError(spec.label.lower(), invalid)

    present = set(
        db.execute(
            select(spec.member_column).where(spec.group_column == group_id, spec.member_column.in_(requested))
        ).scalars()
    )
    member_key = spec.member_column.key
    group_key = spec.group_column.key
    created = []
    failed = 0
    for resource_id in resource_ids:
        if resource_id in present:
            failed += 1
            continue
        membership = spec.membership_model(**{member_key: resource_id, group_key: group_id})
        db.add(membership)
        present.add(resource_id)
        created.append(membership)

    commit(db, action=f"add members to {spec.group_label.lower()}")
    added = [
        MembershipOut(id=item.id, group_id=group_id, resource_id=getattr(item, member_key))
        for item in created
    ]
    message = f"Successfully added {len(added)} members"
    if failed:
        message += f", {failed} already existed"
    logger.info("%s %s: added %d, failed %d", spec.group_label, group_id, len(added), failed)
    return MembershipAddResult(added=added, failed=failed, message=message)


def remove_members(
    db: Session, kind: ResourceKind | str, group_id: str, resource_ids: list[str]
) -> MembershipRemoveResult:
    spec = kind_spec(kind)
    require_group(db, spec.kind, group_id)
    removed = db.execute(
        delete(spec.membership_model).where(
            spec.group_column == group_id,
            spec.member_column.in_(set(resource_ids)),
        ),
        execution_options={"synchronize_session": False},
    ).rowcount or 0
    commit(db, action=f"remove members from {spec.group_label.lower()}")
    return MembershipRemoveResult(removed=removed, message=f"Successfully removed {removed} members from group")

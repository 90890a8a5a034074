from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NameConflictError, SessionNotFoundError
from app.models import Course, SchedulingSession
from app.schemas.session import SessionCreate, SessionStats, SessionUpdate
from app.services.registry import RESOURCE_KINDS
from app.services.storage import commit, count_where

logger = logging.getLogger(__name__)


def require_session(db: Session, session_id: str) -> SchedulingSession:
    session = db.get(SchedulingSession, session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    return session


def list_sessions(db: Session) -> list[SchedulingSession]:
    statement = select(SchedulingSession).order_by(SchedulingSession.created_at.desc(), SchedulingSession.name)
    return list(db.execute(statement).scalars())


def create_session(db: Session, payload: SessionCreate) -> SchedulingSession:
    existing = db.execute(
        select(SchedulingSession).where(SchedulingSession.name == payload.name)
    ).scalar_one_or_none()
    if existing is not None:
        raise NameConflictError("Session", payload.name)
    session = SchedulingSession(name=payload.name, details=payload.details)
    db.add(session)
    commit(db, action="create session")
    db.refresh(session)
    logger.info("Created session %s (%s)", session.id, session.name)
    return session


def update_session(db: Session, session_id: str, payload: SessionUpdate) -> SchedulingSession:
    session = require_session(db, session_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("name") is not None:
        existing = db.execute(
            select(SchedulingSession).where(
                SchedulingSession.name == data["name"],
                SchedulingSession.id != session_id,
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise NameConflictError("Session", data["name"])
    elif "name" in data:
        data.pop("name")

    for key, value in data.items():
        setattr(session, key, value)
    commit(db, action="update session")
    db.refresh(session)
    return session


def session_stats(db: Session, session_id: str) -> SessionStats:
    require_session(db, session_id)
    counts = {"courses": count_where(db, Course.id, Course.session_id == session_id)}
    for spec in RESOURCE_KINDS.values():
        counts[spec.model.__tablename__] = count_where(db, spec.model.id, spec.model.session_id == session_id)
        counts[spec.group_model.__tablename__] = count_where(
            db, spec.group_model.id, spec.group_model.session_id == session_id
        )
    return SessionStats(**counts)

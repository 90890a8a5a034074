from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import Identity, Role, get_current_identity, get_db, require_roles
from app.schemas.session import (
    DeleteReport,
    ImportReport,
    SessionCopyRequest,
    SessionCopyResult,
    SessionCreate,
    SessionOut,
    SessionSnapshot,
    SessionStats,
    SessionUpdate,
)
from app.services import cascade, sessions, transfer

router = APIRouter()


@router.get("/", response_model=list[SessionOut])
def list_sessions(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> list[SessionOut]:
    return sessions.list_sessions(db)


@router.post("/", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: SessionCreate,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> SessionOut:
    return sessions.create_session(db, payload)


@router.post("/copy", response_model=SessionCopyResult)
def copy_session(
    payload: SessionCopyRequest,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> SessionCopyResult:
    return transfer.copy_session(db, payload.source_session_id, payload.target_session_id)


@router.get("/{session_id}", response_model=SessionOut)
def get_session(
    session_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> SessionOut:
    return sessions.require_session(db, session_id)


@router.put("/{session_id}", response_model=SessionOut)
def update_session(
    session_id: str,
    payload: SessionUpdate,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> SessionOut:
    return sessions.update_session(db, session_id, payload)


@router.delete("/{session_id}", response_model=DeleteReport)
def delete_session(
    session_id: str,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> DeleteReport:
    return cascade.delete_session(db, session_id)


@router.post("/{session_id}/clear", response_model=DeleteReport)
def clear_session(
    session_id: str,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> DeleteReport:
    return cascade.clear_session(db, session_id)


@router.get("/{session_id}/stats", response_model=SessionStats)
def session_stats(
    session_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> SessionStats:
    return sessions.session_stats(db, session_id)


@router.get("/{session_id}/export", response_model=SessionSnapshot)
def export_session(
    session_id: str,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> SessionSnapshot:
    return transfer.export_session(db, session_id)


@router.post("/{session_id}/import", response_model=ImportReport, status_code=status.HTTP_201_CREATED)
def import_session(
    session_id: str,
    payload: SessionSnapshot,
    identity: Identity = Depends(require_roles(Role.admin)),
    db: Session = Depends(get_db),
) -> ImportReport:
    return transfer.import_session(db, session_id, payload)

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, StorageError

logger = logging.getLogger(__name__)


def commit(db: Session, *, action: str) -> None:
    """Commit the unit of work, translating driver failures into application errors."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity violation while trying to %s: %s", action, exc.orig)
        raise ConflictError(f"Could not {action}: a conflicting record already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Storage failure while trying to %s", action, exc_info=True)
        raise StorageError(f"Could not {action}", details={"action": action}) from exc


def count_where(db: Session, column, *criteria) -> int:
    return int(db.execute(select(func.count(column)).where(*criteria)).scalar_one())

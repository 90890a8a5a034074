from collections.abc import Callable, Generator, Iterable
from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.security import decode_token
from app.db.session import SessionLocal

security = HTTPBearer()


class Role(str, Enum):
    admin = "admin"
    professor = "professor"
    student = "student"


@dataclass(frozen=True)
class Identity:
    sub: str
    role: Role


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_identity(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Identity:
    token = credentials.credentials
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
    except JWTError as exc:
        raise credentials_exception from exc

    subject = payload.get("sub")
    if subject is None:
        raise credentials_exception
    try:
        role = Role(payload.get("role"))
    except ValueError as exc:
        raise credentials_exception from exc
    return Identity(sub=subject, role=role)


def require_roles(*roles: Role) -> Callable[[Identity], Identity]:
    allowed_roles: Iterable[Role] = set(roles)

    def role_checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return identity

    return role_checker

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from devsera.core.database import get_db
from devsera.core.security import decode_access_token
from devsera.models import AuditLog, Profile

log = logging.getLogger("devsera")

security = HTTPBearer(auto_error=False)


def client_ip(request: Request) -> str:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return request.client.host if request.client else ""


def audit(db: Session, event: str, user_id: int | None, ip: str | None = None, detail: str | None = None) -> None:
    """Best effort: a failed audit write never fails the request."""
    try:
        db.add(AuditLog(event=event, user_id=user_id, ip=ip or None, detail=detail))
        db.commit()
    except Exception as e:
        db.rollback()
        log.warning("AuditLog write failed event=%s: %s", event, e)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> int:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please sign in to continue.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token.",
        )
    return int(payload["sub"])


def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Profile:
    user = db.get(Profile, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated. Please contact support.",
        )
    return user


def get_optional_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> int | None:
    """Catalog pages work signed out; a valid token only unlocks premium pricing."""
    if not credentials:
        return None
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        return None
    return int(payload["sub"])

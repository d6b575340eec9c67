"""Error log viewer over rows written by the unhandled exception handler."""
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete
from sqlmodel import Session, select

from devsera.admin.deps import require_permission, require_super_admin
from devsera.core.database import get_db
from devsera.models import ErrorLog

router = APIRouter()


def log_time(value: datetime | None) -> str:
    return value.strftime("%d.%m.%Y %H:%M:%S") if value else "-"


@router.get("")
def errors_list(
    path: str | None = None,
    limit: int = Query(100, ge=1, le=500),
    _=Depends(require_permission("can_view_settings")),
    db: Session = Depends(get_db),
):
    stmt = select(ErrorLog).order_by(ErrorLog.id.desc()).limit(limit)
    if path:
        stmt = stmt.where(ErrorLog.endpoint.startswith(path))
    return [
        {
            "id": row.id,
            "user_id": row.user_id,
            "request": f"{row.method or '?'} {row.endpoint or '?'}",
            "message": (row.error_message or "")[:200],
            "created_at": log_time(row.created_at),
        }
        for row in db.exec(stmt).all()
    ]


@router.get("/{error_id}")
def error_detail(error_id: int, _=Depends(require_permission("can_view_settings")), db: Session = Depends(get_db)):
    row = db.get(ErrorLog, error_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Log entry not found.")
    return {**row.model_dump(exclude={"created_at"}), "created_at": log_time(row.created_at)}


@router.delete("")
def errors_prune(
    older_than_days: int = Query(30, ge=1),
    _=Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    cutoff = datetime.utcnow() - timedelta(days=older_than_days)
    result = db.execute(delete(ErrorLog).where(ErrorLog.created_at < cutoff))
    db.commit()
    return {"deleted": result.rowcount or 0}

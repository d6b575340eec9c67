"""Security events (failed logins, rate-limit hits) and the admin audit trail."""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, func, select

from devsera.admin.deps import require_permission
from devsera.admin.routers.errors import log_time
from devsera.core.database import get_db
from devsera.models import AuditLog, SecurityLog

router = APIRouter()

SECURITY_EVENTS = ("failed_login", "rate_limit", "suspicious")


@router.get("")
def security_list(
    event: str | None = None,
    ip: str | None = None,
    limit: int = Query(100, ge=1, le=500),
    _=Depends(require_permission("can_view_settings")),
    db: Session = Depends(get_db),
):
    stmt = select(SecurityLog).order_by(SecurityLog.id.desc()).limit(limit)
    if event in SECURITY_EVENTS:
        stmt = stmt.where(SecurityLog.event == event)
    if ip:
        stmt = stmt.where(SecurityLog.ip == ip)
    return [
        {
            "id": s.id,
            "event": s.event,
            "user_id": s.user_id,
            "ip": s.ip,
            "endpoint": s.endpoint,
            "detail": (s.detail or "")[:150],
            "created_at": log_time(s.created_at),
        }
        for s in db.exec(stmt).all()
    ]


@router.get("/summary")
def security_summary(_=Depends(require_permission("can_view_settings")), db: Session = Depends(get_db)):
    """Event counts plus the noisiest IPs."""
    counts = dict(db.exec(select(SecurityLog.event, func.count(SecurityLog.id)).group_by(SecurityLog.event)).all())
    top_ips = db.exec(
        select(SecurityLog.ip, func.count(SecurityLog.id).label("n"))
        .where(SecurityLog.ip.is_not(None))
        .group_by(SecurityLog.ip)
        .order_by(func.count(SecurityLog.id).desc())
        .limit(10)
    ).all()
    return {
        "events": {e: counts.get(e, 0) for e in SECURITY_EVENTS},
        "top_ips": [{"ip": ip, "count": n} for ip, n in top_ips],
    }


@router.get("/audit")
def audit_list(
    event: str | None = None,
    user_id: int | None = None,
    limit: int = Query(100, ge=1, le=500),
    _=Depends(require_permission("can_view_settings")),
    db: Session = Depends(get_db),
):
    stmt = select(AuditLog).order_by(AuditLog.id.desc()).limit(limit)
    if event:
        stmt = stmt.where(AuditLog.event == event)
    if user_id is not None:
        stmt = stmt.where(AuditLog.user_id == user_id)
    return [
        {"id": a.id, "event": a.event, "user_id": a.user_id, "ip": a.ip, "detail": a.detail, "created_at": log_time(a.created_at)}
        for a in db.exec(stmt).all()
    ]

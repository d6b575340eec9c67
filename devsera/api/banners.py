from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session, or_, select

from devsera.core.database import get_db
from devsera.models import Banner

router = APIRouter(prefix="/banners", tags=["banners"])


def banner_dict(b: Banner) -> dict:
    return {
        "id": b.id,
        "title": b.title,
        "subtitle": b.subtitle,
        "description": b.description,
        "button_text": b.button_text,
        "button_link": b.button_link,
        "gradient": b.gradient,
        "icon_type": b.icon_type,
        "image_url": b.image_url,
        "is_active": b.is_active,
        "display_order": b.display_order,
        "start_date": b.start_date.isoformat() if b.start_date else None,
        "end_date": b.end_date.isoformat() if b.end_date else None,
    }


@router.get("")
def active_banners(db: Session = Depends(get_db)):
    """Active banners whose date window contains now, in display order."""
    now = datetime.utcnow()
    rows = db.exec(
        select(Banner)
        .where(Banner.is_active == True)  # noqa: E712
        .where(or_(Banner.start_date.is_(None), Banner.start_date <= now))
        .where(or_(Banner.end_date.is_(None), Banner.end_date >= now))
        .order_by(Banner.display_order, Banner.id)
    ).all()
    return [banner_dict(b) for b in rows]

"""Banner manager: CRUD, activation toggle and drag-and-drop reordering."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, func, select

from devsera.admin.deps import require_permission
from devsera.api.banners import banner_dict
from devsera.core.database import get_db
from devsera.models import Banner
from devsera.schemas import BannerIn, ReorderRequest

router = APIRouter()


def _banner(db: Session, banner_id: int) -> Banner:
    b = db.get(Banner, banner_id)
    if not b:
        raise HTTPException(status_code=404, detail="Banner not found.")
    return b


def _check_window(body: BannerIn) -> None:
    if body.start_date and body.end_date and body.end_date < body.start_date:
        raise HTTPException(status_code=422, detail="End date must be after the start date.")


@router.get("")
def banners_list(_=Depends(require_permission("can_view_products")), db: Session = Depends(get_db)):
    rows = db.exec(select(Banner).order_by(Banner.display_order, Banner.id)).all()
    return [banner_dict(b) for b in rows]


@router.post("", status_code=201)
def banner_create(
    body: BannerIn,
    _=Depends(require_permission("can_edit_products")),
    db: Session = Depends(get_db),
):
    _check_window(body)
    data = body.with_defaults()
    if data["display_order"] is None:
        # new banners go to the end
        data["display_order"] = (db.exec(select(func.max(Banner.display_order))).one() or 0) + 1
    b = Banner(**data)
    db.add(b)
    db.commit()
    db.refresh(b)
    return banner_dict(b)


@router.put("/{banner_id}")
def banner_update(
    banner_id: int,
    body: BannerIn,
    _=Depends(require_permission("can_edit_products")),
    db: Session = Depends(get_db),
):
    _check_window(body)
    b = _banner(db, banner_id)
    for field, value in body.with_defaults().items():
        if field == "display_order" and value is None:
            continue
        setattr(b, field, value)
    b.updated_at = datetime.utcnow()
    db.add(b)
    db.commit()
    db.refresh(b)
    return banner_dict(b)


@router.post("/{banner_id}/toggle")
def banner_toggle(banner_id: int, _=Depends(require_permission("can_edit_products")), db: Session = Depends(get_db)):
    b = _banner(db, banner_id)
    b.is_active = not b.is_active
    b.updated_at = datetime.utcnow()
    db.add(b)
    db.commit()
    return {"id": b.id, "is_active": b.is_active}


@router.post("/reorder")
def banners_reorder(
    body: ReorderRequest,
    _=Depends(require_permission("can_edit_products")),
    db: Session = Depends(get_db),
):
    """display_order follows the position in the given id list, starting at 1."""
    banners = {b.id: b for b in db.exec(select(Banner).where(Banner.id.in_(body.ids))).all()}
    missing = [i for i in body.ids if i not in banners]
    if missing:
        raise HTTPException(status_code=404, detail=f"Unknown banner ids: {', '.join(map(str, missing))}")
    now = datetime.utcnow()
    for index, banner_id in enumerate(body.ids):
        b = banners[banner_id]
        b.display_order = index + 1
        b.updated_at = now
        db.add(b)
    db.commit()
    rows = db.exec(select(Banner).order_by(Banner.display_order, Banner.id)).all()
    return [banner_dict(b) for b in rows]


@router.delete("/{banner_id}")
def banner_delete(banner_id: int, _=Depends(require_permission("can_delete_products")), db: Session = Depends(get_db)):
    db.delete(_banner(db, banner_id))
    db.commit()
    return {"ok": True}

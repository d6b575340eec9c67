"""Coupon manager: CRUD over discount coupons."""
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from devsera.admin.deps import require_permission
from devsera.core.database import get_db
from devsera.models import Coupon
from devsera.schemas import CouponIn

router = APIRouter()


def _item(r: Coupon) -> dict:
    return {
        "id": r.id,
        "code": r.code,
        "discount_type": r.discount_type,
        "discount_value": r.discount_value,
        "valid_from": r.valid_from.strftime("%Y-%m-%d") if r.valid_from else "",
        "valid_until": r.valid_until.strftime("%Y-%m-%d") if r.valid_until else "",
        "valid_days_of_month": r.valid_days_of_month or "",
        "max_uses": r.max_uses,
        "use_count": r.use_count or 0,
        "products": r.products or "",
        "user_id": r.user_id,
        "created_at": r.created_at.strftime("%d.%m.%Y %H:%M") if r.created_at else "-",
    }


def _apply(coupon: Coupon, body: CouponIn, code_clean: str) -> None:
    if body.discount_type == "percent" and body.discount_value > 100:
        raise HTTPException(status_code=422, detail="Percent discounts must be between 1 and 100.")
    if body.valid_from and body.valid_until and body.valid_until < body.valid_from:
        raise HTTPException(status_code=422, detail="Valid until must be after valid from.")
    coupon.code = code_clean
    coupon.discount_type = body.discount_type
    coupon.discount_value = body.discount_value
    coupon.valid_from = body.valid_from
    coupon.valid_until = body.valid_until
    coupon.valid_days_of_month = (body.valid_days_of_month or "").strip() or None
    coupon.max_uses = body.max_uses
    coupon.products = (body.products or "").strip() or None


@router.get("")
def coupons_list(_=Depends(require_permission("can_view_rewards")), db: Session = Depends(get_db)):
    return [_item(r) for r in db.exec(select(Coupon).order_by(Coupon.id.desc())).all()]


@router.post("", status_code=201)
def coupon_create(
    body: CouponIn,
    _=Depends(require_permission("can_edit_rewards")),
    db: Session = Depends(get_db),
):
    code_clean = body.code.strip().upper()
    if not code_clean:
        raise HTTPException(status_code=422, detail="Code cannot be empty.")
    if db.exec(select(Coupon).where(Coupon.code == code_clean)).first():
        raise HTTPException(status_code=400, detail="This code already exists.")
    coupon = Coupon(code=code_clean, discount_value=body.discount_value)
    _apply(coupon, body, code_clean)
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    return _item(coupon)


@router.put("/{coupon_id}")
def coupon_update(
    coupon_id: int,
    body: CouponIn,
    _=Depends(require_permission("can_edit_rewards")),
    db: Session = Depends(get_db),
):
    coupon = db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found.")
    code_clean = body.code.strip().upper()
    if not code_clean:
        raise HTTPException(status_code=422, detail="Code cannot be empty.")
    existing = db.exec(select(Coupon).where(Coupon.code == code_clean, Coupon.id != coupon_id)).first()
    if existing:
        raise HTTPException(status_code=400, detail="This code is already used by another coupon.")
    _apply(coupon, body, code_clean)
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    return _item(coupon)


@router.delete("/{coupon_id}")
def coupon_delete(
    coupon_id: int,
    _=Depends(require_permission("can_delete_rewards")),
    db: Session = Depends(get_db),
):
    coupon = db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found.")
    db.delete(coupon)
    db.commit()
    return {"ok": True}

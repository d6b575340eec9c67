"""Loyalty points, personal coupons and coupon checks."""
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from devsera.api.deps import get_current_user
from devsera.core.database import get_db
from devsera.models import Coupon, Product, Profile
from devsera.services import coupon as coupon_service
from devsera.services import loyalty
from devsera.services.orders import quote

router = APIRouter(prefix="/rewards", tags=["rewards"])


def coupon_dict(c: Coupon) -> dict:
    return {
        "id": c.id,
        "code": c.code,
        "discount_type": c.discount_type,
        "discount_value": c.discount_value,
        "valid_until": c.valid_until.isoformat() if c.valid_until else None,
        "max_uses": c.max_uses,
        "use_count": c.use_count or 0,
    }


@router.get("/points")
def my_points(user: Profile = Depends(get_current_user), db: Session = Depends(get_db)):
    account = loyalty.get_or_create_account(db, user.id)
    return {
        "total_points": account.total_points,
        "lifetime_points": account.lifetime_points,
        "tier": account.tier,
        "points_per_coupon": coupon_service.POINTS_PER_COUPON,
        "transactions": [
            {
                "id": t.id,
                "points": t.points,
                "type": t.type,
                "description": t.description,
                "order_id": t.order_id,
                "created_at": t.created_at.isoformat() if t.created_at else None,
            }
            for t in loyalty.transactions(db, user.id)
        ],
    }


@router.get("/coupons")
def my_coupons(user: Profile = Depends(get_current_user), db: Session = Depends(get_db)):
    return [coupon_dict(c) for c in coupon_service.available_coupons(db, user.id)]


@router.post("/redeem")
def redeem(user: Profile = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        c = coupon_service.redeem_points_for_coupon(db, user.id)
    except coupon_service.CouponError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return coupon_dict(c)


@router.get("/validate-coupon")
def validate_coupon(
    code: str,
    product_id: int,
    variant_id: int | None = None,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found.")
    _, price, error = quote(db, product, variant_id, user.id, code)
    if error:
        raise HTTPException(status_code=422, detail=error)
    return {
        "code": code.strip().upper(),
        "discount": price.coupon_discount,
        "final_price": price.final_price,
    }

"""Coupon validation, discount calculation and loyalty-point redemption."""
import secrets
import string
from datetime import date, datetime

from sqlmodel import Session, select

from devsera.models import Coupon
from devsera.services.loyalty import get_or_create_account, record_points

POINTS_PER_COUPON = 5000
COUPON_VALUE = 100
REDEEMED_COUPON_MONTHS = 3
_CODE_ALPHABET = string.ascii_uppercase + string.digits


class CouponError(Exception):
    pass


def _parse_days_of_month(s: str | None) -> set[int] | None:
    """'1-7' or '1,15,20' to a set of day numbers. Empty/None -> None (every day)."""
    if not s or not (s := s.strip()):
        return None
    out: set[int] = set()
    for part in s.split(","):
        part = part.strip()
        if "-" in part:
            a, b = part.split("-", 1)
            try:
                lo, hi = int(a.strip()), int(b.strip())
                if 1 <= lo <= 31 and 1 <= hi <= 31:
                    out.update(range(lo, hi + 1))
            except ValueError:
                continue
        else:
            try:
                n = int(part)
                if 1 <= n <= 31:
                    out.add(n)
            except ValueError:
                continue
    return out if out else None


def _add_months(d: date, n: int) -> date:
    y, m = d.year, d.month + n
    while m > 12:
        m -= 12
        y += 1
    # clamp to the last day of the target month
    for day in (d.day, 30, 29, 28):
        try:
            return date(y, m, day)
        except ValueError:
            continue
    return date(y, m, 28)


def find_coupon(db: Session, code: str) -> Coupon | None:
    code_upper = (code or "").upper().strip()
    if not code_upper:
        return None
    return db.exec(select(Coupon).where(Coupon.code == code_upper)).first()


def validate_coupon(
    db: Session,
    code: str,
    product_id: int | None,
    base_amount: int,
    user_id: int | None = None,
    today: date | None = None,
) -> tuple[int, str | None]:
    """
    Validates the coupon and returns the discount amount.
    (discount, error_message). error_message is None when the coupon applies.
    """
    if not code or not code.strip():
        return 0, "No coupon code entered."
    coupon = find_coupon(db, code)
    if not coupon:
        return 0, "Invalid or expired coupon code."
    if coupon.user_id is not None and coupon.user_id != user_id:
        return 0, "Invalid or expired coupon code."

    today = today or date.today()
    if coupon.valid_from and today < coupon.valid_from:
        return 0, "This coupon is not valid yet."
    if coupon.valid_until and today > coupon.valid_until:
        return 0, "This coupon has expired."

    days_ok = _parse_days_of_month(coupon.valid_days_of_month)
    if days_ok is not None and today.day not in days_ok:
        return 0, "This coupon is not valid today."

    if coupon.max_uses is not None and (coupon.use_count or 0) >= coupon.max_uses:
        return 0, "This coupon has already been used."

    if coupon.products:
        allowed = [p.strip() for p in coupon.products.split(",") if p.strip()]
        if allowed and str(product_id) not in allowed:
            return 0, "This coupon is not valid for the selected product."

    if coupon.discount_type == "percent":
        if not (1 <= coupon.discount_value <= 100):
            return 0, "Invalid discount rate."
        discount = int(base_amount * coupon.discount_value / 100)
    elif coupon.discount_type == "fixed":
        discount = min(coupon.discount_value, base_amount)
    else:
        return 0, "Invalid discount type."

    if discount <= 0:
        return 0, None
    return discount, None


def apply_coupon_use(db: Session, code: str, order_id: int | None = None) -> None:
    """Increments the use counter once the order exists."""
    coupon = find_coupon(db, code)
    if coupon:
        coupon.use_count = (coupon.use_count or 0) + 1
        coupon.last_order_id = order_id
        db.add(coupon)
        db.commit()


def available_coupons(db: Session, user_id: int, today: date | None = None) -> list[Coupon]:
    today = today or date.today()
    rows = db.exec(select(Coupon).where(Coupon.user_id == user_id).order_by(Coupon.id.desc())).all()
    return [
        c
        for c in rows
        if (c.max_uses is None or (c.use_count or 0) < c.max_uses)
        and (not c.valid_until or c.valid_until >= today)
    ]


def generate_coupon_code(prefix: str = "SAVE100-") -> str:
    return prefix + "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))


def redeem_points_for_coupon(db: Session, user_id: int) -> Coupon:
    """Trades POINTS_PER_COUPON points for a personal single-use fixed coupon."""
    account = get_or_create_account(db, user_id)
    if (account.total_points or 0) < POINTS_PER_COUPON:
        raise CouponError(f"You need at least {POINTS_PER_COUPON} points to redeem a coupon")
    code = generate_coupon_code()
    while find_coupon(db, code):
        code = generate_coupon_code()
    coupon = Coupon(
        code=code,
        discount_type="fixed",
        discount_value=COUPON_VALUE,
        valid_from=date.today(),
        valid_until=_add_months(date.today(), REDEEMED_COUPON_MONTHS),
        max_uses=1,
        user_id=user_id,
        created_at=datetime.utcnow(),
    )
    db.add(coupon)
    record_points(
        db,
        user_id,
        -POINTS_PER_COUPON,
        "redeemed",
        f"Redeemed {POINTS_PER_COUPON} points for {COUPON_VALUE} coupon",
    )
    db.refresh(coupon)
    return coupon

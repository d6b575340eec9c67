"""Dashboard: headline numbers, monthly trend and low-stock alerts."""
from datetime import date, datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session, func, select

from devsera.admin.deps import get_current_admin
from devsera.core.database import get_db
from devsera.models import Order, PremiumMembership, Product, Profile
from devsera.services.stock import get_product_stock_count

router = APIRouter()

DEFAULT_LOW_STOCK = 5


def _month_minus(d: date, n: int) -> date:
    """First day of the month n months before d (negative n goes forward)."""
    y, m = d.year, d.month - n
    while m <= 0:
        m += 12
        y -= 1
    while m > 12:
        m -= 12
        y += 1
    return date(y, m, 1)


def _monthly_stats(db: Session, today: date, months: int = 12) -> list[dict]:
    out = []
    for i in range(months - 1, -1, -1):
        start = _month_minus(today, i)
        end = _month_minus(today, i - 1)
        dt_start = datetime(start.year, start.month, 1)
        dt_end = datetime(end.year, end.month, 1)
        n_orders, revenue = db.exec(
            select(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0))
            .where(Order.status == "COMPLETED")
            .where(Order.created_at >= dt_start)
            .where(Order.created_at < dt_end)
        ).one()
        out.append({"month": start.strftime("%b %Y"), "orders": n_orders or 0, "revenue": int(revenue or 0)})
    return out


def low_stock_products(db: Session) -> list[dict]:
    rows = []
    for p in db.exec(select(Product).where(Product.is_active == True)).all():  # noqa: E712
        threshold = p.low_stock_alert if p.low_stock_alert is not None else DEFAULT_LOW_STOCK
        count = get_product_stock_count(db, p.id)
        if count <= threshold:
            rows.append({"id": p.id, "name": p.name, "stock_count": count, "threshold": threshold})
    rows.sort(key=lambda r: r["stock_count"])
    return rows


@router.get("")
def dashboard(_=Depends(get_current_admin), db: Session = Depends(get_db)):
    by_status = dict(db.exec(select(Order.status, func.count(Order.id)).group_by(Order.status)).all())
    revenue = db.exec(
        select(func.coalesce(func.sum(Order.total_amount), 0)).where(Order.status == "COMPLETED")
    ).one()
    return {
        "orders": {s: by_status.get(s, 0) for s in ("PENDING", "SUBMITTED", "COMPLETED", "CANCELLED")},
        "pending_verification": by_status.get("SUBMITTED", 0),
        "revenue": int(revenue or 0),
        "products": db.exec(select(func.count(Product.id))).one() or 0,
        "customers": db.exec(select(func.count(Profile.id)).where(Profile.role == "user")).one() or 0,
        "premium_pending": db.exec(
            select(func.count(PremiumMembership.id)).where(PremiumMembership.status == "pending")
        ).one()
        or 0,
        "monthly": _monthly_stats(db, date.today()),
    }


@router.get("/low-stock")
def low_stock(_=Depends(get_current_admin), db: Session = Depends(get_db)):
    return low_stock_products(db)

"""Customer list with order totals, activation toggle and CSV export."""
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, func, select

from devsera.admin.deps import require_permission
from devsera.core.database import get_db
from devsera.models import Order, Profile
from devsera.schemas import ActiveUpdate
from devsera.services.csv_export import CUSTOMER_COLUMNS, csv_response, generate_csv
from devsera.services.premium import is_premium

router = APIRouter()


def _customer_rows(db: Session, q: str | None = None) -> list[dict]:
    stmt = select(Profile).where(Profile.role == "user").order_by(Profile.id.desc())
    if q and q.strip():
        like = f"%{q.strip()}%"
        stmt = stmt.where((Profile.email.ilike(like)) | (Profile.full_name.ilike(like)))
    profiles = list(db.exec(stmt).all())
    totals = {
        row[0]: (row[1], row[2])
        for row in db.exec(
            select(Order.user_id, func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0))
            .where(Order.status == "COMPLETED")
            .group_by(Order.user_id)
        ).all()
    }
    return [
        {"profile": p, "order_count": totals.get(p.id, (0, 0))[0], "total_spent": int(totals.get(p.id, (0, 0))[1])}
        for p in profiles
    ]


@router.get("")
def customers_list(
    q: str | None = None,
    _=Depends(require_permission("can_view_customers")),
    db: Session = Depends(get_db),
):
    return [
        {
            "id": r["profile"].id,
            "email": r["profile"].email,
            "full_name": r["profile"].full_name,
            "is_active": r["profile"].is_active,
            "is_premium": is_premium(db, r["profile"].id),
            "order_count": r["order_count"],
            "total_spent": r["total_spent"],
            "created_at": r["profile"].created_at.strftime("%d.%m.%Y %H:%M") if r["profile"].created_at else "-",
        }
        for r in _customer_rows(db, q)
    ]


@router.get("/export")
def customers_export(_=Depends(require_permission("can_view_customers")), db: Session = Depends(get_db)):
    return csv_response(generate_csv(_customer_rows(db), CUSTOMER_COLUMNS), "customers")


@router.put("/{customer_id}/active")
def customer_active(
    customer_id: int,
    body: ActiveUpdate,
    _=Depends(require_permission("can_edit_customers")),
    db: Session = Depends(get_db),
):
    p = db.get(Profile, customer_id)
    if not p or p.role != "user":
        raise HTTPException(status_code=404, detail="Customer not found.")
    p.is_active = body.is_active
    db.add(p)
    db.commit()
    return {"id": p.id, "is_active": p.is_active}

"""Order verification: review submitted payments, approve with credentials or reject."""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session, select

from devsera.admin.deps import require_permission
from devsera.api.deps import audit, client_ip
from devsera.core.database import get_db
from devsera.models import Order, Product, ProductVariant, Profile
from devsera.models.product import KEYED_DELIVERY_TYPES
from devsera.schemas import ApprovalCredentials, RejectRequest
from devsera.services import orders as order_service
from devsera.services.csv_export import ORDER_COLUMNS, csv_response, generate_csv
from devsera.services.stock import first_available_key, get_product_stock_count

router = APIRouter()


def _row(db: Session, o: Order) -> dict:
    customer = db.get(Profile, o.user_id)
    product = db.get(Product, o.product_id)
    variant = db.get(ProductVariant, o.variant_id) if o.variant_id else None
    return {
        "order": o,
        "customer_email": customer.email if customer else "",
        "product_name": product.name if product else "",
        "variant_name": variant.name if variant else "",
    }


def admin_order_dict(db: Session, o: Order) -> dict:
    r = _row(db, o)
    return {
        "id": o.id,
        "user_id": o.user_id,
        "customer_email": r["customer_email"],
        "product_id": o.product_id,
        "product_name": r["product_name"],
        "variant_id": o.variant_id,
        "variant_name": r["variant_name"],
        "delivery_type": order_service.order_delivery_type(db, o),
        "status": o.status,
        "total_amount": o.total_amount,
        "payment_screenshot": o.payment_screenshot,
        "user_provided_input": o.user_provided_input,
        "user_provided_credentials": o.user_provided_credentials,
        "credentials": o.credentials,
        "cancellation_reason": o.cancellation_reason,
        "coupon_code_used": o.coupon_code_used,
        "created_at": o.created_at.strftime("%d.%m.%Y %H:%M") if o.created_at else "-",
    }


def _order(db: Session, order_id: int) -> Order:
    o = db.get(Order, order_id)
    if not o:
        raise HTTPException(status_code=404, detail="Order not found.")
    return o


@router.get("")
def orders_list(
    status: str | None = None,
    _=Depends(require_permission("can_view_orders")),
    db: Session = Depends(get_db),
    limit: int = 200,
):
    stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(min(max(limit, 1), 1000))
    if status:
        stmt = stmt.where(Order.status == status.upper())
    return [admin_order_dict(db, o) for o in db.exec(stmt).all()]


@router.get("/export")
def orders_export(
    status: str | None = None,
    _=Depends(require_permission("can_view_orders")),
    db: Session = Depends(get_db),
):
    stmt = select(Order).order_by(Order.id)
    if status:
        stmt = stmt.where(Order.status == status.upper())
    rows = [_row(db, o) for o in db.exec(stmt).all()]
    return csv_response(generate_csv(rows, ORDER_COLUMNS), "orders")


@router.get("/{order_id}")
def order_detail(order_id: int, _=Depends(require_permission("can_view_orders")), db: Session = Depends(get_db)):
    return admin_order_dict(db, _order(db, order_id))


@router.get("/{order_id}/stock-preview")
def stock_preview(order_id: int, _=Depends(require_permission("can_view_orders")), db: Session = Depends(get_db)):
    """Next key the approval will consume, for pre-filling the credentials form."""
    o = _order(db, order_id)
    delivery_type = order_service.order_delivery_type(db, o)
    key = None
    if delivery_type in KEYED_DELIVERY_TYPES:
        key = first_available_key(db, o.product_id, o.variant_id)
    return {
        "delivery_type": delivery_type,
        "available": get_product_stock_count(db, o.product_id, o.variant_id),
        "key": (
            {
                "id": key.id,
                "key_value": key.key_value,
                "username": key.username,
                "password": key.password,
                "expiry_date": key.expiry_date.isoformat() if key.expiry_date else None,
            }
            if key
            else None
        ),
    }


@router.post("/{order_id}/approve")
def order_approve(
    order_id: int,
    body: ApprovalCredentials,
    request: Request,
    admin: Profile = Depends(require_permission("can_edit_orders")),
    db: Session = Depends(get_db),
):
    o = _order(db, order_id)
    try:
        o = order_service.approve_order(db, o, body.model_dump())
    except order_service.OrderError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    audit(db, "order_approve", admin.id, client_ip(request), f"order={o.id}")
    return admin_order_dict(db, o)


@router.post("/{order_id}/reject")
def order_reject(
    order_id: int,
    body: RejectRequest,
    request: Request,
    admin: Profile = Depends(require_permission("can_edit_orders")),
    db: Session = Depends(get_db),
):
    o = _order(db, order_id)
    try:
        o = order_service.reject_order(db, o, body.reason)
    except order_service.OrderError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    audit(db, "order_reject", admin.id, client_ip(request), f"order={o.id}")
    return admin_order_dict(db, o)


@router.delete("/{order_id}")
def order_delete(
    order_id: int,
    request: Request,
    admin: Profile = Depends(require_permission("can_delete_orders")),
    db: Session = Depends(get_db),
):
    o = _order(db, order_id)
    db.delete(o)
    db.commit()
    audit(db, "order_delete", admin.id, client_ip(request), f"order={order_id}")
    return {"ok": True}

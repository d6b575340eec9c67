"""Customer orders: creation, payment proof upload, checkout and status polling."""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlmodel import Session, select

from devsera.api.deps import audit, client_ip, get_current_user
from devsera.core.config import settings
from devsera.core.database import get_db
from devsera.core.rate_limit import customer_key, limiter
from devsera.core.storage import StorageError
from devsera.models import Order, Product, ProductVariant, Profile
from devsera.schemas import OrderCreate
from devsera.services import orders as order_service
from devsera.services.uploads import validate_image

router = APIRouter(tags=["orders"])


def order_dict(db: Session, order: Order) -> dict:
    product = db.get(Product, order.product_id)
    variant = db.get(ProductVariant, order.variant_id) if order.variant_id else None
    return {
        "id": order.id,
        "product_id": order.product_id,
        "product_name": product.name if product else None,
        "variant_id": order.variant_id,
        "variant_name": variant.name if variant else None,
        "status": order.status,
        "total_amount": order.total_amount,
        "payment_screenshot": order.payment_screenshot,
        "coupon_code_used": order.coupon_code_used,
        # delivered goods are only shown once the order is approved
        "credentials": order.credentials if order.status == "COMPLETED" else None,
        "cancellation_reason": order.cancellation_reason,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
    }


def _own_order(db: Session, order_id: int, user: Profile) -> Order:
    order = db.get(Order, order_id)
    if not order or order.user_id != user.id:
        raise HTTPException(status_code=404, detail="Order not found.")
    return order


def _http_error(e: order_service.OrderError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/orders")
def create_order(
    body: OrderCreate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    product = db.get(Product, body.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found.")
    errors = order_service.manual_activation_errors(product, body.account_email, body.account_password)
    if errors:
        raise HTTPException(status_code=422, detail=". ".join(errors))
    try:
        order = order_service.create_order(
            db,
            user.id,
            product,
            body.variant_id,
            body.coupon_code,
            body.account_email,
            body.account_password,
        )
    except order_service.OrderError as e:
        raise _http_error(e)
    return order_dict(db, order)


@router.post("/orders/{order_id}/payment-proof")
async def upload_payment_proof(
    order_id: int,
    screenshot: UploadFile | None = File(None),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    order = _own_order(db, order_id, user)
    content = await screenshot.read() if screenshot else b""
    ext, errors = validate_image(content, screenshot.content_type if screenshot else None)
    if errors:
        raise HTTPException(status_code=422, detail=". ".join(errors))
    try:
        order = order_service.attach_payment_proof(db, order, content, ext)
    except order_service.OrderError as e:
        raise _http_error(e)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=f"Failed to upload payment screenshot: {e}")
    return order_dict(db, order)


@router.post("/checkout")
@limiter.limit(settings.checkout_rate_limit, key_func=customer_key)
async def checkout(
    request: Request,
    product_id: int = Form(...),
    variant_id: int | None = Form(None),
    coupon_code: str | None = Form(None),
    account_email: str | None = Form(None),
    account_password: str | None = Form(None),
    order_id: int | None = Form(None),
    screenshot: UploadFile | None = File(None),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Order creation plus payment proof in one step. Passing order_id of an
    existing PENDING order reuses it instead of creating a second one.
    """
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found. Please go back and try again.")
    content = await screenshot.read() if screenshot else b""
    ext, errors = validate_image(content, screenshot.content_type if screenshot else None)
    errors += order_service.manual_activation_errors(product, account_email, account_password)
    if errors:
        raise HTTPException(status_code=422, detail=". ".join(errors))

    try:
        if order_id:
            order = _own_order(db, order_id, user)
            if order.product_id != product.id:
                raise HTTPException(status_code=409, detail="Order belongs to a different product.")
        else:
            order = order_service.create_order(
                db, user.id, product, variant_id, coupon_code, account_email, account_password
            )
        order = order_service.attach_payment_proof(db, order, content, ext)
    except order_service.OrderError as e:
        raise _http_error(e)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=f"Failed to upload payment screenshot: {e}")
    audit(db, "order_submit", user.id, client_ip(request), f"order={order.id}")
    return order_dict(db, order)


@router.get("/orders")
def my_orders(user: Profile = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = db.exec(
        select(Order).where(Order.user_id == user.id).order_by(Order.created_at.desc(), Order.id.desc())
    ).all()
    return [order_dict(db, o) for o in rows]


@router.get("/orders/{order_id}")
def order_status(order_id: int, user: Profile = Depends(get_current_user), db: Session = Depends(get_db)):
    return order_dict(db, _own_order(db, order_id, user))

"""
Order lifecycle: checkout validation, order creation, payment proof and admin verification.

PENDING -> SUBMITTED (payment proof attached) -> COMPLETED (approved) | CANCELLED (rejected).
"""
import logging
from datetime import datetime

from sqlmodel import Session, select

from devsera.core import storage
from devsera.models import Order, PremiumProduct, Product, ProductVariant
from devsera.models.product import KEYED_DELIVERY_TYPES
from devsera.services import coupon as coupon_service
from devsera.services import loyalty, pricing, stock
from devsera.services.email_validation import looks_like_email
from devsera.services.premium import is_premium
from devsera.services.store import flash_sale_config

log = logging.getLogger("devsera.orders")

OUT_OF_STOCK_MESSAGE = "This product is currently out of stock. Please try again later."
REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"
PREMIUM_ONLY_MESSAGE = "This product is available to premium members only."

# Credential fields persisted for each delivery type (expiry/additional info always kept)
DELIVERY_FIELDS = {
    "CREDENTIALS": ("username", "password"),
    "COUPON_CODE": ("coupon_code", "license_key", "activation_link"),
    "MANUAL_ACTIVATION": ("activation_status", "notes"),
    "INSTANT_KEY": ("license_key",),
}
_COMMON_FIELDS = ("expiry_date", "additional_info")


class OrderError(Exception):
    """Business rule violation; status_code is the HTTP answer the API gives."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _filled(creds: dict, name: str) -> bool:
    return bool(str(creds.get(name) or "").strip())


def validate_approval_credentials(delivery_type: str, creds: dict | None) -> tuple[bool, dict]:
    """(ok, credentials to store). Only fields belonging to the delivery type survive."""
    creds = creds or {}
    if delivery_type == "CREDENTIALS":
        ok = all(_filled(creds, f) for f in ("username", "password", "expiry_date"))
    elif delivery_type == "COUPON_CODE":
        ok = any(_filled(creds, f) for f in ("coupon_code", "license_key", "activation_link"))
    elif delivery_type == "MANUAL_ACTIVATION":
        ok = _filled(creds, "activation_status")
    elif delivery_type == "INSTANT_KEY":
        ok = _filled(creds, "license_key")
    else:
        ok = False
    fields = DELIVERY_FIELDS.get(delivery_type, ()) + _COMMON_FIELDS
    filtered = {f: str(creds[f]).strip() for f in fields if _filled(creds, f)}
    return ok, filtered


def order_delivery_type(db: Session, order: Order) -> str:
    product = db.get(Product, order.product_id)
    variant = db.get(ProductVariant, order.variant_id) if order.variant_id else None
    if not product:
        return "CREDENTIALS"
    return pricing.effective_delivery_type(product, variant)


def _deduct_stock(db: Session, order: Order, delivery_type: str) -> None:
    product = db.get(Product, order.product_id)
    if product is None:
        return
    if product.use_manual_stock:
        if not stock.deduct_manual_stock(db, product.id):
            log.warning("Manual stock already at zero for product %s (order %s)", product.id, order.id)
        return
    if delivery_type in KEYED_DELIVERY_TYPES:
        key = stock.assign_stock_key_to_order(db, order.id, product.id, order.variant_id, order.user_id)
        if key is None:
            log.warning("No stock key left for product %s (order %s)", product.id, order.id)


def approve_order(db: Session, order: Order, credentials: dict | None) -> Order:
    if order.status != "SUBMITTED":
        raise OrderError(f"Order is {order.status}, only SUBMITTED orders can be approved", 409)
    delivery_type = order_delivery_type(db, order)
    ok, filtered = validate_approval_credentials(delivery_type, credentials)
    if not ok:
        raise OrderError(REQUIRED_FIELDS_MESSAGE, 422)
    order.status = "COMPLETED"
    order.credentials = filtered
    order.updated_at = datetime.utcnow()
    db.add(order)
    db.commit()
    db.refresh(order)
    log.info("Order %s approved (%s)", order.id, delivery_type)

    _deduct_stock(db, order, delivery_type)
    loyalty.award_order_points(db, order.user_id, order.id, order.total_amount)
    db.refresh(order)
    return order


def reject_order(db: Session, order: Order, reason: str | None) -> Order:
    reason = (reason or "").strip()
    if not reason:
        raise OrderError("Please provide a rejection reason", 422)
    if order.status != "SUBMITTED":
        raise OrderError(f"Order is {order.status}, only SUBMITTED orders can be rejected", 409)
    order.status = "CANCELLED"
    order.cancellation_reason = reason
    order.updated_at = datetime.utcnow()
    db.add(order)
    db.commit()
    db.refresh(order)
    log.info("Order %s rejected", order.id)
    return order


def manual_activation_errors(product: Product, email: str | None, password: str | None) -> list[str]:
    """Account details a manual-activation product needs from the customer."""
    if product.delivery_type != "MANUAL_ACTIVATION" or not product.requires_user_input:
        return []
    errors: list[str] = []
    label = product.user_input_label or "Account email"
    email = (email or "").strip()
    if not email:
        errors.append(f"{label} is required")
    elif "email" in label.lower() and not looks_like_email(email):
        errors.append("Please enter a valid email address")
    if product.requires_password:
        if not password:
            errors.append("Account password is required")
        elif len(password) < 4:
            errors.append("Password must be at least 4 characters")
    return errors


def quote(
    db: Session,
    product: Product,
    variant_id: int | None,
    user_id: int | None,
    coupon_code: str | None = None,
) -> tuple[ProductVariant | None, pricing.PriceBreakdown, str | None]:
    """(variant, price, coupon error). Coupon errors leave the price undiscounted."""
    variants = list(
        db.exec(
            select(ProductVariant)
            .where(ProductVariant.product_id == product.id)
            .order_by(ProductVariant.sort_order, ProductVariant.id)
        ).all()
    )
    variant = pricing.select_variant(product, variants, variant_id)
    premium_product = None
    if is_premium(db, user_id):
        premium_product = db.exec(select(PremiumProduct).where(PremiumProduct.product_id == product.id)).first()
    flash = pricing.flash_sale_discount(flash_sale_config(db), product.id)
    price = pricing.compute_price(product, variant, premium_product, flash)
    coupon_error = None
    if (coupon_code or "").strip():
        discount, coupon_error = coupon_service.validate_coupon(
            db, coupon_code, product.id, price.final_price, user_id=user_id
        )
        if not coupon_error:
            price = pricing.compute_price(product, variant, premium_product, flash, discount)
    return variant, price, coupon_error


def _check_orderable(db: Session, product: Product, user_id: int | None, now: datetime | None = None) -> None:
    """Refuses products the catalog would not show to this customer."""
    now = now or datetime.utcnow()
    if not product.is_active:
        raise OrderError("This product is not available", 404)
    if product.scheduled_start and product.scheduled_start > now:
        raise OrderError("This product is not available", 404)
    if product.scheduled_end and product.scheduled_end < now:
        raise OrderError("This product is not available", 404)
    premium_product = db.exec(select(PremiumProduct).where(PremiumProduct.product_id == product.id)).first()
    if premium_product and premium_product.premium_only and not is_premium(db, user_id):
        raise OrderError(PREMIUM_ONLY_MESSAGE, 403)


def create_order(
    db: Session,
    user_id: int,
    product: Product,
    variant_id: int | None = None,
    coupon_code: str | None = None,
    account_email: str | None = None,
    account_password: str | None = None,
) -> Order:
    """PENDING order at the current price. Raises OrderError for stock or coupon problems."""
    _check_orderable(db, product, user_id)
    variant, price, coupon_error = quote(db, product, variant_id, user_id, coupon_code)
    if coupon_error:
        raise OrderError(coupon_error, 422)
    if stock.get_product_stock_count(db, product.id, variant.id if variant else None) <= 0:
        raise OrderError(OUT_OF_STOCK_MESSAGE, 409)
    user_creds = None
    if product.delivery_type == "MANUAL_ACTIVATION" and product.requires_user_input:
        user_creds = {"email": (account_email or "").strip()}
        if product.requires_password and account_password:
            user_creds["password"] = account_password
    code = (coupon_code or "").strip().upper() or None
    order = Order(
        user_id=user_id,
        product_id=product.id,
        variant_id=variant.id if variant else None,
        total_amount=price.final_price,
        user_provided_credentials=user_creds,
        user_provided_input=user_creds.get("email") if user_creds else None,
        coupon_code_used=code if price.coupon_discount else None,
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    if order.coupon_code_used:
        coupon_service.apply_coupon_use(db, order.coupon_code_used, order.id)
    log.info("Order %s created for user %s (amount=%s)", order.id, user_id, order.total_amount)
    return order


def attach_payment_proof(db: Session, order: Order, content: bytes, ext: str) -> Order:
    """Stores the screenshot and moves the order to SUBMITTED."""
    if order.status != "PENDING":
        raise OrderError(f"Order is already {order.status}", 409)
    ts = int(datetime.utcnow().timestamp() * 1000)
    path = f"payment-screenshots/{order.id}-{ts}.{ext}"
    storage.upload(storage.ORDER_FILES_BUCKET, path, content)
    order.payment_screenshot = storage.get_public_url(storage.ORDER_FILES_BUCKET, path)
    order.status = "SUBMITTED"
    order.updated_at = datetime.utcnow()
    db.add(order)
    db.commit()
    db.refresh(order)
    log.info("Payment proof attached to order %s", order.id)
    return order

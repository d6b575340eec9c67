"""Stock keys: counting, bulk import parsing and the atomic key-to-order assignment."""
import logging
from datetime import datetime

from sqlalchemy import and_, or_, update
from sqlmodel import Session, func, select

from devsera.models import Product, ProductStockKey

log = logging.getLogger("devsera.stock")

# Candidates tried before giving up when concurrent callers keep winning the race
_ASSIGN_ATTEMPTS = 5


def key_type_for(delivery_type: str) -> str:
    if delivery_type == "CREDENTIALS":
        return "CREDENTIALS"
    if delivery_type == "COUPON_CODE":
        return "COUPON_CODE"
    return "LICENSE_KEY"


def get_product_stock_count(db: Session, product_id: int, variant_id: int | None = None) -> int:
    """Manual count for manual-stock products, otherwise AVAILABLE keys (per variant when given)."""
    product = db.get(Product, product_id)
    if not product:
        return 0
    if product.use_manual_stock:
        return max(0, product.manual_stock_count or 0)
    stmt = (
        select(func.count(ProductStockKey.id))
        .where(ProductStockKey.product_id == product_id)
        .where(ProductStockKey.status == "AVAILABLE")
    )
    if variant_id is not None:
        # keys without a variant serve every variant
        stmt = stmt.where(or_(ProductStockKey.variant_id == variant_id, ProductStockKey.variant_id.is_(None)))
    return db.exec(stmt).one() or 0


def stock_counts(db: Session, product_ids: list[int]) -> dict[int, int]:
    """AVAILABLE key counts for many products in one query."""
    if not product_ids:
        return {}
    rows = db.exec(
        select(ProductStockKey.product_id, func.count(ProductStockKey.id))
        .where(ProductStockKey.product_id.in_(product_ids))
        .where(ProductStockKey.status == "AVAILABLE")
        .group_by(ProductStockKey.product_id)
    ).all()
    return {row[0]: row[1] for row in rows}


def first_available_key(db: Session, product_id: int, variant_id: int | None = None) -> ProductStockKey | None:
    stmt = (
        select(ProductStockKey)
        .where(ProductStockKey.product_id == product_id)
        .where(ProductStockKey.status == "AVAILABLE")
    )
    if variant_id is not None:
        stmt = stmt.where(or_(ProductStockKey.variant_id == variant_id, ProductStockKey.variant_id.is_(None)))
        # variant-bound keys first
        stmt = stmt.order_by(ProductStockKey.variant_id.is_(None), ProductStockKey.id)
    else:
        stmt = stmt.order_by(ProductStockKey.id)
    return db.exec(stmt.limit(1)).first()


def assign_stock_key_to_order(
    db: Session,
    order_id: int,
    product_id: int,
    variant_id: int | None = None,
    user_id: int | None = None,
) -> ProductStockKey | None:
    """
    Hands one AVAILABLE key to the order. The flip to ASSIGNED is a conditional UPDATE
    (WHERE status = 'AVAILABLE'), so a key can only ever be won by one caller.
    Idempotent per order: a key already assigned to the order is returned again.
    Returns None when the product is out of keys.
    """
    existing = db.exec(
        select(ProductStockKey).where(ProductStockKey.assigned_order_id == order_id).limit(1)
    ).first()
    if existing:
        return existing
    for _ in range(_ASSIGN_ATTEMPTS):
        candidate = first_available_key(db, product_id, variant_id)
        if candidate is None:
            return None
        now = datetime.utcnow()
        result = db.connection().execute(
            update(ProductStockKey)
            .where(and_(ProductStockKey.id == candidate.id, ProductStockKey.status == "AVAILABLE"))
            .values(
                status="ASSIGNED",
                assigned_order_id=order_id,
                used_by=user_id,
                used_at=now,
                updated_at=now,
            )
        )
        if result.rowcount == 1:
            db.commit()
            key = db.get(ProductStockKey, candidate.id)
            log.info("Stock key %s assigned to order %s", candidate.id, order_id)
            return key
        # Lost the race for this key; look for the next one
        db.rollback()
    log.warning("Stock key assignment gave up for order %s after %s attempts", order_id, _ASSIGN_ATTEMPTS)
    return None


def deduct_manual_stock(db: Session, product_id: int) -> bool:
    """Decrements manual_stock_count by one, never below zero."""
    result = db.connection().execute(
        update(Product)
        .where(and_(Product.id == product_id, Product.manual_stock_count > 0))
        .values(manual_stock_count=Product.manual_stock_count - 1, updated_at=datetime.utcnow())
    )
    db.commit()
    return result.rowcount == 1


def parse_bulk_keys(text: str, delivery_type: str) -> list[dict]:
    """
    One key per line. CREDENTIALS products use "username | password",
    everything else "key, username, password" (username/password optional).
    Lines without a key value are skipped.
    """
    key_type = key_type_for(delivery_type)
    out: list[dict] = []
    for line in (text or "").splitlines():
        if not line.strip():
            continue
        if delivery_type == "CREDENTIALS":
            parts = [p.strip() for p in line.split("|")]
            username = parts[0] if parts else ""
            password = parts[1] if len(parts) > 1 else ""
            if not username:
                continue
            out.append(
                {
                    "key_type": key_type,
                    "key_value": username,
                    "username": username,
                    "password": password or None,
                }
            )
        else:
            parts = [p.strip() for p in line.split(",")]
            key_value = parts[0] if parts else ""
            if not key_value:
                continue
            out.append(
                {
                    "key_type": key_type,
                    "key_value": key_value,
                    "username": (parts[1] if len(parts) > 1 else "") or None,
                    "password": (parts[2] if len(parts) > 2 else "") or None,
                }
            )
    return out

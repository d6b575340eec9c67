"""Stock keys per product: list, add, bulk import, revoke and delete."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete
from sqlmodel import Session, select

from devsera.admin.deps import require_permission
from devsera.core.database import get_db
from devsera.models import Product, ProductStockKey, ProductVariant
from devsera.schemas import BulkKeysIn, StockKeyIn
from devsera.services.stock import get_product_stock_count, key_type_for, parse_bulk_keys

router = APIRouter()


def key_dict(k: ProductStockKey) -> dict:
    return {
        "id": k.id,
        "variant_id": k.variant_id,
        "key_type": k.key_type,
        "key_value": k.key_value,
        "username": k.username,
        "password": k.password,
        "status": k.status,
        "assigned_order_id": k.assigned_order_id,
        "used_by": k.used_by,
        "used_at": k.used_at.strftime("%d.%m.%Y %H:%M") if k.used_at else None,
        "expiry_date": k.expiry_date.isoformat() if k.expiry_date else None,
        "notes": k.notes,
        "created_at": k.created_at.strftime("%d.%m.%Y %H:%M") if k.created_at else None,
    }


def _product(db: Session, product_id: int) -> Product:
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(status_code=404, detail="Product not found.")
    return p


def _check_variant(db: Session, product: Product, variant_id: int | None) -> None:
    if variant_id is None:
        return
    v = db.get(ProductVariant, variant_id)
    if not v or v.product_id != product.id:
        raise HTTPException(status_code=422, detail="Variant does not belong to this product.")


def _key(db: Session, product_id: int, key_id: int) -> ProductStockKey:
    k = db.get(ProductStockKey, key_id)
    if not k or k.product_id != product_id:
        raise HTTPException(status_code=404, detail="Stock key not found.")
    return k


@router.get("/{product_id}/keys")
def keys_list(
    product_id: int,
    status: str | None = None,
    _=Depends(require_permission("can_view_products")),
    db: Session = Depends(get_db),
):
    _product(db, product_id)
    stmt = select(ProductStockKey).where(ProductStockKey.product_id == product_id)
    if status:
        stmt = stmt.where(ProductStockKey.status == status.upper())
    keys = db.exec(stmt.order_by(ProductStockKey.id.desc())).all()
    return {
        "available": get_product_stock_count(db, product_id),
        "keys": [key_dict(k) for k in keys],
    }


@router.post("/{product_id}/keys", status_code=201)
def key_add(
    product_id: int,
    body: StockKeyIn,
    _=Depends(require_permission("can_edit_products")),
    db: Session = Depends(get_db),
):
    product = _product(db, product_id)
    _check_variant(db, product, body.variant_id)
    username = (body.username or "").strip() or None
    password = (body.password or "").strip() or None
    if product.delivery_type == "CREDENTIALS":
        if not username or not password:
            raise HTTPException(status_code=422, detail="Username and password are required.")
        key_value = (body.key_value or "").strip() or username
    else:
        key_value = (body.key_value or "").strip()
        if not key_value:
            raise HTTPException(status_code=422, detail="Key value is required.")
    key = ProductStockKey(
        product_id=product.id,
        variant_id=body.variant_id,
        key_type=key_type_for(product.delivery_type),
        key_value=key_value,
        username=username,
        password=password,
        expiry_date=body.expiry_date,
        notes=(body.notes or "").strip() or None,
    )
    db.add(key)
    db.commit()
    db.refresh(key)
    return key_dict(key)


@router.post("/{product_id}/keys/bulk", status_code=201)
def keys_bulk(
    product_id: int,
    body: BulkKeysIn,
    _=Depends(require_permission("can_edit_products")),
    db: Session = Depends(get_db),
):
    product = _product(db, product_id)
    _check_variant(db, product, body.variant_id)
    parsed = parse_bulk_keys(body.keys, product.delivery_type)
    if not parsed:
        raise HTTPException(status_code=422, detail="No valid keys found.")
    for item in parsed:
        db.add(ProductStockKey(product_id=product.id, variant_id=body.variant_id, **item))
    db.commit()
    return {"added": len(parsed), "available": get_product_stock_count(db, product.id)}


@router.post("/{product_id}/keys/{key_id}/revoke")
def key_revoke(
    product_id: int,
    key_id: int,
    _=Depends(require_permission("can_edit_products")),
    db: Session = Depends(get_db),
):
    k = _key(db, product_id, key_id)
    if k.status == "REVOKED":
        raise HTTPException(status_code=409, detail="Key is already revoked.")
    k.status = "REVOKED"
    k.updated_at = datetime.utcnow()
    db.add(k)
    db.commit()
    return key_dict(k)


@router.delete("/{product_id}/keys/{key_id}")
def key_delete(
    product_id: int,
    key_id: int,
    _=Depends(require_permission("can_delete_products")),
    db: Session = Depends(get_db),
):
    k = _key(db, product_id, key_id)
    db.delete(k)
    db.commit()
    return {"ok": True}


@router.delete("/{product_id}/keys")
def keys_delete_available(
    product_id: int,
    _=Depends(require_permission("can_delete_products")),
    db: Session = Depends(get_db),
):
    """Removes every unsold key; assigned keys stay as delivery history."""
    _product(db, product_id)
    result = db.execute(
        delete(ProductStockKey)
        .where(ProductStockKey.product_id == product_id)
        .where(ProductStockKey.status == "AVAILABLE")
    )
    db.commit()
    return {"deleted": result.rowcount}

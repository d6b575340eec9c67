"""Product manager: products with variants, activation toggle, images and CSV export."""
from datetime import datetime

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy import delete
from sqlmodel import Session, func, select

from devsera.admin.deps import require_permission
from devsera.core import storage
from devsera.core.database import get_db
from devsera.models import Order, PremiumProduct, Product, ProductStockKey, ProductVariant
from devsera.schemas import ProductIn
from devsera.services.csv_export import PRODUCT_COLUMNS, csv_response, generate_csv
from devsera.services.stock import get_product_stock_count, stock_counts
from devsera.services.uploads import validate_image

router = APIRouter()


def _variants(db: Session, product_id: int) -> list[ProductVariant]:
    return list(
        db.exec(
            select(ProductVariant)
            .where(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.sort_order, ProductVariant.id)
        ).all()
    )


def admin_product_dict(db: Session, p: Product, available_keys: int | None = None) -> dict:
    data = p.model_dump()
    data["stock_count"] = get_product_stock_count(db, p.id) if p.use_manual_stock else (available_keys or 0)
    data["variants"] = [v.model_dump() for v in _variants(db, p.id)]
    for key in ("created_at", "updated_at", "scheduled_start", "scheduled_end"):
        data[key] = data[key].isoformat() if data.get(key) else None
    for v in data["variants"]:
        v["created_at"] = v["created_at"].isoformat() if v.get("created_at") else None
        v["updated_at"] = v["updated_at"].isoformat() if v.get("updated_at") else None
    return data


def _get_product(db: Session, product_id: int) -> Product:
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(status_code=404, detail="Product not found.")
    return p


def _match_variants(existing: dict[int, ProductVariant], body: ProductIn) -> list[ProductVariant | None]:
    """Existing variant for each body item: by id, else by name among the unclaimed ones."""
    matched: list[ProductVariant | None] = [None] * len(body.variants)
    claimed: set[int] = set()
    for i, item in enumerate(body.variants):
        if item.id is None:
            continue
        if item.id not in existing or item.id in claimed:
            raise HTTPException(status_code=422, detail=f"Variant {item.id} does not belong to this product.")
        matched[i] = existing[item.id]
        claimed.add(item.id)
    by_name = {v.name.strip().lower(): v for v in existing.values() if v.id not in claimed}
    for i, item in enumerate(body.variants):
        if item.id is None:
            v = by_name.pop(item.name.strip().lower(), None)
            if v is not None:
                matched[i] = v
    return matched


def _sync_variants(db: Session, product: Product, body: ProductIn) -> None:
    """
    Updates variants in place so stock keys and orders keep pointing at them.
    Variants missing from the body are deleted unless they still hold AVAILABLE keys.
    """
    existing = {v.id: v for v in _variants(db, product.id)}
    matched = _match_variants(existing, body)
    kept = {v.id for v in matched if v is not None}
    removed = [vid for vid in existing if vid not in kept]
    if removed:
        in_stock = db.exec(
            select(func.count(ProductStockKey.id))
            .where(ProductStockKey.variant_id.in_(removed))
            .where(ProductStockKey.status == "AVAILABLE")
        ).one()
        if in_stock:
            names = ", ".join(existing[vid].name for vid in removed)
            raise HTTPException(
                status_code=409,
                detail=f"Cannot remove {names}: {in_stock} available stock keys are bound to it. Delete or reassign them first.",
            )
        for vid in removed:
            db.delete(existing[vid])

    has_default = any(v.is_default for v in body.variants)
    now = datetime.utcnow()
    for i, (item, variant) in enumerate(zip(body.variants, matched)):
        data = item.model_dump(exclude={"id"})
        # first variant becomes the default when none is flagged
        if not has_default and i == 0:
            data["is_default"] = True
        if variant is None:
            variant = ProductVariant(product_id=product.id)
        for field, value in data.items():
            setattr(variant, field, value)
        variant.updated_at = now
        db.add(variant)


def _apply(product: Product, body: ProductIn) -> None:
    for field, value in body.model_dump(exclude={"variants"}).items():
        setattr(product, field, value)
    product.has_variants = bool(body.variants)
    if body.user_input_label is not None:
        product.user_input_label = body.user_input_label.strip() or None


@router.get("")
def products_list(
    _=Depends(require_permission("can_view_products")),
    db: Session = Depends(get_db),
    q: str | None = None,
):
    stmt = select(Product).order_by(Product.id.desc())
    if q and q.strip():
        stmt = stmt.where(Product.name.ilike(f"%{q.strip()}%"))
    products = list(db.exec(stmt).all())
    counts = stock_counts(db, [p.id for p in products])
    return [admin_product_dict(db, p, counts.get(p.id, 0)) for p in products]


@router.get("/export")
def products_export(_=Depends(require_permission("can_view_products")), db: Session = Depends(get_db)):
    rows = db.exec(select(Product).order_by(Product.id)).all()
    return csv_response(generate_csv(rows, PRODUCT_COLUMNS), "products")


@router.get("/{product_id}")
def product_detail(product_id: int, _=Depends(require_permission("can_view_products")), db: Session = Depends(get_db)):
    p = _get_product(db, product_id)
    return admin_product_dict(db, p, get_product_stock_count(db, p.id))


@router.post("", status_code=201)
def product_create(
    body: ProductIn,
    _=Depends(require_permission("can_edit_products")),
    db: Session = Depends(get_db),
):
    product = Product(name=body.name)
    _apply(product, body)
    db.add(product)
    db.flush()
    _sync_variants(db, product, body)
    db.commit()
    db.refresh(product)
    return admin_product_dict(db, product, get_product_stock_count(db, product.id))


@router.put("/{product_id}")
def product_update(
    product_id: int,
    body: ProductIn,
    _=Depends(require_permission("can_edit_products")),
    db: Session = Depends(get_db),
):
    product = _get_product(db, product_id)
    _apply(product, body)
    product.updated_at = datetime.utcnow()
    db.add(product)
    _sync_variants(db, product, body)
    db.commit()
    db.refresh(product)
    return admin_product_dict(db, product, get_product_stock_count(db, product.id))


@router.post("/{product_id}/toggle")
def product_toggle(product_id: int, _=Depends(require_permission("can_edit_products")), db: Session = Depends(get_db)):
    product = _get_product(db, product_id)
    product.is_active = not product.is_active
    product.updated_at = datetime.utcnow()
    db.add(product)
    db.commit()
    return {"id": product.id, "is_active": product.is_active}


@router.post("/{product_id}/image")
async def product_image(
    product_id: int,
    image: UploadFile = File(...),
    _=Depends(require_permission("can_edit_products")),
    db: Session = Depends(get_db),
):
    product = _get_product(db, product_id)
    content = await image.read()
    ext, errors = validate_image(content, image.content_type, label="Product image")
    if errors:
        raise HTTPException(status_code=422, detail=". ".join(errors))
    path = f"{product.id}-{int(datetime.utcnow().timestamp() * 1000)}.{ext}"
    try:
        storage.upload(storage.PRODUCT_IMAGES_BUCKET, path, content)
    except storage.StorageError as e:
        raise HTTPException(status_code=500, detail=f"Image upload failed: {e}")
    previous = product.image
    product.image = storage.get_public_url(storage.PRODUCT_IMAGES_BUCKET, path)
    product.updated_at = datetime.utcnow()
    db.add(product)
    db.commit()
    if previous != product.image:
        storage.remove_public_url(storage.PRODUCT_IMAGES_BUCKET, previous)
    return {"id": product.id, "image": product.image}


@router.delete("/{product_id}")
def product_delete(product_id: int, _=Depends(require_permission("can_delete_products")), db: Session = Depends(get_db)):
    product = _get_product(db, product_id)
    n_orders = db.exec(select(func.count(Order.id)).where(Order.product_id == product_id)).one() or 0
    if n_orders:
        raise HTTPException(status_code=409, detail="This product has orders; deactivate it instead.")
    db.execute(delete(ProductStockKey).where(ProductStockKey.product_id == product_id))
    db.execute(delete(ProductVariant).where(ProductVariant.product_id == product_id))
    db.execute(delete(PremiumProduct).where(PremiumProduct.product_id == product_id))
    image = product.image
    db.delete(product)
    db.commit()
    storage.remove_public_url(storage.PRODUCT_IMAGES_BUCKET, image)
    return {"ok": True}

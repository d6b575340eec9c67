"""Public catalog: active, in-schedule products with effective prices and stock."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, or_, select

from devsera.api.deps import get_optional_user_id
from devsera.core.database import get_db
from devsera.models import PremiumProduct, Product, ProductVariant
from devsera.services import pricing, stock
from devsera.services.orders import PREMIUM_ONLY_MESSAGE
from devsera.services.premium import is_premium, premium_products_map
from devsera.services.store import flash_sale_config

router = APIRouter(prefix="/products", tags=["catalog"])


def _variant_dict(db: Session, product: Product, v: ProductVariant, premium_product, flash) -> dict:
    price = pricing.compute_price(product, v, premium_product, flash)
    return {
        "id": v.id,
        "name": v.name,
        "duration": v.duration,
        "original_price": price.original_price,
        "price": price.final_price,
        "is_default": v.is_default,
        "delivery_type": pricing.effective_delivery_type(product, v),
        "features": v.features or [],
        "stock_count": stock.get_product_stock_count(db, product.id, v.id),
    }


def product_dict(
    db: Session,
    product: Product,
    variants: list[ProductVariant],
    premium_product: PremiumProduct | None,
    premium_customer: bool,
    flash_config: dict,
) -> dict:
    # premium pricing only applies to premium customers
    applied = premium_product if premium_customer else None
    flash = pricing.flash_sale_discount(flash_config, product.id)
    selected = pricing.select_variant(product, variants)
    price = pricing.compute_price(product, selected, applied, flash)
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "image": product.image,
        "category": product.category,
        "duration": product.duration,
        "features": product.features or [],
        "delivery_type": product.delivery_type,
        "delivery_instructions": product.delivery_instructions,
        "requires_user_input": product.requires_user_input,
        "user_input_label": product.user_input_label,
        "requires_password": product.requires_password,
        "has_variants": product.has_variants,
        "original_price": price.original_price,
        "price": price.final_price,
        "is_premium_free": price.is_premium_free,
        "premium_discount_percent": price.premium_discount_percent,
        "premium_only": bool(premium_product and premium_product.premium_only),
        "is_on_flash_sale": price.is_on_flash_sale,
        "flash_discount": price.flash_discount,
        "stock_count": stock.get_product_stock_count(db, product.id),
        "variants": [_variant_dict(db, product, v, applied, flash) for v in variants] if product.has_variants else [],
    }


def _visible_products_query(now: datetime):
    return (
        select(Product)
        .where(Product.is_active == True)  # noqa: E712
        .where(or_(Product.scheduled_start.is_(None), Product.scheduled_start <= now))
        .where(or_(Product.scheduled_end.is_(None), Product.scheduled_end >= now))
    )


def _variants_by_product(db: Session, product_ids: list[int]) -> dict[int, list[ProductVariant]]:
    out: dict[int, list[ProductVariant]] = {pid: [] for pid in product_ids}
    if not product_ids:
        return out
    rows = db.exec(
        select(ProductVariant)
        .where(ProductVariant.product_id.in_(product_ids))
        .order_by(ProductVariant.sort_order, ProductVariant.id)
    ).all()
    for v in rows:
        out.setdefault(v.product_id, []).append(v)
    return out


@router.get("")
def list_products(
    category: str | None = None,
    user_id: int | None = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    stmt = _visible_products_query(datetime.utcnow())
    if category:
        stmt = stmt.where(Product.category == category)
    products = list(db.exec(stmt.order_by(Product.created_at.desc(), Product.id.desc())).all())
    premium_customer = is_premium(db, user_id)
    pp_map = premium_products_map(db)
    flash_config = flash_sale_config(db)
    variants = _variants_by_product(db, [p.id for p in products])
    items = []
    for p in products:
        pp = pp_map.get(p.id)
        if pp and pp.premium_only and not premium_customer:
            continue
        items.append(product_dict(db, p, variants.get(p.id, []), pp, premium_customer, flash_config))
    return {"items": items, "is_premium": premium_customer}


@router.get("/{product_id}")
def get_product(
    product_id: int,
    user_id: int | None = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    product = db.exec(_visible_products_query(datetime.utcnow()).where(Product.id == product_id)).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found.")
    premium_customer = is_premium(db, user_id)
    pp = db.exec(select(PremiumProduct).where(PremiumProduct.product_id == product_id)).first()
    if pp and pp.premium_only and not premium_customer:
        raise HTTPException(status_code=403, detail=PREMIUM_ONLY_MESSAGE)
    variants = _variants_by_product(db, [product_id]).get(product_id, [])
    return product_dict(db, product, variants, pp, premium_customer, flash_sale_config(db))

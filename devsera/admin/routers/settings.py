"""Store settings and flash sale configuration."""
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from devsera.admin.deps import require_permission
from devsera.core.database import get_db
from devsera.models import Product
from devsera.schemas import FlashSaleIn, SettingsIn
from devsera.services.store import flash_sale_config, get_or_create_settings, save_flash_sale_config

router = APIRouter()


def _settings_dict(db: Session) -> dict:
    row = get_or_create_settings(db)
    return {
        "upi_id": row.upi_id,
        "qr_code_url": row.qr_code_url,
        "telegram_link": row.telegram_link,
        "telegram_username": row.telegram_username,
        "contact_email": row.contact_email,
        "contact_phone": row.contact_phone,
        "flash_sale": flash_sale_config(db),
        "updated_at": row.updated_at.strftime("%d.%m.%Y %H:%M") if row.updated_at else "-",
    }


@router.get("")
def settings_get(_=Depends(require_permission("can_view_settings")), db: Session = Depends(get_db)):
    return _settings_dict(db)


@router.put("")
def settings_update(
    body: SettingsIn,
    _=Depends(require_permission("can_edit_settings")),
    db: Session = Depends(get_db),
):
    row = get_or_create_settings(db)
    for field, value in body.model_dump(exclude_none=True).items():
        setattr(row, field, value.strip())
    row.updated_at = datetime.utcnow()
    db.add(row)
    db.commit()
    return _settings_dict(db)


@router.put("/flash-sale")
def flash_sale_update(
    body: FlashSaleIn,
    _=Depends(require_permission("can_edit_flash_sales")),
    db: Session = Depends(get_db),
):
    """Enabling starts the countdown now; the sale ends duration_hours later."""
    if len(body.products) > body.max_products:
        raise HTTPException(status_code=422, detail=f"A flash sale can hold at most {body.max_products} products.")
    for item in body.products:
        product = db.get(Product, item.product_id)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {item.product_id} not found.")
        if item.discount_amount > product.sale_price:
            raise HTTPException(status_code=422, detail=f"Discount for {product.name} exceeds its price.")
    end_time = None
    if body.enabled:
        end_time = (datetime.utcnow() + timedelta(hours=body.duration_hours)).isoformat() + "Z"
    config = save_flash_sale_config(
        db,
        {
            "enabled": body.enabled,
            "duration_hours": body.duration_hours,
            "min_discount_percent": body.min_discount_percent,
            "max_products": body.max_products,
            "product_ids": [p.product_id for p in body.products],
            "flash_sale_products": [
                {"productId": p.product_id, "discountAmount": p.discount_amount} for p in body.products
            ],
            "end_time": end_time,
        },
    )
    return config

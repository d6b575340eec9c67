from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session

from devsera.core.config import settings
from devsera.core.database import get_db
from devsera.services.pricing import flash_sale_discount
from devsera.services.store import flash_sale_config, get_or_create_settings

router = APIRouter(prefix="/store", tags=["store"])


def active_flash_sale(config: dict) -> dict:
    """Flash sale as customers see it: empty when disabled or over."""
    products = []
    for item in config.get("flash_sale_products") or []:
        pid = item.get("productId", item.get("product_id")) if isinstance(item, dict) else None
        if pid is None:
            continue
        discount = flash_sale_discount(config, pid)
        if discount is not None:
            products.append({"product_id": int(pid), "discount_amount": discount})
    return {
        "active": bool(products),
        "end_time": config.get("end_time") if products else None,
        "products": products,
    }


@router.get("/settings")
def public_settings(db: Session = Depends(get_db)):
    row = get_or_create_settings(db)
    return {
        "upi_id": row.upi_id,
        "qr_code_url": row.qr_code_url,
        "telegram_link": row.telegram_link,
        "telegram_username": row.telegram_username,
        "contact_email": row.contact_email,
        "contact_phone": row.contact_phone,
        "currency_symbol": settings.currency_symbol,
        "flash_sale": active_flash_sale(flash_sale_config(db)),
    }


@router.get("/flash-sale")
def flash_sale(db: Session = Depends(get_db)):
    return {**active_flash_sale(flash_sale_config(db)), "server_time": datetime.utcnow().isoformat()}

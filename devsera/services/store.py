"""Store settings row (created on first use) and flash-sale config helpers."""
from datetime import datetime

from sqlmodel import Session, select

from devsera.models import StoreSettings
from devsera.models.store_settings import DEFAULT_FLASH_SALE


def get_or_create_settings(db: Session) -> StoreSettings:
    row = db.exec(select(StoreSettings).order_by(StoreSettings.id)).first()
    if row:
        return row
    row = StoreSettings(flash_sale_config=dict(DEFAULT_FLASH_SALE))
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def flash_sale_config(db: Session) -> dict:
    row = get_or_create_settings(db)
    return {**DEFAULT_FLASH_SALE, **(row.flash_sale_config or {})}


def save_flash_sale_config(db: Session, config: dict) -> dict:
    row = get_or_create_settings(db)
    merged = {**DEFAULT_FLASH_SALE, **(row.flash_sale_config or {}), **config}
    # JSON columns only notice reassignment
    row.flash_sale_config = merged
    row.updated_at = datetime.utcnow()
    db.add(row)
    db.commit()
    db.refresh(row)
    return merged

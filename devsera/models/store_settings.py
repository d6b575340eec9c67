"""Single-row store settings: payment details, contact links and flash sale config."""
from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

DEFAULT_FLASH_SALE = {
    "enabled": False,
    "duration_hours": 6,
    "min_discount_percent": 10,
    "max_products": 5,
    "product_ids": [],
    "flash_sale_products": [],
    "end_time": None,
}


class StoreSettings(SQLModel, table=True):
    __tablename__ = "settings"
    id: int | None = Field(default=None, primary_key=True)
    upi_id: str = ""
    qr_code_url: str = ""
    telegram_link: str = ""
    telegram_username: str = ""
    contact_email: str = ""
    contact_phone: str = ""
    flash_sale_config: dict | None = Field(default=None, sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=datetime.utcnow)

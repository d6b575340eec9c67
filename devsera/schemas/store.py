from datetime import date

from pydantic import BaseModel, Field


class CouponIn(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    discount_type: str = Field("percent", pattern="^(percent|fixed)$")
    discount_value: int = Field(gt=0)
    valid_from: date | None = None
    valid_until: date | None = None
    valid_days_of_month: str | None = None
    max_uses: int | None = Field(None, ge=1)
    products: str | None = None


class SettingsIn(BaseModel):
    upi_id: str | None = None
    qr_code_url: str | None = None
    telegram_link: str | None = None
    telegram_username: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None


class FlashSaleProduct(BaseModel):
    product_id: int
    discount_amount: int = Field(ge=0)


class FlashSaleIn(BaseModel):
    enabled: bool = False
    duration_hours: int = Field(6, gt=0)
    min_discount_percent: int = Field(10, ge=0, le=100)
    max_products: int = Field(5, gt=0)
    products: list[FlashSaleProduct] = []

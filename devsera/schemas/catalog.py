from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from devsera.models.product import DELIVERY_TYPES


class VariantIn(BaseModel):
    # existing variant to update; matched by name when omitted
    id: int | None = None
    name: str
    duration: str = ""
    original_price: int = Field(0, ge=0)
    sale_price: int = Field(0, ge=0)
    cost_price: int | None = Field(None, ge=0)
    stock_count: int = Field(0, ge=0)
    is_default: bool = False
    sort_order: int = 0
    delivery_type: str | None = None
    features: list[str] | None = None

    @field_validator("delivery_type")
    @classmethod
    def known_delivery_type(cls, v: str | None) -> str | None:
        if v and v not in DELIVERY_TYPES:
            raise ValueError(f"delivery_type must be one of {', '.join(DELIVERY_TYPES)}")
        return v or None


class ProductIn(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    image: str | None = None
    category: str = ""
    duration: str = ""
    features: list[str] | None = None
    original_price: int = Field(0, ge=0)
    sale_price: int = Field(0, ge=0)
    cost_price: int | None = Field(None, ge=0)
    delivery_type: str = "CREDENTIALS"
    delivery_instructions: str | None = None
    requires_user_input: bool = False
    user_input_label: str | None = None
    requires_password: bool = True
    is_active: bool = True
    scheduled_start: datetime | None = None
    scheduled_end: datetime | None = None
    low_stock_alert: int | None = None
    use_manual_stock: bool = False
    manual_stock_count: int = Field(0, ge=0)
    variants: list[VariantIn] = []

    @field_validator("delivery_type")
    @classmethod
    def known_delivery_type(cls, v: str) -> str:
        if v not in DELIVERY_TYPES:
            raise ValueError(f"delivery_type must be one of {', '.join(DELIVERY_TYPES)}")
        return v


class StockKeyIn(BaseModel):
    key_value: str | None = None
    username: str | None = None
    password: str | None = None
    variant_id: int | None = None
    expiry_date: datetime | None = None
    notes: str | None = None


class BulkKeysIn(BaseModel):
    keys: str
    variant_id: int | None = None

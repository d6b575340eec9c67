"""Catalog: products, their priced variants and pre-loaded stock keys."""
from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

DELIVERY_TYPES = ("CREDENTIALS", "COUPON_CODE", "MANUAL_ACTIVATION", "INSTANT_KEY")
KEY_TYPES = ("LICENSE_KEY", "CREDENTIALS", "COUPON_CODE")
STOCK_KEY_STATUSES = ("AVAILABLE", "ASSIGNED", "EXPIRED", "REVOKED")
# Delivery types whose approval consumes a pre-loaded stock key
KEYED_DELIVERY_TYPES = ("INSTANT_KEY", "COUPON_CODE", "CREDENTIALS")


class Product(SQLModel, table=True):
    __tablename__ = "products"
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    description: str = ""
    image: str | None = None
    category: str = Field(default="", index=True)
    duration: str = ""
    features: list[str] | None = Field(default=None, sa_column=Column(JSON))
    original_price: int = 0
    sale_price: int = 0
    cost_price: int | None = None  # admin only, for profit figures
    delivery_type: str = "CREDENTIALS"
    delivery_instructions: str | None = None
    requires_user_input: bool = False
    user_input_label: str | None = None  # e.g. "Your Netflix Email"
    requires_password: bool = True
    is_active: bool = Field(default=True, index=True)
    has_variants: bool = False
    scheduled_start: datetime | None = None
    scheduled_end: datetime | None = None
    low_stock_alert: int | None = None
    use_manual_stock: bool = False
    manual_stock_count: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ProductVariant(SQLModel, table=True):
    __tablename__ = "product_variants"
    id: int | None = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    name: str
    duration: str = ""
    original_price: int = 0
    sale_price: int = 0
    cost_price: int | None = None
    stock_count: int = 0
    is_default: bool = False
    sort_order: int = 0
    delivery_type: str | None = None  # overrides the product's delivery type
    features: list[str] | None = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ProductStockKey(SQLModel, table=True):
    """AVAILABLE -> ASSIGNED -> EXPIRED | REVOKED."""

    __tablename__ = "product_stock_keys"
    id: int | None = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    variant_id: int | None = Field(default=None, index=True)
    key_type: str = "LICENSE_KEY"
    key_value: str
    username: str | None = None
    password: str | None = None
    status: str = Field(default="AVAILABLE", index=True)
    assigned_order_id: int | None = Field(default=None, index=True)
    used_by: int | None = None
    used_at: datetime | None = None
    expiry_date: datetime | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

"""Discount coupon: code, percent/fixed discount, validity window and allowed days of month."""
from datetime import date, datetime

from sqlmodel import Field, SQLModel


class Coupon(SQLModel, table=True):
    """Created by admins, or bought by a customer with loyalty points (user_id set)."""

    __tablename__ = "coupons"
    id: int | None = Field(default=None, primary_key=True)
    code: str = Field(unique=True, index=True, max_length=64)  # stored upper case, e.g. SAVE100-X7K2QD
    discount_type: str = Field(default="fixed", max_length=16)  # "percent" | "fixed"
    discount_value: int = Field()  # percent: 1-100, fixed: whole currency units
    valid_from: date | None = Field(default=None)
    valid_until: date | None = Field(default=None)
    # Only valid on these days of the month; empty = every day. e.g. "1,2,3" or "1-7"
    valid_days_of_month: str | None = Field(default=None, max_length=128)
    max_uses: int | None = Field(default=None)  # null = unlimited
    use_count: int = Field(default=0)
    # Product ids the coupon applies to, comma separated; empty = all
    products: str | None = Field(default=None, max_length=256)
    user_id: int | None = Field(default=None, index=True)  # personal coupon owner
    last_order_id: int | None = None
    created_at: datetime | None = Field(default_factory=datetime.utcnow)

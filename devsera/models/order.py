from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

ORDER_STATUSES = ("PENDING", "SUBMITTED", "COMPLETED", "CANCELLED")


class Order(SQLModel, table=True):
    """Customer purchase: PENDING -> SUBMITTED -> COMPLETED | CANCELLED."""

    __tablename__ = "orders"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="profiles.id", index=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    variant_id: int | None = Field(default=None, index=True)
    status: str = Field(default="PENDING", index=True)
    total_amount: int = 0  # amount actually charged (flash sale / premium / coupon applied)
    payment_screenshot: str | None = None  # public storage URL
    user_provided_input: str | None = None
    user_provided_credentials: dict | None = Field(default=None, sa_column=Column(JSON))
    credentials: dict | None = Field(default=None, sa_column=Column(JSON))
    cancellation_reason: str | None = None
    coupon_code_used: str | None = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

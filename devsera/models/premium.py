"""Premium tier: memberships, per-product premium pricing and members-only content."""
from datetime import datetime

from sqlmodel import Field, SQLModel

# plan -> (display name, price, duration in days; None = never expires)
PREMIUM_PLANS = {
    "5_year": ("5 Years", 500, 5 * 365),
    "10_year": ("10 Years", 800, 10 * 365),
    "lifetime": ("Lifetime", 1500, None),
}
MEMBERSHIP_STATUSES = ("pending", "approved", "rejected", "expired")
CONTENT_TYPES = ("trick", "guide", "offer", "resource")


class PremiumMembership(SQLModel, table=True):
    __tablename__ = "premium_memberships"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="profiles.id", index=True)
    plan_type: str  # 5_year | 10_year | lifetime
    price_paid: int = 0
    payment_proof_url: str | None = None
    payment_method: str = ""
    transaction_id: str | None = None
    status: str = Field(default="pending", index=True)
    requested_at: datetime = Field(default_factory=datetime.utcnow)
    approved_at: datetime | None = None
    approved_by: int | None = None
    expires_at: datetime | None = None
    rejection_reason: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PremiumProduct(SQLModel, table=True):
    __tablename__ = "premium_products"
    id: int | None = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", unique=True, index=True)
    is_free_for_premium: bool = False
    premium_discount_percent: int = 0
    premium_only: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PremiumContent(SQLModel, table=True):
    __tablename__ = "premium_content"
    id: int | None = Field(default=None, primary_key=True)
    title: str
    description: str | None = None
    content_type: str = "guide"
    content_url: str | None = None
    content_body: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

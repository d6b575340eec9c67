from pydantic import BaseModel, Field


class RejectMembership(BaseModel):
    reason: str = Field(min_length=1)


class RevokeMembership(BaseModel):
    reason: str = Field(min_length=1)


class ExtendMembership(BaseModel):
    days: int = Field(gt=0)


class PremiumProductIn(BaseModel):
    product_id: int
    is_free_for_premium: bool = False
    premium_discount_percent: int = Field(0, ge=0, le=100)
    premium_only: bool = False


class PremiumContentIn(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    content_type: str = "guide"
    content_url: str | None = None
    content_body: str | None = None
    is_active: bool = True

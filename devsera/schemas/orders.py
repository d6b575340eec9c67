from pydantic import BaseModel


class OrderCreate(BaseModel):
    product_id: int
    variant_id: int | None = None
    coupon_code: str | None = None
    account_email: str | None = None
    account_password: str | None = None


class ApprovalCredentials(BaseModel):
    username: str | None = None
    password: str | None = None
    expiry_date: str | None = None
    coupon_code: str | None = None
    license_key: str | None = None
    activation_link: str | None = None
    activation_status: str | None = None
    notes: str | None = None
    additional_info: str | None = None


class RejectRequest(BaseModel):
    reason: str = ""

"""Customer and admin accounts, plus the per-admin permission bag."""
from datetime import datetime

from sqlmodel import Field, SQLModel

ADMIN_ROLES = ("super_admin", "admin", "moderator")

# Resources with view/edit/delete flags; settings has view/edit only
PERMISSION_RESOURCES = (
    "products",
    "bundles",
    "flash_sales",
    "orders",
    "customers",
    "tickets",
    "premium",
    "rewards",
    "community",
)


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"
    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    hashed_password: str
    full_name: str = ""
    role: str = Field(default="user", index=True)  # "user" | "admin"
    admin_role: str | None = None  # super_admin | admin | moderator
    is_active: bool = True
    created_by: int | None = None
    created_at: datetime | None = Field(default_factory=datetime.utcnow)
    last_login_at: datetime | None = None


class AdminPermissions(SQLModel, table=True):
    __tablename__ = "admin_permissions"
    id: int | None = Field(default=None, primary_key=True)
    admin_id: int = Field(foreign_key="profiles.id", unique=True, index=True)
    can_view_products: bool = False
    can_edit_products: bool = False
    can_delete_products: bool = False
    can_view_bundles: bool = False
    can_edit_bundles: bool = False
    can_delete_bundles: bool = False
    can_view_flash_sales: bool = False
    can_edit_flash_sales: bool = False
    can_delete_flash_sales: bool = False
    can_view_orders: bool = False
    can_edit_orders: bool = False
    can_delete_orders: bool = False
    can_view_customers: bool = False
    can_edit_customers: bool = False
    can_delete_customers: bool = False
    can_view_tickets: bool = False
    can_edit_tickets: bool = False
    can_delete_tickets: bool = False
    can_view_premium: bool = False
    can_edit_premium: bool = False
    can_delete_premium: bool = False
    can_view_rewards: bool = False
    can_edit_rewards: bool = False
    can_delete_rewards: bool = False
    can_view_community: bool = False
    can_edit_community: bool = False
    can_delete_community: bool = False
    can_view_settings: bool = False
    can_edit_settings: bool = False
    can_manage_admins: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


def permission_flags() -> list[str]:
    flags = [f"can_{action}_{res}" for res in PERMISSION_RESOURCES for action in ("view", "edit", "delete")]
    return flags + ["can_view_settings", "can_edit_settings", "can_manage_admins"]

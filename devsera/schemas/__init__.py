from .admin import ActiveUpdate, AdminCreate, BootstrapRequest, PasswordReset, RoleUpdate
from .auth import Token, UserResponse
from .banners import BannerIn, ReorderRequest
from .catalog import BulkKeysIn, ProductIn, StockKeyIn, VariantIn
from .orders import ApprovalCredentials, OrderCreate, RejectRequest
from .premium import ExtendMembership, PremiumContentIn, PremiumProductIn, RejectMembership, RevokeMembership
from .store import CouponIn, FlashSaleIn, FlashSaleProduct, SettingsIn

__all__ = [
    "ActiveUpdate",
    "AdminCreate",
    "ApprovalCredentials",
    "BannerIn",
    "BootstrapRequest",
    "BulkKeysIn",
    "CouponIn",
    "ExtendMembership",
    "FlashSaleIn",
    "FlashSaleProduct",
    "OrderCreate",
    "PasswordReset",
    "PremiumContentIn",
    "PremiumProductIn",
    "ProductIn",
    "RejectMembership",
    "RejectRequest",
    "ReorderRequest",
    "RevokeMembership",
    "SettingsIn",
    "StockKeyIn",
    "Token",
    "UserResponse",
    "VariantIn",
]

from .banner import Banner
from .coupon import Coupon
from .logs import AuditLog, ErrorLog, SecurityLog
from .loyalty import LoyaltyAccount, PointTransaction
from .order import Order
from .premium import PremiumContent, PremiumMembership, PremiumProduct
from .product import Product, ProductStockKey, ProductVariant
from .profile import AdminPermissions, Profile
from .store_settings import StoreSettings

__all__ = [
    "AdminPermissions",
    "AuditLog",
    "Banner",
    "Coupon",
    "ErrorLog",
    "LoyaltyAccount",
    "Order",
    "PointTransaction",
    "PremiumContent",
    "PremiumMembership",
    "PremiumProduct",
    "Product",
    "ProductStockKey",
    "ProductVariant",
    "Profile",
    "SecurityLog",
    "StoreSettings",
]

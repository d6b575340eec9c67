"""Admin API: modular routers under /admin."""
from fastapi import APIRouter

from devsera.admin.routers import (
    admins,
    banners,
    coupons,
    customers,
    dashboard,
    errors,
    orders,
    premium,
    products,
    security,
    settings,
    stock,
)

admin_router = APIRouter(prefix="/admin", tags=["admin"])

admin_router.include_router(admins.router, tags=["admin-admins"])
admin_router.include_router(dashboard.router, prefix="/dashboard", tags=["admin-dashboard"])
admin_router.include_router(products.router, prefix="/products", tags=["admin-products"])
admin_router.include_router(stock.router, prefix="/products", tags=["admin-stock"])
admin_router.include_router(orders.router, prefix="/orders", tags=["admin-orders"])
admin_router.include_router(banners.router, prefix="/banners", tags=["admin-banners"])
admin_router.include_router(premium.router, prefix="/premium", tags=["admin-premium"])
admin_router.include_router(coupons.router, prefix="/coupons", tags=["admin-coupons"])
admin_router.include_router(settings.router, prefix="/settings", tags=["admin-settings"])
admin_router.include_router(customers.router, prefix="/customers", tags=["admin-customers"])
admin_router.include_router(errors.router, prefix="/errors", tags=["admin-errors"])
admin_router.include_router(security.router, prefix="/security", tags=["admin-security"])

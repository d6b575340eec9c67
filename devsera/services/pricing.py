"""Price computation: variant selection, premium pricing, flash sale and coupon discounts."""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from devsera.models import PremiumProduct, Product, ProductVariant


@dataclass
class PriceBreakdown:
    base_price: int
    original_price: int
    premium_price: int
    is_premium_free: bool
    premium_discount_percent: int
    is_on_flash_sale: bool
    flash_discount: int
    coupon_discount: int
    final_price: int


def select_variant(
    product: Product,
    variants: list[ProductVariant],
    variant_id: int | None = None,
) -> ProductVariant | None:
    """Requested variant, else the default one, else the first; None for products without variants."""
    if not product.has_variants or not variants:
        return None
    if variant_id is not None:
        for v in variants:
            if v.id == variant_id:
                return v
    for v in variants:
        if v.is_default:
            return v
    return variants[0]


def effective_delivery_type(product: Product, variant: ProductVariant | None = None) -> str:
    return (variant.delivery_type if variant and variant.delivery_type else None) or product.delivery_type or "CREDENTIALS"


def apply_percent_discount(amount: int, percent: int) -> int:
    """round(amount * (1 - percent/100)), halves rounded up."""
    value = Decimal(amount) * (Decimal(100) - Decimal(percent)) / Decimal(100)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def flash_sale_discount(config: dict | None, product_id: int, now: datetime | None = None) -> int | None:
    """Discount amount when the product is in an enabled, unexpired flash sale, else None."""
    if not config or not config.get("enabled"):
        return None
    end_time = config.get("end_time")
    if not end_time:
        return None
    try:
        end = datetime.fromisoformat(str(end_time).replace("Z", "+00:00"))
    except ValueError:
        return None
    if end.tzinfo is not None:
        end = end.astimezone(timezone.utc).replace(tzinfo=None)
    if (now or datetime.utcnow()) > end:
        return None
    for item in config.get("flash_sale_products") or []:
        try:
            if int(item.get("productId", item.get("product_id"))) == int(product_id):
                return max(0, int(item.get("discountAmount", item.get("discount_amount")) or 0))
        except (AttributeError, TypeError, ValueError):
            continue
    return None


def compute_price(
    product: Product,
    variant: ProductVariant | None = None,
    premium_product: PremiumProduct | None = None,
    flash_discount: int | None = None,
    coupon_discount: int = 0,
) -> PriceBreakdown:
    """premium_product is only passed for premium customers."""
    base = variant.sale_price if variant else (product.sale_price or 0)
    premium_price = base
    is_free = False
    percent = 0
    if premium_product:
        if premium_product.is_free_for_premium:
            premium_price = 0
            is_free = True
        elif (premium_product.premium_discount_percent or 0) > 0:
            percent = premium_product.premium_discount_percent
            premium_price = apply_percent_discount(base, percent)

    on_flash = flash_discount is not None
    price = max(0, premium_price - flash_discount) if on_flash else premium_price
    if on_flash:
        original = premium_price
    elif is_free:
        original = base
    else:
        original = variant.original_price if variant else (product.original_price or 0)

    coupon_discount = max(0, coupon_discount or 0)
    final = max(0, price - coupon_discount)
    return PriceBreakdown(
        base_price=base,
        original_price=original,
        premium_price=premium_price,
        is_premium_free=is_free,
        premium_discount_percent=percent,
        is_on_flash_sale=on_flash,
        flash_discount=flash_discount or 0,
        coupon_discount=min(coupon_discount, price),
        final_price=final,
    )

from datetime import datetime, timedelta

from devsera.models import PremiumProduct, Product, ProductVariant
from devsera.services.pricing import (
    apply_percent_discount,
    compute_price,
    flash_sale_discount,
    select_variant,
)


def _product(**kw) -> Product:
    data = {"id": 7, "name": "Stream", "original_price": 500, "sale_price": 300}
    data.update(kw)
    return Product(**data)


def test_select_variant_order():
    p = _product(has_variants=True)
    a = ProductVariant(id=1, product_id=7, name="A", sale_price=100)
    b = ProductVariant(id=2, product_id=7, name="B", sale_price=200, is_default=True)
    assert select_variant(p, [a, b], 1) is a
    assert select_variant(p, [a, b], None) is b
    assert select_variant(p, [a], 99) is a
    assert select_variant(_product(has_variants=False), [a, b]) is None


def test_percent_discount_rounds_half_up():
    assert apply_percent_discount(299, 50) == 150
    assert apply_percent_discount(100, 15) == 85
    assert apply_percent_discount(5, 10) == 5


def test_premium_free_and_discount():
    p = _product()
    free = compute_price(p, premium_product=PremiumProduct(product_id=7, is_free_for_premium=True))
    assert free.final_price == 0
    assert free.is_premium_free and free.original_price == 300
    discounted = compute_price(p, premium_product=PremiumProduct(product_id=7, premium_discount_percent=20))
    assert discounted.final_price == 240
    assert discounted.premium_discount_percent == 20


def test_flash_sale_then_coupon():
    price = compute_price(_product(), flash_discount=100, coupon_discount=50)
    assert price.is_on_flash_sale
    assert price.original_price == 300
    assert price.final_price == 150
    assert compute_price(_product(), flash_discount=1000).final_price == 0
    assert compute_price(_product(), coupon_discount=999).final_price == 0


def test_flash_sale_discount_window():
    future = (datetime.utcnow() + timedelta(hours=1)).isoformat() + "Z"
    past = (datetime.utcnow() - timedelta(hours=1)).isoformat() + "Z"
    cfg = {"enabled": True, "end_time": future, "flash_sale_products": [{"productId": 7, "discountAmount": 40}]}
    assert flash_sale_discount(cfg, 7) == 40
    assert flash_sale_discount(cfg, 8) is None
    assert flash_sale_discount({**cfg, "end_time": past}, 7) is None
    assert flash_sale_discount({**cfg, "enabled": False}, 7) is None
    assert flash_sale_discount({**cfg, "end_time": None}, 7) is None


def test_catalog_shows_flash_price(client, admin_headers, make_product):
    p = make_product(sale_price=400)
    r = client.put(
        "/admin/settings/flash-sale",
        json={"enabled": True, "duration_hours": 2, "products": [{"product_id": p.id, "discount_amount": 100}]},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    item = client.get(f"/products/{p.id}").json()
    assert item["price"] == 300
    assert item["is_on_flash_sale"] is True
    sale = client.get("/store/flash-sale").json()
    assert {"product_id": p.id, "discount_amount": 100} in sale["products"]
    client.put("/admin/settings/flash-sale", json={"enabled": False}, headers=admin_headers)
    assert client.get(f"/products/{p.id}").json()["price"] == 400

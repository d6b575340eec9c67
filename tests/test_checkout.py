"""Checkout: payment proof validation, stock checks, order reuse and coupons."""
import os
from datetime import datetime, timedelta
from pathlib import Path

from sqlmodel import select

from devsera.models import Coupon, Order, PremiumMembership, PremiumProduct, ProductStockKey
from tests.helpers import png_bytes, register_and_login, unique_email


def _with_key(db, product):
    db.add(ProductStockKey(product_id=product.id, key_value=f"KEY-{product.id}"))
    db.commit()
    return product


def _screenshot(content: bytes | None = None, name: str = "proof.png", ctype: str = "image/png"):
    return {"screenshot": (name, content if content is not None else png_bytes(), ctype)}


def test_checkout_submits_order(client, db, customer_headers, make_product):
    p = _with_key(db, make_product(sale_price=299))
    r = client.post("/checkout", data={"product_id": p.id}, files=_screenshot(), headers=customer_headers)
    assert r.status_code == 200, r.text
    order = r.json()
    assert order["status"] == "SUBMITTED"
    assert order["total_amount"] == 299
    url = order["payment_screenshot"]
    assert url.startswith(f"/storage/order-files/payment-screenshots/{order['id']}-")
    assert url.endswith(".png")
    stored = Path(os.environ["STORAGE_DIR"]) / url.removeprefix("/storage/")
    assert stored.is_file()
    # the stored proof is served back
    assert client.get(url).status_code == 200


def test_checkout_requires_screenshot(client, db, customer_headers, make_product):
    p = _with_key(db, make_product())
    r = client.post("/checkout", data={"product_id": p.id}, headers=customer_headers)
    assert r.status_code == 422
    assert r.json()["error"] == "Payment screenshot is required"


def test_checkout_rejects_non_images(client, db, customer_headers, make_product):
    p = _with_key(db, make_product())
    r = client.post(
        "/checkout",
        data={"product_id": p.id},
        files=_screenshot(b"%PDF-1.4 not an image", "proof.pdf", "application/pdf"),
        headers=customer_headers,
    )
    assert r.status_code == 422
    r = client.post(
        "/checkout",
        data={"product_id": p.id},
        files=_screenshot(b"garbage bytes", "proof.png", "image/png"),
        headers=customer_headers,
    )
    assert r.status_code == 422
    assert "not a valid image" in r.json()["error"]


def test_checkout_out_of_stock(client, customer_headers, make_product):
    p = make_product()
    r = client.post("/checkout", data={"product_id": p.id}, files=_screenshot(), headers=customer_headers)
    assert r.status_code == 409
    assert r.json()["error"] == "This product is currently out of stock. Please try again later."


def test_manual_activation_fields(client, customer_headers, make_product):
    p = make_product(
        delivery_type="MANUAL_ACTIVATION",
        requires_user_input=True,
        user_input_label="Your Netflix Email",
        use_manual_stock=True,
        manual_stock_count=5,
    )
    r = client.post(
        "/checkout",
        data={"product_id": p.id, "account_email": "not-an-email", "account_password": "abc"},
        files=_screenshot(),
        headers=customer_headers,
    )
    assert r.status_code == 422
    assert r.json()["error"] == "Please enter a valid email address. Password must be at least 4 characters"

    r = client.post(
        "/checkout",
        data={"product_id": p.id, "account_email": "me@gmail.com", "account_password": "abcd"},
        files=_screenshot(),
        headers=customer_headers,
    )
    assert r.status_code == 200, r.text


def test_manual_activation_without_password(client, db, customer_headers, make_product):
    p = make_product(
        delivery_type="MANUAL_ACTIVATION",
        requires_user_input=True,
        user_input_label="Account email",
        requires_password=False,
        use_manual_stock=True,
        manual_stock_count=1,
    )
    r = client.post(
        "/checkout",
        data={"product_id": p.id, "account_email": "me@gmail.com"},
        files=_screenshot(),
        headers=customer_headers,
    )
    assert r.status_code == 200, r.text
    order = db.get(Order, r.json()["id"])
    assert order.user_provided_credentials == {"email": "me@gmail.com"}


def test_existing_pending_order_is_reused(client, db, customer_headers, make_product):
    p = _with_key(db, make_product())
    r = client.post("/orders", json={"product_id": p.id}, headers=customer_headers)
    assert r.status_code == 200, r.text
    pending = r.json()
    assert pending["status"] == "PENDING"
    r = client.post(
        "/checkout",
        data={"product_id": p.id, "order_id": pending["id"]},
        files=_screenshot(),
        headers=customer_headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["id"] == pending["id"]
    assert len(client.get("/orders", headers=customer_headers).json()) == 1
    # a submitted order cannot take a second proof
    r = client.post(f"/orders/{pending['id']}/payment-proof", files=_screenshot(), headers=customer_headers)
    assert r.status_code == 409


def test_checkout_with_coupon(client, db, customer_headers, make_product):
    p = _with_key(db, make_product(sale_price=400))
    db.add(Coupon(code="CHECKOUT50", discount_type="fixed", discount_value=50, max_uses=5))
    db.commit()
    r = client.get(
        "/rewards/validate-coupon", params={"code": "checkout50", "product_id": p.id}, headers=customer_headers
    )
    assert r.json() == {"code": "CHECKOUT50", "discount": 50, "final_price": 350}
    r = client.post(
        "/checkout",
        data={"product_id": p.id, "coupon_code": "checkout50"},
        files=_screenshot(),
        headers=customer_headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["total_amount"] == 350
    assert r.json()["coupon_code_used"] == "CHECKOUT50"
    db.expire_all()
    coupon = db.exec(select(Coupon).where(Coupon.code == "CHECKOUT50")).first()
    assert coupon.use_count == 1


def test_orders_are_private(client, db, customer_headers, make_product):
    p = _with_key(db, make_product())
    order = client.post("/orders", json={"product_id": p.id}, headers=customer_headers).json()
    other = register_and_login(client, unique_email("other"))
    assert client.get(f"/orders/{order['id']}", headers=other).status_code == 404
    assert client.get(f"/orders/{order['id']}", headers=customer_headers).json()["credentials"] is None


def test_hidden_products_cannot_be_ordered(client, db, customer_headers, make_product):
    now = datetime.utcnow()
    upcoming = _with_key(db, make_product(scheduled_start=now + timedelta(days=1)))
    ended = _with_key(db, make_product(scheduled_end=now - timedelta(hours=1)))
    exclusive = _with_key(db, make_product())
    db.add(PremiumProduct(product_id=exclusive.id, premium_only=True))
    db.commit()

    assert client.get(f"/products/{upcoming.id}").status_code == 404
    for p in (upcoming, ended):
        assert client.post("/orders", json={"product_id": p.id}, headers=customer_headers).status_code == 404
    r = client.post("/orders", json={"product_id": exclusive.id}, headers=customer_headers)
    assert r.status_code == 403
    assert r.json()["error"] == "This product is available to premium members only."
    r = client.post("/checkout", data={"product_id": exclusive.id}, files=_screenshot(), headers=customer_headers)
    assert r.status_code == 403
    assert not db.exec(select(Order).where(Order.product_id.in_([upcoming.id, ended.id, exclusive.id]))).all()

    # members can buy it
    me = client.get("/auth/me", headers=customer_headers).json()
    db.add(PremiumMembership(user_id=me["id"], plan_type="lifetime", status="approved", approved_at=now))
    db.commit()
    r = client.post("/orders", json={"product_id": exclusive.id}, headers=customer_headers)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "PENDING"

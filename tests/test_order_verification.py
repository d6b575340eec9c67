"""Admin order verification: credential rules per delivery type, stock and loyalty side effects."""
import pytest
from sqlmodel import select

from devsera.models import LoyaltyAccount, Order, PointTransaction, ProductStockKey
from devsera.services.orders import validate_approval_credentials
from tests.helpers import png_bytes


def _submitted_order(client, db, headers, product) -> dict:
    r = client.post(
        "/checkout",
        data={"product_id": product.id},
        files={"screenshot": ("p.png", png_bytes(), "image/png")},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    return r.json()


@pytest.mark.parametrize(
    "delivery_type,creds,ok",
    [
        ("CREDENTIALS", {"username": "u", "password": "p", "expiry_date": "2030-01-01"}, True),
        ("CREDENTIALS", {"username": "u", "password": "p"}, False),
        ("COUPON_CODE", {"activation_link": "https://x.test/a"}, True),
        ("COUPON_CODE", {"username": "u"}, False),
        ("MANUAL_ACTIVATION", {"activation_status": "Activated"}, True),
        ("MANUAL_ACTIVATION", {"notes": "done"}, False),
        ("INSTANT_KEY", {"license_key": "ABC"}, True),
        ("INSTANT_KEY", {"license_key": "   "}, False),
    ],
)
def test_validate_approval_credentials(delivery_type, creds, ok):
    assert validate_approval_credentials(delivery_type, creds)[0] is ok


def test_only_fields_of_the_delivery_type_are_kept():
    ok, stored = validate_approval_credentials(
        "INSTANT_KEY",
        {"license_key": "K-1", "username": "stray", "password": "stray", "expiry_date": "2030-01-01", "additional_info": " hi "},
    )
    assert ok
    assert stored == {"license_key": "K-1", "expiry_date": "2030-01-01", "additional_info": "hi"}


def test_approve_assigns_key_and_awards_points(client, db, customer_headers, admin_headers, make_product):
    p = make_product(delivery_type="CREDENTIALS", sale_price=1234)
    db.add(ProductStockKey(product_id=p.id, key_type="CREDENTIALS", key_value="acc1", username="acc1", password="pw"))
    db.commit()
    order = _submitted_order(client, db, customer_headers, p)

    preview = client.get(f"/admin/orders/{order['id']}/stock-preview", headers=admin_headers).json()
    assert preview["available"] == 1
    assert preview["key"]["username"] == "acc1"

    r = client.post(
        f"/admin/orders/{order['id']}/approve",
        json={"username": "acc1", "password": "pw", "expiry_date": "2030-12-31", "license_key": "dropped"},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "COMPLETED"
    assert body["credentials"] == {"username": "acc1", "password": "pw", "expiry_date": "2030-12-31"}

    db.expire_all()
    key = db.exec(select(ProductStockKey).where(ProductStockKey.product_id == p.id)).one()
    assert key.status == "ASSIGNED"
    assert key.assigned_order_id == order["id"]
    user_id = db.get(Order, order["id"]).user_id
    account = db.exec(select(LoyaltyAccount).where(LoyaltyAccount.user_id == user_id)).one()
    assert account.total_points == 123
    assert account.tier == "bronze"
    tx = db.exec(select(PointTransaction).where(PointTransaction.order_id == order["id"])).one()
    assert tx.type == "earned" and tx.points == 123

    # customer now sees the delivered credentials
    mine = client.get(f"/orders/{order['id']}", headers=customer_headers).json()
    assert mine["credentials"]["username"] == "acc1"


def test_approve_missing_fields_keeps_order_submitted(client, db, customer_headers, admin_headers, make_product):
    p = make_product(delivery_type="CREDENTIALS")
    db.add(ProductStockKey(product_id=p.id, key_type="CREDENTIALS", key_value="a", username="a", password="b"))
    db.commit()
    order = _submitted_order(client, db, customer_headers, p)
    r = client.post(f"/admin/orders/{order['id']}/approve", json={"username": "a"}, headers=admin_headers)
    assert r.status_code == 422
    assert r.json()["error"] == "Please fill in all required fields"
    db.expire_all()
    assert db.get(Order, order["id"]).status == "SUBMITTED"


def test_manual_stock_deducted_on_approval(client, db, customer_headers, admin_headers, make_product):
    p = make_product(delivery_type="MANUAL_ACTIVATION", use_manual_stock=True, manual_stock_count=2)
    order = _submitted_order(client, db, customer_headers, p)
    r = client.post(
        f"/admin/orders/{order['id']}/approve",
        json={"activation_status": "Activated on your account"},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    db.expire_all()
    db.refresh(p)
    assert p.manual_stock_count == 1


def test_reject_requires_reason_and_only_once(client, db, customer_headers, admin_headers, make_product):
    p = make_product(use_manual_stock=True, manual_stock_count=1)
    order = _submitted_order(client, db, customer_headers, p)
    r = client.post(f"/admin/orders/{order['id']}/reject", json={"reason": "  "}, headers=admin_headers)
    assert r.status_code == 422
    r = client.post(f"/admin/orders/{order['id']}/reject", json={"reason": "Payment not received"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELLED"
    assert r.json()["cancellation_reason"] == "Payment not received"
    r = client.post(f"/admin/orders/{order['id']}/approve", json={"license_key": "K"}, headers=admin_headers)
    assert r.status_code == 409


def test_order_permissions(client, db, customer_headers, make_product, make_staff):
    p = make_product(use_manual_stock=True, manual_stock_count=1)
    order = _submitted_order(client, db, customer_headers, p)
    viewer, _ = make_staff("moderator", {"can_view_orders": True})
    assert client.get("/admin/orders?status=submitted", headers=viewer).status_code == 200
    r = client.post(f"/admin/orders/{order['id']}/approve", json={"license_key": "K"}, headers=viewer)
    assert r.status_code == 403
    assert client.get("/admin/orders", headers=customer_headers).status_code == 403


def test_orders_export(client, db, customer_headers, admin_headers, make_product):
    p = make_product(use_manual_stock=True, manual_stock_count=1, name="Export Product")
    _submitted_order(client, db, customer_headers, p)
    r = client.get("/admin/orders/export?status=SUBMITTED", headers=admin_headers)
    assert r.status_code == 200
    text = r.content.decode("utf-8-sig")
    assert text.splitlines()[0].startswith("Order ID,Date,Customer,Product")
    assert "Export Product" in text

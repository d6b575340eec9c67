"""Coupons: validation rules, admin CRUD, and loyalty point redemption."""
from datetime import date, timedelta

from devsera.models import Coupon
from devsera.services.coupon import POINTS_PER_COUPON, _parse_days_of_month, validate_coupon
from devsera.services.loyalty import points_for_amount, record_points, tier_for


def _coupon(db, **kw) -> Coupon:
    data = {"code": "SAVE10", "discount_type": "percent", "discount_value": 10}
    data.update(kw)
    c = Coupon(**data)
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


def test_parse_days_of_month():
    assert _parse_days_of_month("1-3, 15") == {1, 2, 3, 15}
    assert _parse_days_of_month("") is None
    assert _parse_days_of_month("40, x") is None


def test_percent_and_fixed(db):
    _coupon(db, code="PCT25", discount_value=25)
    _coupon(db, code="FIX500", discount_type="fixed", discount_value=500)
    assert validate_coupon(db, "pct25", 1, 299) == (74, None)
    assert validate_coupon(db, "FIX500", 1, 299) == (299, None)


def test_rejections(db):
    today = date(2024, 5, 10)
    _coupon(db, code="EXPIRED1", valid_until=today - timedelta(days=1))
    _coupon(db, code="LATER1", valid_from=today + timedelta(days=1))
    _coupon(db, code="USEDUP1", max_uses=1, use_count=1)
    _coupon(db, code="ONLY99", products="99")
    _coupon(db, code="DAYS1", valid_days_of_month="1-7")
    _coupon(db, code="MINE1", user_id=424242)
    assert validate_coupon(db, "EXPIRED1", 1, 100, today=today)[1] == "This coupon has expired."
    assert validate_coupon(db, "LATER1", 1, 100, today=today)[1] == "This coupon is not valid yet."
    assert validate_coupon(db, "USEDUP1", 1, 100, today=today)[1] == "This coupon has already been used."
    assert validate_coupon(db, "ONLY99", 1, 100, today=today)[1] == "This coupon is not valid for the selected product."
    assert validate_coupon(db, "DAYS1", 1, 100, today=today)[1] == "This coupon is not valid today."
    assert validate_coupon(db, "MINE1", 1, 100, user_id=1, today=today)[1] == "Invalid or expired coupon code."
    assert validate_coupon(db, "MINE1", 1, 100, user_id=424242, today=today) == (10, None)
    assert validate_coupon(db, "NOPE", 1, 100)[1] == "Invalid or expired coupon code."


def test_tiers_and_points():
    assert tier_for(0) == "bronze"
    assert tier_for(499) == "bronze"
    assert tier_for(500) == "silver"
    assert tier_for(1500) == "gold"
    assert tier_for(5000) == "platinum"
    assert points_for_amount(299) == 29
    assert points_for_amount(9) == 0


def test_admin_coupon_crud(client, admin_headers):
    r = client.post(
        "/admin/coupons",
        json={"code": " summer ", "discount_type": "percent", "discount_value": 15, "max_uses": 10},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    coupon = r.json()
    assert coupon["code"] == "SUMMER"
    r = client.post("/admin/coupons", json={"code": "SUMMER", "discount_value": 5}, headers=admin_headers)
    assert r.status_code == 400
    r = client.post("/admin/coupons", json={"code": "BIG", "discount_value": 150}, headers=admin_headers)
    assert r.status_code == 422
    r = client.put(
        f"/admin/coupons/{coupon['id']}",
        json={"code": "SUMMER", "discount_type": "fixed", "discount_value": 50},
        headers=admin_headers,
    )
    assert r.json()["discount_type"] == "fixed"
    assert client.delete(f"/admin/coupons/{coupon['id']}", headers=admin_headers).status_code == 200


def test_redeem_points_for_coupon(client, db, customer_headers):
    me = client.get("/auth/me", headers=customer_headers).json()
    r = client.post("/rewards/redeem", headers=customer_headers)
    assert r.status_code == 400

    record_points(db, me["id"], POINTS_PER_COUPON + 200, "bonus", "Welcome bonus")
    r = client.post("/rewards/redeem", headers=customer_headers)
    assert r.status_code == 200, r.text
    c = r.json()
    assert c["code"].startswith("SAVE100-") and len(c["code"]) == len("SAVE100-") + 6
    assert c["discount_type"] == "fixed" and c["discount_value"] == 100
    assert c["max_uses"] == 1
    assert date.fromisoformat(c["valid_until"]) > date.today() + timedelta(days=80)

    points = client.get("/rewards/points", headers=customer_headers).json()
    assert points["total_points"] == 200
    assert points["lifetime_points"] == POINTS_PER_COUPON + 200
    assert points["tier"] == "platinum"
    assert [t["type"] for t in points["transactions"]][:2] == ["redeemed", "bonus"]
    assert [x["code"] for x in client.get("/rewards/coupons", headers=customer_headers).json()] == [c["code"]]

"""Dashboard numbers, low-stock alerts and the customer manager."""
from datetime import date

from devsera.admin.routers.dashboard import _month_minus


def test_month_minus_wraps_years():
    assert _month_minus(date(2024, 3, 15), 0) == date(2024, 3, 1)
    assert _month_minus(date(2024, 3, 15), 5) == date(2023, 10, 1)
    assert _month_minus(date(2024, 12, 2), -1) == date(2025, 1, 1)


def test_dashboard_shape(client, admin_headers):
    data = client.get("/admin/dashboard", headers=admin_headers).json()
    assert set(data["orders"]) == {"PENDING", "SUBMITTED", "COMPLETED", "CANCELLED"}
    assert len(data["monthly"]) == 12
    assert data["pending_verification"] == data["orders"]["SUBMITTED"]


def test_low_stock_alerts(client, admin_headers, make_product):
    empty = make_product(low_stock_alert=2)
    stocked = make_product(use_manual_stock=True, manual_stock_count=50)
    rows = {r["id"]: r for r in client.get("/admin/dashboard/low-stock", headers=admin_headers).json()}
    assert rows[empty.id] == {"id": empty.id, "name": empty.name, "stock_count": 0, "threshold": 2}
    assert stocked.id not in rows


def test_customer_manager(client, admin_headers, customer_headers):
    me = client.get("/auth/me", headers=customer_headers).json()
    listed = client.get("/admin/customers", params={"q": me["email"]}, headers=admin_headers).json()
    assert [c["id"] for c in listed] == [me["id"]]
    assert listed[0]["order_count"] == 0

    export = client.get("/admin/customers/export", headers=admin_headers)
    assert export.headers["content-disposition"].startswith('attachment; filename="customers_')
    assert me["email"] in export.text

    r = client.put(f"/admin/customers/{me['id']}/active", json={"is_active": False}, headers=admin_headers)
    assert r.json()["is_active"] is False
    assert client.get("/auth/me", headers=customer_headers).status_code == 403


def test_dashboard_requires_admin(client, customer_headers):
    assert client.get("/admin/dashboard", headers=customer_headers).status_code == 403

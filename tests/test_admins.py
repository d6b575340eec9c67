"""Admin accounts: bootstrap secret, role rules, permissions, deletion and password resets."""
import os

from devsera.models import Profile
from tests.helpers import unique_email

ADMIN_SECRET = os.environ["ADMIN_SECRET"]


def _new_admin_payload(role: str = "moderator", **kw) -> dict:
    return {"email": unique_email(role, "devsera.store"), "password": "pass1234", "admin_role": role, **kw}


def test_bootstrap_requires_secret(client):
    payload = {"email": unique_email("boot"), "password": "pass1234"}
    assert client.post("/admin/bootstrap", json=payload).status_code == 403
    r = client.post("/admin/bootstrap", json=payload, headers={"X-Admin-Secret": "wrong"})
    assert r.status_code == 403


def test_bootstrap_only_once(client, admin_headers):
    r = client.post(
        "/admin/bootstrap",
        json={"email": unique_email("boot"), "password": "pass1234"},
        headers={"X-Admin-Secret": ADMIN_SECRET},
    )
    assert r.status_code == 409


def test_super_admin_holds_every_permission(client, admin_headers):
    me = client.get("/admin/me", headers=admin_headers).json()
    assert me["admin_role"] == "super_admin"
    assert all(me["permissions"].values())


def test_customers_are_not_admins(client, customer_headers):
    assert client.get("/admin/me", headers=customer_headers).status_code == 403


def test_admin_may_only_create_moderators(client, make_staff):
    admin, _ = make_staff("admin", {"can_view_orders": True, "can_manage_admins": True})
    r = client.post("/admin/admins", json=_new_admin_payload("admin"), headers=admin)
    assert r.status_code == 403
    r = client.post("/admin/admins", json=_new_admin_payload("moderator", permissions={"can_view_orders": True}), headers=admin)
    assert r.status_code == 201, r.text
    # cannot hand out what it does not hold
    r = client.post(
        "/admin/admins",
        json=_new_admin_payload("moderator", permissions={"can_delete_orders": True}),
        headers=admin,
    )
    assert r.status_code == 403


def test_moderator_cannot_create_admins(client, make_staff):
    moderator, _ = make_staff("moderator")
    assert client.post("/admin/admins", json=_new_admin_payload(), headers=moderator).status_code == 403


def test_password_min_length(client, admin_headers):
    r = client.post("/admin/admins", json={**_new_admin_payload(), "password": "12345"}, headers=admin_headers)
    assert r.status_code == 422


def test_permissions_role_and_active_updates(client, admin_headers, make_staff):
    staff, staff_id = make_staff("moderator")
    assert client.get("/admin/products", headers=staff).status_code == 403
    r = client.put(f"/admin/admins/{staff_id}/permissions", json={"can_view_products": True}, headers=admin_headers)
    assert r.json()["permissions"]["can_view_products"] is True
    assert client.get("/admin/products", headers=staff).status_code == 200

    r = client.put(f"/admin/admins/{staff_id}/permissions", json={"can_fly": True}, headers=admin_headers)
    assert r.status_code == 422

    r = client.put(f"/admin/admins/{staff_id}/role", json={"admin_role": "admin"}, headers=admin_headers)
    assert r.json()["admin_role"] == "admin"

    r = client.put(f"/admin/admins/{staff_id}/active", json={"is_active": False}, headers=admin_headers)
    assert r.json()["is_active"] is False
    assert client.get("/admin/products", headers=staff).status_code == 403


def test_delete_rules(client, db, admin_headers, make_staff):
    me = client.get("/admin/me", headers=admin_headers).json()
    assert client.delete(f"/admin/admins/{me['id']}", headers=admin_headers).status_code == 409

    staff, staff_id = make_staff("admin", {"can_manage_admins": True})
    # only super admins delete
    assert client.delete(f"/admin/admins/{me['id']}", headers=staff).status_code == 403

    r = client.delete(f"/admin/admins/{staff_id}", headers=admin_headers)
    assert r.json() == {"ok": True, "deleted_completely": False}
    demoted = db.get(Profile, staff_id)
    assert demoted.role == "user" and demoted.admin_role is None

    _, gone_id = make_staff("moderator")
    r = client.delete(f"/admin/admins/{gone_id}?delete_completely=true", headers=admin_headers)
    assert r.json()["deleted_completely"] is True
    db.expire_all()
    assert db.get(Profile, gone_id) is None


def test_reset_password(client, admin_headers, make_staff):
    staff, staff_id = make_staff("admin", {"can_manage_admins": True})
    r = client.post(f"/admin/admins/{staff_id}/reset-password", json={"new_password": "123"}, headers=admin_headers)
    assert r.status_code == 422
    r = client.post(f"/admin/admins/{staff_id}/reset-password", json={"new_password": "brand-new-1"}, headers=staff)
    assert r.status_code == 403
    r = client.post(f"/admin/admins/{staff_id}/reset-password", json={"new_password": "brand-new-1"}, headers=admin_headers)
    assert r.status_code == 200
    email = client.get("/admin/me", headers=staff).json()["email"]
    assert client.post("/auth/login", data={"email": email, "password": "brand-new-1"}).status_code == 200


def test_admins_cannot_escalate_through_permission_updates(client, make_staff):
    manager, manager_id = make_staff("admin", {"can_view_orders": True, "can_manage_admins": True})
    _, moderator_id = make_staff("moderator")

    r = client.put(
        f"/admin/admins/{manager_id}/permissions",
        json={"can_delete_orders": True, "can_edit_settings": True},
        headers=manager,
    )
    assert r.status_code == 403
    own = client.get("/admin/me", headers=manager).json()["permissions"]
    assert own["can_delete_orders"] is False and own["can_edit_settings"] is False

    r = client.put(f"/admin/admins/{moderator_id}/permissions", json={"can_edit_settings": True}, headers=manager)
    assert r.status_code == 403
    r = client.put(f"/admin/admins/{moderator_id}/permissions", json={"can_view_orders": True}, headers=manager)
    assert r.status_code == 200
    assert r.json()["permissions"]["can_view_orders"] is True
    assert r.json()["permissions"]["can_edit_settings"] is False

"""Banners: defaults, public date window, toggle and reorder."""
from datetime import datetime, timedelta

from devsera.models.banner import DEFAULT_GRADIENT


def _create(client, headers, **kw):
    r = client.post("/admin/banners", json={"title": "Banner", **kw}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_defaults_applied(client, admin_headers):
    b = _create(client, admin_headers, title="Defaults", button_text="  ")
    assert b["button_text"] == "Shop Now"
    assert b["button_link"] == "/"
    assert b["gradient"] == DEFAULT_GRADIENT
    assert b["icon_type"] == "sparkles"


def test_public_list_respects_window_and_active(client, admin_headers):
    now = datetime.utcnow()
    live = _create(client, admin_headers, title="Live")
    future = _create(client, admin_headers, title="Future", start_date=(now + timedelta(days=2)).isoformat())
    ended = _create(client, admin_headers, title="Ended", end_date=(now - timedelta(days=1)).isoformat())
    hidden = _create(client, admin_headers, title="Hidden", is_active=False)
    ids = {b["id"] for b in client.get("/banners").json()}
    assert live["id"] in ids
    assert not ids & {future["id"], ended["id"], hidden["id"]}

    r = client.post(f"/admin/banners/{hidden['id']}/toggle", headers=admin_headers)
    assert r.json()["is_active"] is True
    assert hidden["id"] in {b["id"] for b in client.get("/banners").json()}


def test_invalid_window(client, admin_headers):
    now = datetime.utcnow()
    r = client.post(
        "/admin/banners",
        json={"title": "Bad", "start_date": now.isoformat(), "end_date": (now - timedelta(days=1)).isoformat()},
        headers=admin_headers,
    )
    assert r.status_code == 422


def test_reorder(client, admin_headers):
    a = _create(client, admin_headers, title="A")
    b = _create(client, admin_headers, title="B")
    c = _create(client, admin_headers, title="C")
    r = client.post("/admin/banners/reorder", json={"ids": [c["id"], a["id"], b["id"]]}, headers=admin_headers)
    assert r.status_code == 200
    order = {x["id"]: x["display_order"] for x in r.json()}
    assert (order[c["id"]], order[a["id"]], order[b["id"]]) == (1, 2, 3)
    r = client.post("/admin/banners/reorder", json={"ids": [999999]}, headers=admin_headers)
    assert r.status_code == 404


def test_update_and_delete(client, admin_headers):
    b = _create(client, admin_headers, title="Old")
    r = client.put(f"/admin/banners/{b['id']}", json={"title": "New", "icon_type": "gift"}, headers=admin_headers)
    assert r.json()["title"] == "New"
    assert r.json()["icon_type"] == "gift"
    assert r.json()["display_order"] == b["display_order"]
    assert client.delete(f"/admin/banners/{b['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/admin/banners/{b['id']}", headers=admin_headers).status_code == 404
